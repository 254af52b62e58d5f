"""Manages the nameservers in resolv.conf."""

from __future__ import annotations

from pathlib import Path

from nixop.config import COMMENT_HEADER
from nixop.controller import Handler, ReconcileError, register_handler
from nixop.utils import atomic_write_file

RESOLV_CONF = "/etc/resolv.conf"


def parse_nameservers(text):
    """Return the nameserver addresses listed in resolv.conf text."""
    servers = []
    for raw in text.split("\n"):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("nameserver"):
            fields = line.split()
            if len(fields) == 2:
                servers.append(fields[1])
    return servers


def nameservers_equal(current, desired):
    """Compare nameserver lists ignoring order and blank entries."""

    def cleaned(servers):
        return sorted(s for s in servers if s.strip())

    return cleaned(current) == cleaned(desired)


def render_resolv_conf(nameservers):
    """Render resolv.conf text for the given nameservers."""
    return COMMENT_HEADER + "".join(f"nameserver {ns}\n" for ns in nameservers)


class LinuxDNSHandler(Handler):
    """Writes the configured nameservers to resolv.conf when they differ."""

    def __init__(self, path=RESOLV_CONF):
        self.path = path

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def current_nameservers(self):
        try:
            text = Path(self.path).read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return []
        return parse_nameservers(text)

    def reconcile(self, config):
        """Rewrite resolv.conf if needed; return True when it was written."""
        try:
            current = self.current_nameservers()
        except OSError as exc:
            raise ReconcileError(f"failed to read current nameservers: {exc}") from exc

        desired = config.spec.network.dns.nameservers
        if nameservers_equal(current, desired):
            return False
        atomic_write_file(render_resolv_conf(desired), self.path, 0o644)
        return True


register_handler("dns", LinuxDNSHandler())