"""Manages the static host entries in the hosts file."""

from __future__ import annotations

from operator import itemgetter
from pathlib import Path

from nixop.config import COMMENT_HEADER, HostEntry
from nixop.controller import Handler, ReconcileError, register_handler
from nixop.utils import atomic_write_file

HOSTS_FILE = "/etc/hosts"

_LOOPBACK_LINES = "127.0.0.1 localhost\n::1 localhost ip6-localhost ip6-loopback\n\n"


def parse_hosts(text):
    """Return the entries of hosts-file text that have an address and a name."""
    entries = []
    for raw in text.split("\n"):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) >= 2:
            entries.append(HostEntry(ip=fields[0], hostnames=fields[1:]))
    return entries


def _normalized(entries):
    return sorted(((e.ip, sorted(e.hostnames)) for e in entries), key=itemgetter(0))


def hosts_equal(current, desired):
    """Compare entry lists ignoring the order of entries and of hostnames."""
    return len(current) == len(desired) and _normalized(current) == _normalized(desired)


def render_hosts(entries):
    """Render hosts-file text with loopback lines followed by ``entries``."""
    body = "".join(f"{e.ip} {' '.join(e.hostnames)}\n" for e in entries)
    return COMMENT_HEADER + _LOOPBACK_LINES + body


class LinuxHostsHandler(Handler):
    """Writes the configured host entries to the hosts file when they differ."""

    def __init__(self, path=HOSTS_FILE):
        self.path = path

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def current_hosts(self):
        try:
            text = Path(self.path).read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return []
        return parse_hosts(text)

    def reconcile(self, config):
        """Rewrite the hosts file if needed; return True when it was written."""
        try:
            current = self.current_hosts()
        except OSError as exc:
            raise ReconcileError(f"failed to read current hosts: {exc}") from exc

        desired = [HostEntry(h.ip, list(h.hostnames)) for h in config.spec.network.hosts]
        if hosts_equal(current, desired):
            return False
        atomic_write_file(render_hosts(desired), self.path, 0o644)
        return True


register_handler("hosts", LinuxHostsHandler())