"""Manages chrony's server list and service state."""

from __future__ import annotations

import subprocess

from nixop.config import COMMENT_HEADER
from nixop.controller import Handler, ReconcileError, register_handler
from nixop.utils import atomic_write_file

CHRONY_CONF = "/etc/chrony.conf"


def render_chrony_conf(servers):
    """Render chrony.conf text using ``servers`` with iburst."""
    return COMMENT_HEADER + "".join(f"server {server} iburst\n" for server in servers)


def _run(args, what):
    try:
        result = subprocess.run(
            args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as exc:
        raise ReconcileError(f"failed to {what}: {exc}") from exc
    if result.returncode != 0:
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        raise ReconcileError(
            f"failed to {what}: exit status {result.returncode}, output: {output}"
        )


class LinuxNTPHandler(Handler):
    """Configures chronyd, or stops it when NTP is disabled."""

    def __init__(self, path=CHRONY_CONF):
        self.path = path

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        ntp = config.spec.system.ntp
        if not ntp.enabled:
            _run(["systemctl", "stop", "chronyd"], "stop chronyd")
            return

        try:
            atomic_write_file(render_chrony_conf(ntp.servers), self.path, 0o644)
        except OSError as exc:
            raise ReconcileError(f"failed to write chrony.conf: {exc}") from exc

        _run(["systemctl", "restart", "chronyd"], "restart chronyd")


register_handler("ntp", LinuxNTPHandler())