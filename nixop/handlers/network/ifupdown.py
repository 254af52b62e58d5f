"""ifupdown (/etc/network/interfaces) backend."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from nixop.config import COMMENT_HEADER
from nixop.controller import ReconcileError
from nixop.handlers.network.base import NetworkBackend, is_service_active
from nixop.utils import atomic_write_file

IFUP_BINARY = "/sbin/ifup"
INTERFACES_FILE = "/etc/network/interfaces"
INTERFACES_DIR = "/etc/network/interfaces.d"


def render_interfaces(iface):
    """Render an ifupdown stanza for ``iface``."""
    lines = [COMMENT_HEADER, f"auto {iface.name}\n"]
    if iface.ip_address:
        lines.append(f"iface {iface.name} inet static\n")
        lines.append(f"    address {iface.ip_address}\n")
        if iface.gateway:
            lines.append(f"    gateway {iface.gateway}\n")
    if iface.ipv6_address:
        lines.append(f"iface {iface.name} inet6 static\n")
        lines.append(f"    address {iface.ipv6_address}\n")
        if iface.ipv6_gateway:
            lines.append(f"    gateway {iface.ipv6_gateway}\n")
    lines.append(f"    mtu {iface.mtu}\n")
    return "".join(lines)


class Ifupdown(NetworkBackend):
    """Writes interface stanzas and restarts the networking service."""

    def __init__(
        self,
        ifup_binary=IFUP_BINARY,
        interfaces_file=INTERFACES_FILE,
        interfaces_dir=INTERFACES_DIR,
    ):
        self.ifup_binary = ifup_binary
        self.interfaces_file = interfaces_file
        self.interfaces_dir = interfaces_dir

    def is_installed(self):
        return os.path.exists(self.ifup_binary)

    def find_config(self, iface):
        """Return the file that already defines ``iface``, or where a new one goes."""
        needle = f"iface {iface.name} "
        try:
            text = Path(self.interfaces_file).read_text(
                encoding="utf-8", errors="surrogateescape"
            )
        except OSError:
            text = ""
        if any(needle in line for line in text.splitlines()):
            return str(self.interfaces_file)

        try:
            with os.scandir(self.interfaces_dir) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            raise ReconcileError(f"failed to read interfaces.d directory: {exc}") from exc

        wanted = needle.encode("utf-8")
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                continue
            path = os.path.join(self.interfaces_dir, entry.name)
            try:
                data = Path(path).read_bytes()
            except OSError:
                continue
            if wanted in data:
                return path

        return os.path.join(self.interfaces_dir, iface.name)

    def configure(self, iface):
        """Write the stanza if it differs; return True when it was written."""
        path = self.find_config(iface)
        desired = render_interfaces(iface).encode("utf-8")
        try:
            if Path(path).read_bytes() == desired:
                return False
        except OSError:
            pass
        atomic_write_file(desired, path, 0o644)
        return True

    def reload(self):
        if not is_service_active("networking"):
            return
        what = "restart networking"
        try:
            result = subprocess.run(
                ["systemctl", "restart", "networking"],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            raise ReconcileError(f"failed to {what}: {exc}") from exc
        if result.returncode != 0:
            output = (result.stdout or b"").decode("utf-8", errors="replace")
            raise ReconcileError(
                f"failed to {what}: exit status {result.returncode}, output: {output}"
            )