"""NetworkManager keyfile backend."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from nixop.config import COMMENT_HEADER
from nixop.controller import ReconcileError
from nixop.handlers.network.base import NetworkBackend, is_service_active
from nixop.utils import atomic_write_file

NETWORKMANAGER_BINARY = "/usr/sbin/NetworkManager"
CONNECTIONS_DIR = "/etc/NetworkManager/system-connections"


def _address_section(address, gateway):
    if not address:
        return ["method=disabled\n"]
    lines = [f"address1={address}\n", "method=manual\n"]
    if gateway:
        lines.append(f"gateway={gateway}\n")
    return lines


def render_nmconnection(iface):
    """Render a NetworkManager keyfile for ``iface``."""
    parts = [
        COMMENT_HEADER,
        "[connection]\n",
        f"id={iface.name}\n",
        "type=ethernet\n",
        f"interface-name={iface.name}\n",
        "\n[ipv4]\n",
        *_address_section(iface.ip_address, iface.gateway),
        "\n[ipv6]\n",
        *_address_section(iface.ipv6_address, iface.ipv6_gateway),
    ]
    return "".join(parts)


class NetworkManager(NetworkBackend):
    """Writes one keyfile per interface and reloads connections via nmcli."""

    def __init__(self, binary=NETWORKMANAGER_BINARY, connections_dir=CONNECTIONS_DIR):
        self.binary = binary
        self.connections_dir = connections_dir

    def is_installed(self):
        return os.path.exists(self.binary)

    def configure(self, iface):
        """Write the keyfile if it differs; return True when it was written."""
        path = Path(self.connections_dir) / f"{iface.name}.nmconnection"
        desired = render_nmconnection(iface).encode("utf-8")
        try:
            if path.read_bytes() == desired:
                return False
        except OSError:
            pass
        atomic_write_file(desired, path, 0o600)
        return True

    def reload(self):
        if not is_service_active("NetworkManager"):
            return
        what = "reload NetworkManager"
        try:
            result = subprocess.run(
                ["nmcli", "connection", "reload"],
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