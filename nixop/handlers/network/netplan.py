"""Netplan YAML backend."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import yaml

from nixop.controller import ReconcileError
from nixop.handlers.network.base import NetworkBackend, is_service_active
from nixop.utils import atomic_write_file

NETPLAN_BINARY = "/usr/sbin/netplan"
NETPLAN_DIR = "/etc/netplan"


def desired_netplan(iface):
    """Return the netplan document that configures ``iface``."""
    settings = {"mtu": iface.mtu}
    addresses = []
    if iface.ip_address:
        addresses.append(iface.ip_address)
        if iface.gateway:
            settings["gateway4"] = iface.gateway
    if iface.ipv6_address:
        addresses.append(iface.ipv6_address)
        if iface.ipv6_gateway:
            settings["gateway6"] = iface.ipv6_gateway
    if addresses:
        settings["addresses"] = addresses
    return {"network": {"version": 2, "ethernets": {iface.name: settings}}}


def _defines_interface(document, name):
    if not isinstance(document, dict):
        return False
    network = document.get("network")
    if not isinstance(network, dict):
        return False
    ethernets = network.get("ethernets")
    return isinstance(ethernets, dict) and name in ethernets


class Netplan(NetworkBackend):
    """Writes a netplan document per interface and applies it."""

    def __init__(self, binary=NETPLAN_BINARY, config_dir=NETPLAN_DIR):
        self.binary = binary
        self.config_dir = config_dir

    def is_installed(self):
        return os.path.exists(self.binary)

    def find_config(self, iface):
        """Return the file that already defines ``iface``, or where a new one goes."""
        try:
            with os.scandir(self.config_dir) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            raise ReconcileError(f"failed to read netplan directory: {exc}") from exc

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                continue
            path = os.path.join(self.config_dir, entry.name)
            try:
                document = yaml.safe_load(Path(path).read_bytes())
            except (OSError, yaml.YAMLError):
                continue
            if _defines_interface(document, iface.name):
                return path

        return os.path.join(self.config_dir, f"99-{iface.name}.yaml")

    def configure(self, iface):
        """Write the document if it differs; return True when it was written."""
        path = self.find_config(iface)
        desired = desired_netplan(iface)
        try:
            if yaml.safe_load(Path(path).read_bytes()) == desired:
                return False
        except (OSError, yaml.YAMLError):
            pass
        data = yaml.safe_dump(desired, default_flow_style=False)
        atomic_write_file(data, path, 0o644)
        return True

    def reload(self):
        if not is_service_active("systemd-networkd") and not is_service_active(
            "NetworkManager"
        ):
            return
        what = "apply netplan"
        try:
            result = subprocess.run(
                ["netplan", "apply"],
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