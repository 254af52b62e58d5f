"""Applies interface settings through every installed network backend."""

from __future__ import annotations

from nixop.controller import Handler, ReconcileError, register_handler
from nixop.handlers.network.ifupdown import Ifupdown
from nixop.handlers.network.netplan import Netplan
from nixop.handlers.network.networkmanager import NetworkManager
from nixop.utils import match_node_selector


class LinuxNetworkHandler(Handler):
    """Configures the interfaces selected for this node with each backend present."""

    def __init__(self, backends=None):
        if backends is None:
            backends = [NetworkManager(), Netplan(), Ifupdown()]
        self.backends = list(backends)

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        for iface in config.spec.network.interfaces:
            try:
                selected = match_node_selector(iface.node_selector)
            except OSError as exc:
                raise ReconcileError(f"failed to check node selector: {exc}") from exc
            if not selected:
                continue
            for backend in self.backends:
                if not backend.is_installed():
                    continue
                backend.configure(iface)
                backend.reload()


register_handler("network", LinuxNetworkHandler())