"""Firewall handler.

The configuration carries firewall rules, but there is no backend that applies
them. An empty rule set is accepted; any rule is reported as an error.
"""

from __future__ import annotations

from nixop.controller import Handler, ReconcileError, register_handler


class LinuxFirewallHandler(Handler):
    """Accepts an empty rule set and refuses rules it cannot apply."""

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        """Return False when there is nothing to apply; raise for any rule."""
        rules = config.spec.network.firewall.rules
        if not rules:
            return False
        raise ReconcileError(
            f"cannot apply {len(rules)} firewall rule(s): no firewall backend is available"
        )


register_handler("firewall", LinuxFirewallHandler())