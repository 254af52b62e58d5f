"""Sets the system timezone."""

from __future__ import annotations

import subprocess

from nixop.controller import Handler, ReconcileError, register_handler


class LinuxSystemHandler(Handler):
    """Applies the configured timezone with timedatectl."""

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        args = ["timedatectl", "set-timezone", config.spec.system.timezone]
        try:
            result = subprocess.run(
                args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
            )
        except OSError as exc:
            raise ReconcileError(f"failed to set timezone: {exc}") from exc
        if result.returncode != 0:
            output = (result.stdout or b"").decode("utf-8", errors="replace")
            raise ReconcileError(
                f"failed to set timezone: exit status {result.returncode}, output: {output}"
            )


register_handler("system", LinuxSystemHandler())