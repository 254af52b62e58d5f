"""Configures serial port line settings with stty."""

from __future__ import annotations

import subprocess

from nixop.controller import Handler, ReconcileError, register_handler

_STOP_BITS_PREFIX = {1: "", 2: "-"}


def stty_arguments(serial):
    """Return the stty arguments that apply ``serial`` to its device."""
    return [
        "-F",
        serial.device,
        str(serial.baud_rate),
        f"cs{serial.data_bits}",
        f"-{serial.parity}",
        f"-{_STOP_BITS_PREFIX.get(serial.stop_bits, '')}stopb",
    ]


class LinuxSerialHandler(Handler):
    """Runs stty for every configured serial port."""

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        for serial in config.spec.serials:
            what = f"configure serial port {serial.device}"
            try:
                result = subprocess.run(
                    ["stty", *stty_arguments(serial)],
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


register_handler("serial", LinuxSerialHandler())