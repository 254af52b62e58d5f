"""The interface every network configuration backend provides."""

from __future__ import annotations

import abc
import subprocess


class NetworkBackend(abc.ABC):
    """A tool that owns interface configuration, such as NetworkManager."""

    @abc.abstractmethod
    def is_installed(self):
        """Return True if the backend is present on this system."""

    @abc.abstractmethod
    def configure(self, iface):
        """Write the backend's configuration for ``iface``."""

    @abc.abstractmethod
    def reload(self):
        """Make the running backend pick up its configuration."""


def is_service_active(service):
    """Return True if systemd reports ``service`` as active."""
    try:
        result = subprocess.run(
            ["systemctl", "is-active", service],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0