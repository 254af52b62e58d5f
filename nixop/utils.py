"""File and node helpers shared by the handlers."""

from __future__ import annotations

import contextlib
import os
import socket
import tempfile
from dataclasses import dataclass

import psutil


@dataclass
class NodeSelector:
    """Restricts a setting to the node with this hostname and/or MAC address."""

    mac_address: str = ""
    hostname: str = ""


def atomic_write_file(content, filename, perm):
    """Write ``content`` to ``filename`` atomically, leaving it with mode ``perm``.

    The data goes to a temporary file in the same directory, which is synced,
    given its permissions and then renamed over the target.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    path = os.fspath(filename)
    directory = os.path.dirname(path) or "."

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=os.path.basename(path) + ".tmp.", dir=directory
        )
    except OSError as exc:
        raise OSError(f"failed to create temp file: {exc}") from exc

    step = "write"
    try:
        with os.fdopen(fd, "wb") as swap:
            swap.write(content)
            swap.flush()
            step = "sync"
            os.fsync(swap.fileno())
            step = "close"
        step = "chmod"
        os.chmod(tmp_name, perm)
        step = "rename"
        os.replace(tmp_name, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise OSError(f"failed to {step} temp file: {exc}") from exc


def match_node_selector(selector):
    """Return True if this node satisfies every field set in ``selector``."""
    if selector.hostname:
        try:
            hostname = socket.gethostname()
        except OSError as exc:
            raise OSError(f"failed to get hostname: {exc}") from exc
        if hostname != selector.hostname:
            return False

    if selector.mac_address:
        try:
            interfaces = psutil.net_if_addrs()
        except (OSError, psutil.Error) as exc:
            raise OSError(f"failed to get network interfaces: {exc}") from exc
        wanted = selector.mac_address.lower()
        found = any(
            addr.family == psutil.AF_LINK and addr.address.lower() == wanted
            for addresses in interfaces.values()
            for addr in addresses
        )
        if not found:
            return False

    return True