"""Handler selection, configuration loading and the reconcile loop."""

from __future__ import annotations

import abc
import dataclasses
import errno
import logging
import os
import threading
import time
from dataclasses import dataclass, field

import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from nixop.config import ConfigError, configuration_from_dict

log = logging.getLogger(__name__)

OS_RELEASE_PATH = "/etc/os-release"
KERNEL_RELEASE_PATH = "/proc/sys/kernel/osrelease"

REQUIRED_TYPES = (
    "network",
    "dns",
    "hosts",
    "firewall",
    "system",
    "ntp",
    "serial",
    "udev",
)


class ControllerError(Exception):
    """The controller cannot be set up."""


class ReconcileError(Exception):
    """A handler failed to bring the system to the desired state."""


@dataclass(frozen=True)
class OSInfo:
    """Identity of the running operating system."""

    id: str = ""
    version_id: str = ""
    kernel_name: str = ""
    kernel_ver: str = ""


class Handler(abc.ABC):
    """Applies one part of the configuration to the system."""

    @abc.abstractmethod
    def match(self, os_info):
        """Return True if this handler supports the given operating system."""

    @abc.abstractmethod
    def reconcile(self, config):
        """Bring the system in line with ``config``."""


class HandlerRegistry:
    """Handlers registered per configuration type, in registration order."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}

    def register(self, type_name, handler):
        self._handlers.setdefault(type_name, []).append(handler)

    def select(self, os_info):
        """Pick the first matching handler for every required type."""
        selected = {}
        for type_name in REQUIRED_TYPES:
            candidates = self._handlers.get(type_name)
            if not candidates:
                raise ControllerError(f"no handler registered for type: {type_name}")
            handler = next((h for h in candidates if h.match(os_info)), None)
            if handler is None:
                raise ControllerError(
                    f"no compatible handler found for type {type_name} "
                    f"on OS {os_info.id} {os_info.version_id}"
                )
            selected[type_name] = handler
        return selected


DEFAULT_REGISTRY = HandlerRegistry()


def register_handler(type_name, handler):
    """Register ``handler`` for ``type_name`` in the default registry."""
    DEFAULT_REGISTRY.register(type_name, handler)


def parse_os_release(text):
    """Read ID and VERSION_ID from os-release text."""
    values = {}
    for line in text.split("\n"):
        key, sep, value = line.partition("=")
        if sep:
            values[key] = value.strip('"')
    return OSInfo(id=values.get("ID", ""), version_id=values.get("VERSION_ID", ""))


def get_os_info(os_release_path=None, kernel_release_path=None):
    """Describe the running system from os-release and the kernel release file."""
    os_release_path = os_release_path or OS_RELEASE_PATH
    kernel_release_path = kernel_release_path or KERNEL_RELEASE_PATH
    with open(os_release_path, encoding="utf-8", errors="replace") as fh:
        info = parse_os_release(fh.read())
    with open(kernel_release_path, encoding="utf-8", errors="replace") as fh:
        kernel = fh.read().strip()
    return dataclasses.replace(info, kernel_name="Linux", kernel_ver=kernel)


def load_config(path):
    """Read and parse the YAML configuration at ``path``."""
    with open(path, "rb") as fh:
        data = fh.read()
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return configuration_from_dict(document)


class _ConfigWatch(FileSystemEventHandler):
    def __init__(self, path, callback):
        super().__init__()
        self._path = path
        self._callback = callback

    def on_modified(self, event):
        if event.is_directory:
            return
        if os.path.abspath(os.fsdecode(event.src_path)) == self._path:
            self._callback()


@dataclass
class Controller:
    """Keeps the system in line with a configuration file."""

    config_path: str
    handlers: dict
    os_info: OSInfo
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def reconcile(self):
        """Load the configuration and run every handler; return the errors seen."""
        with self._lock:
            try:
                config = load_config(self.config_path)
            except (OSError, ConfigError) as exc:
                log.error("Error loading config: %s", exc)
                return [exc]

            errors = []
            for handler in self.handlers.values():
                try:
                    handler.reconcile(config)
                except Exception as exc:  # one failing handler must not stop the rest
                    log.error("Reconciliation error: %s", exc)
                    errors.append(exc)
            return errors

    def run(self):
        """Reconcile now and again whenever the configuration file is written."""
        path = os.path.abspath(self.config_path)
        if not os.path.isfile(path):
            raise FileNotFoundError(errno.ENOENT, "configuration file not found", path)

        observer = Observer()
        observer.schedule(
            _ConfigWatch(path, self.reconcile), os.path.dirname(path), recursive=False
        )
        observer.start()
        try:
            self.reconcile()
            while observer.is_alive():
                time.sleep(1)
        finally:
            observer.stop()
            observer.join()


def new_controller(config_path, registry=None):
    """Create a controller with the handlers that suit this system."""
    try:
        os_info = get_os_info()
    except OSError as exc:
        raise ControllerError(f"failed to get OS info: {exc}") from exc
    if registry is None:
        registry = DEFAULT_REGISTRY
    return Controller(
        config_path=config_path, handlers=registry.select(os_info), os_info=os_info
    )