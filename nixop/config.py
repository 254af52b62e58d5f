"""The declarative system configuration document and its parser."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

from nixop.utils import NodeSelector

COMMENT_HEADER = "# Generated by nix-operator. DO NOT EDIT.\n"


class ConfigError(ValueError):
    """The configuration document does not have the expected shape."""


@dataclass
class Metadata:
    name: str = ""


@dataclass
class Interface:
    node_selector: NodeSelector = field(default_factory=NodeSelector)
    name: str = ""
    ip_address: str = ""
    ipv6_address: str = ""
    gateway: str = ""
    ipv6_gateway: str = ""
    mtu: int = 0
    mac_address: str = ""


@dataclass
class SerialConfig:
    device: str = ""
    baud_rate: int = 0
    data_bits: int = 0
    stop_bits: int = 0
    parity: str = ""


@dataclass
class DNSConfig:
    nameservers: list[str] = field(default_factory=list)


@dataclass
class HostEntry:
    ip: str = ""
    hostnames: list[str] = field(default_factory=list)


@dataclass
class FirewallRule:
    port: int = 0
    protocol: str = ""
    action: str = ""


@dataclass
class Firewall:
    rules: list[FirewallRule] = field(default_factory=list)


@dataclass
class NetworkConfig:
    interfaces: list[Interface] = field(default_factory=list)
    dns: DNSConfig = field(default_factory=DNSConfig)
    hosts: list[HostEntry] = field(default_factory=list)
    firewall: Firewall = field(default_factory=Firewall)


@dataclass
class NTPConfig:
    enabled: bool = False
    servers: list[str] = field(default_factory=list)


@dataclass
class SystemConfig:
    timezone: str = ""
    ntp: NTPConfig = field(default_factory=NTPConfig)


@dataclass
class UdevRule:
    name: str = ""
    subsystem: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    symlink: str = ""


@dataclass
class UdevConfig:
    rules: list[UdevRule] = field(default_factory=list)


@dataclass
class Spec:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    system: SystemConfig = field(default_factory=SystemConfig)
    serials: list[SerialConfig] = field(default_factory=list)
    udev: UdevConfig = field(default_factory=UdevConfig)


@dataclass
class SystemConfiguration:
    api_version: str = ""
    kind: str = ""
    metadata: Metadata = field(default_factory=Metadata)
    spec: Spec = field(default_factory=Spec)


def _mapping(value, where):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _string(value, where):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, datetime.date):
        return value.isoformat()
    raise ConfigError(f"{where}: expected a scalar, got {type(value).__name__}")


def _integer(value, where):
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ConfigError(f"{where}: expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ConfigError(f"{where}: expected an integer, got {value!r}")


def _boolean(value, where):
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{where}: expected a boolean, got {value!r}")


def _list_of(convert):
    def parse(value, where):
        if value is None:
            return []
        if not isinstance(value, list):
            raise ConfigError(f"{where}: expected a sequence, got {type(value).__name__}")
        return [convert(item, f"{where}[{index}]") for index, item in enumerate(value)]

    return parse


def _string_map(value, where):
    return {
        _string(key, where): _string(item, f"{where}.{key}")
        for key, item in _mapping(value, where).items()
    }


def _get(mapping, key, where, convert):
    return convert(mapping.get(key), f"{where}.{key}")


def _node_selector(value, where):
    m = _mapping(value, where)
    return NodeSelector(
        mac_address=_get(m, "macAddress", where, _string),
        hostname=_get(m, "hostname", where, _string),
    )


def _interface(value, where):
    m = _mapping(value, where)
    return Interface(
        node_selector=_get(m, "nodeSelector", where, _node_selector),
        name=_get(m, "name", where, _string),
        ip_address=_get(m, "ipAddress", where, _string),
        ipv6_address=_get(m, "ipv6Address", where, _string),
        gateway=_get(m, "gateway", where, _string),
        ipv6_gateway=_get(m, "ipv6Gateway", where, _string),
        mtu=_get(m, "mtu", where, _integer),
        mac_address=_get(m, "macAddress", where, _string),
    )


def _serial(value, where):
    m = _mapping(value, where)
    return SerialConfig(
        device=_get(m, "device", where, _string),
        baud_rate=_get(m, "baudRate", where, _integer),
        data_bits=_get(m, "dataBits", where, _integer),
        stop_bits=_get(m, "stopBits", where, _integer),
        parity=_get(m, "parity", where, _string),
    )


def _host_entry(value, where):
    m = _mapping(value, where)
    return HostEntry(
        ip=_get(m, "ip", where, _string),
        hostnames=_get(m, "hostnames", where, _list_of(_string)),
    )


def _firewall_rule(value, where):
    m = _mapping(value, where)
    return FirewallRule(
        port=_get(m, "port", where, _integer),
        protocol=_get(m, "protocol", where, _string),
        action=_get(m, "action", where, _string),
    )


def _network(value, where):
    m = _mapping(value, where)
    dns = _mapping(m.get("dns"), f"{where}.dns")
    firewall = _mapping(m.get("firewall"), f"{where}.firewall")
    return NetworkConfig(
        interfaces=_get(m, "interfaces", where, _list_of(_interface)),
        dns=DNSConfig(
            nameservers=_get(dns, "nameservers", f"{where}.dns", _list_of(_string))
        ),
        hosts=_get(m, "hosts", where, _list_of(_host_entry)),
        firewall=Firewall(
            rules=_get(firewall, "rules", f"{where}.firewall", _list_of(_firewall_rule))
        ),
    )


def _system(value, where):
    m = _mapping(value, where)
    ntp = _mapping(m.get("ntp"), f"{where}.ntp")
    return SystemConfig(
        timezone=_get(m, "timezone", where, _string),
        ntp=NTPConfig(
            enabled=_get(ntp, "enabled", f"{where}.ntp", _boolean),
            servers=_get(ntp, "servers", f"{where}.ntp", _list_of(_string)),
        ),
    )


def _udev_rule(value, where):
    m = _mapping(value, where)
    return UdevRule(
        name=_get(m, "name", where, _string),
        subsystem=_get(m, "subsystem", where, _string),
        attrs=_get(m, "attrs", where, _string_map),
        symlink=_get(m, "symlink", where, _string),
    )


def _spec(value, where):
    m = _mapping(value, where)
    udev = _mapping(m.get("udev"), f"{where}.udev")
    return Spec(
        network=_get(m, "network", where, _network),
        system=_get(m, "system", where, _system),
        serials=_get(m, "serials", where, _list_of(_serial)),
        udev=UdevConfig(rules=_get(udev, "rules", f"{where}.udev", _list_of(_udev_rule))),
    )


def configuration_from_dict(data):
    """Build a SystemConfiguration from a decoded YAML document.

    Missing keys take their empty defaults; values of the wrong kind raise
    ConfigError.
    """
    m = _mapping(data, "document")
    metadata = _mapping(m.get("metadata"), "metadata")
    return SystemConfiguration(
        api_version=_string(m.get("apiVersion"), "apiVersion"),
        kind=_string(m.get("kind"), "kind"),
        metadata=Metadata(name=_string(metadata.get("name"), "metadata.name")),
        spec=_spec(m.get("spec"), "spec"),
    )