import pytest

from nixop.config import (
    ConfigError,
    DNSConfig,
    FirewallRule,
    HostEntry,
    Interface,
    NTPConfig,
    SerialConfig,
    SystemConfiguration,
    UdevRule,
    configuration_from_dict,
)
from nixop.utils import NodeSelector

DOCUMENT = {
    "apiVersion": "v1",
    "kind": "SystemConfiguration",
    "metadata": {"name": "edge"},
    "spec": {
        "network": {
            "interfaces": [
                {
                    "nodeSelector": {"hostname": "node-a", "macAddress": "02:00:00:00:00:01"},
                    "name": "eth0",
                    "ipAddress": "192.168.1.10/24",
                    "ipv6Address": "fd00::10/64",
                    "gateway": "192.168.1.1",
                    "ipv6Gateway": "fd00::1",
                    "mtu": 1500,
                }
            ],
            "dns": {"nameservers": ["1.1.1.1", "8.8.8.8"]},
            "hosts": [{"ip": "10.0.0.5", "hostnames": ["db", "db.local"]}],
            "firewall": {"rules": [{"port": 22, "protocol": "tcp", "action": "allow"}]},
        },
        "system": {
            "timezone": "Asia/Shanghai",
            "ntp": {"enabled": True, "servers": ["pool.example.com"]},
        },
        "serials": [
            {"device": "/dev/ttyS0", "baudRate": 9600, "dataBits": 8, "stopBits": 1, "parity": "parenb"}
        ],
        "udev": {
            "rules": [
                {"name": "gps", "subsystem": "tty", "attrs": {"idVendor": "1234"}, "symlink": "gps0"}
            ]
        },
    },
}


def test_full_document_is_parsed():
    cfg = configuration_from_dict(DOCUMENT)
    assert cfg.api_version == "v1"
    assert cfg.kind == "SystemConfiguration"
    assert cfg.metadata.name == "edge"
    assert cfg.spec.network.interfaces == [
        Interface(
            node_selector=NodeSelector(mac_address="02:00:00:00:00:01", hostname="node-a"),
            name="eth0",
            ip_address="192.168.1.10/24",
            ipv6_address="fd00::10/64",
            gateway="192.168.1.1",
            ipv6_gateway="fd00::1",
            mtu=1500,
        )
    ]
    assert cfg.spec.network.dns == DNSConfig(nameservers=["1.1.1.1", "8.8.8.8"])
    assert cfg.spec.network.hosts == [HostEntry(ip="10.0.0.5", hostnames=["db", "db.local"])]
    assert cfg.spec.network.firewall.rules == [FirewallRule(port=22, protocol="tcp", action="allow")]
    assert cfg.spec.system.timezone == "Asia/Shanghai"
    assert cfg.spec.system.ntp == NTPConfig(enabled=True, servers=["pool.example.com"])
    assert cfg.spec.serials == [
        SerialConfig(device="/dev/ttyS0", baud_rate=9600, data_bits=8, stop_bits=1, parity="parenb")
    ]
    assert cfg.spec.udev.rules == [
        UdevRule(name="gps", subsystem="tty", attrs={"idVendor": "1234"}, symlink="gps0")
    ]


@pytest.mark.parametrize("data", [None, {}])
def test_empty_document_gives_defaults(data):
    assert configuration_from_dict(data) == SystemConfiguration()


def test_missing_sections_are_empty():
    cfg = configuration_from_dict({"spec": {"network": {"dns": None}}})
    assert cfg.spec.network.dns.nameservers == []
    assert cfg.spec.serials == []
    assert cfg.spec.system.ntp.enabled is False


def test_numeric_scalar_into_string_field():
    cfg = configuration_from_dict({"metadata": {"name": 42}})
    assert cfg.metadata.name == "42"


def test_invalid_integer_raises():
    with pytest.raises(ConfigError, match="mtu"):
        configuration_from_dict({"spec": {"network": {"interfaces": [{"mtu": "abc"}]}}})


def test_invalid_boolean_raises():
    with pytest.raises(ConfigError, match="enabled"):
        configuration_from_dict({"spec": {"system": {"ntp": {"enabled": "maybe"}}}})


def test_non_mapping_document_raises():
    with pytest.raises(ConfigError):
        configuration_from_dict(["not", "a", "mapping"])


def test_sequence_expected_raises():
    with pytest.raises(ConfigError, match="nameservers"):
        configuration_from_dict({"spec": {"network": {"dns": {"nameservers": "1.1.1.1"}}}})