import subprocess
from unittest import mock

import pytest

from nixop.config import COMMENT_HEADER, Interface
from nixop.controller import ReconcileError
from nixop.handlers.network.ifupdown import Ifupdown, render_interfaces


def _backend(tmp_path, with_dir=True):
    main = tmp_path / "interfaces"
    directory = tmp_path / "interfaces.d"
    if with_dir:
        directory.mkdir()
    return Ifupdown(
        ifup_binary=str(tmp_path / "ifup"),
        interfaces_file=str(main),
        interfaces_dir=str(directory),
    )


def _fake_run(active, returncode=0):
    calls = []

    def run(args, **kwargs):
        calls.append(list(args))
        if args[:2] == ["systemctl", "is-active"]:
            return subprocess.CompletedProcess(args, 0 if active else 3)
        return subprocess.CompletedProcess(args, returncode, stdout=b"boom")

    return run, calls


def test_render_full_stanza():
    iface = Interface(
        name="eth0",
        ip_address="10.0.0.2/24",
        gateway="10.0.0.1",
        ipv6_address="fd00::2/64",
        ipv6_gateway="fd00::1",
        mtu=1500,
    )
    assert render_interfaces(iface) == (
        COMMENT_HEADER
        + "auto eth0\n"
        + "iface eth0 inet static\n"
        + "    address 10.0.0.2/24\n"
        + "    gateway 10.0.0.1\n"
        + "iface eth0 inet6 static\n"
        + "    address fd00::2/64\n"
        + "    gateway fd00::1\n"
        + "    mtu 1500\n"
    )


def test_render_without_addresses_keeps_auto_and_mtu():
    text = render_interfaces(Interface(name="eth1", mtu=9000))
    assert text == COMMENT_HEADER + "auto eth1\n    mtu 9000\n"


def test_render_omits_missing_gateway():
    text = render_interfaces(Interface(name="eth0", ip_address="10.0.0.2/24"))
    assert "gateway" not in text
    assert "    address 10.0.0.2/24\n" in text


def test_is_installed(tmp_path):
    backend = _backend(tmp_path)
    assert backend.is_installed() is False
    (tmp_path / "ifup").write_text("")
    assert backend.is_installed() is True


def test_find_config_in_main_file(tmp_path):
    backend = _backend(tmp_path)
    (tmp_path / "interfaces").write_text("auto eth0\niface eth0 inet dhcp\n")
    assert backend.find_config(Interface(name="eth0")) == str(tmp_path / "interfaces")


def test_find_config_in_directory(tmp_path):
    backend = _backend(tmp_path)
    (tmp_path / "interfaces").write_text("iface lo inet loopback\n")
    (tmp_path / "interfaces.d" / "a").write_text("iface eth1 inet dhcp\n")
    (tmp_path / "interfaces.d" / "b").write_text("iface eth0 inet dhcp\n")
    (tmp_path / "interfaces.d" / "sub").mkdir()
    assert backend.find_config(Interface(name="eth0")) == str(
        tmp_path / "interfaces.d" / "b"
    )


def test_find_config_needs_trailing_space(tmp_path):
    backend = _backend(tmp_path)
    (tmp_path / "interfaces.d" / "x").write_text("iface eth00 inet dhcp\n")
    assert backend.find_config(Interface(name="eth0")) == str(
        tmp_path / "interfaces.d" / "eth0"
    )


def test_find_config_missing_directory_raises(tmp_path):
    backend = _backend(tmp_path, with_dir=False)
    with pytest.raises(ReconcileError, match="interfaces.d"):
        backend.find_config(Interface(name="eth0"))


def test_configure_writes_then_is_idempotent(tmp_path):
    backend = _backend(tmp_path)
    iface = Interface(name="eth0", ip_address="10.0.0.2/24", mtu=1500)
    assert backend.configure(iface) is True
    target = tmp_path / "interfaces.d" / "eth0"
    assert target.read_text() == render_interfaces(iface)
    assert target.stat().st_mode & 0o777 == 0o644
    assert backend.configure(iface) is False


def test_configure_rewrites_changed_file(tmp_path):
    backend = _backend(tmp_path)
    target = tmp_path / "interfaces.d" / "eth0"
    target.write_text("iface eth0 inet dhcp\n")
    iface = Interface(name="eth0", ip_address="10.0.0.2/24", mtu=1400)
    assert backend.configure(iface) is True
    assert target.read_text() == render_interfaces(iface)


def test_reload_skips_inactive_service(tmp_path):
    run, calls = _fake_run(active=False)
    with mock.patch("subprocess.run", side_effect=run):
        result = _backend(tmp_path).reload()
    assert result is None
    assert calls == [["systemctl", "is-active", "networking"]]


def test_reload_restarts_active_service(tmp_path):
    run, calls = _fake_run(active=True)
    with mock.patch("subprocess.run", side_effect=run):
        result = _backend(tmp_path).reload()
    assert result is None
    assert calls[-1] == ["systemctl", "restart", "networking"]


def test_reload_failure_raises(tmp_path):
    run, _ = _fake_run(active=True, returncode=1)
    with mock.patch("subprocess.run", side_effect=run):
        with pytest.raises(ReconcileError, match="restart networking"):
            _backend(tmp_path).reload()