import subprocess
from unittest import mock

import pytest

from nixop.config import COMMENT_HEADER, SystemConfiguration
from nixop.controller import OSInfo, ReconcileError
from nixop.handlers.ntp import LinuxNTPHandler, render_chrony_conf


class FakeRun:
    def __init__(self, returncode=0, output=b""):
        self.returncode = returncode
        self.output = output
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        return subprocess.CompletedProcess(args, self.returncode, stdout=self.output)


def _config(enabled, servers=()):
    config = SystemConfiguration()
    config.spec.system.ntp.enabled = enabled
    config.spec.system.ntp.servers = list(servers)
    return config


def test_render_pins_format():
    assert render_chrony_conf(["pool.example.com"]) == (
        COMMENT_HEADER + "server pool.example.com iburst\n"
    )


def test_render_empty_is_header_only():
    assert render_chrony_conf([]) == COMMENT_HEADER


def test_render_keeps_order():
    text = render_chrony_conf(["b.example.com", "a.example.com"])
    assert text.index("b.example.com") < text.index("a.example.com")


def test_matches_linux_only():
    handler = LinuxNTPHandler()
    assert handler.match(OSInfo(kernel_name="Linux")) is True
    assert handler.match(OSInfo(kernel_name="")) is False


def test_disabled_stops_service_without_writing(tmp_path):
    path = tmp_path / "chrony.conf"
    fake = FakeRun()
    with mock.patch("subprocess.run", fake):
        LinuxNTPHandler(path=str(path)).reconcile(_config(False, ["a.example.com"]))
    assert fake.calls == [["systemctl", "stop", "chronyd"]]
    assert not path.exists()


def test_enabled_writes_and_restarts(tmp_path):
    path = tmp_path / "chrony.conf"
    servers = ["a.example.com", "b.example.com"]
    fake = FakeRun()
    with mock.patch("subprocess.run", fake):
        LinuxNTPHandler(path=str(path)).reconcile(_config(True, servers))
    assert path.read_text() == render_chrony_conf(servers)
    assert fake.calls == [["systemctl", "restart", "chronyd"]]


def test_stop_failure_raises():
    fake = FakeRun(returncode=5, output=b"unit missing")
    with mock.patch("subprocess.run", fake):
        with pytest.raises(ReconcileError, match="unit missing"):
            LinuxNTPHandler().reconcile(_config(False))


def test_restart_failure_raises(tmp_path):
    fake = FakeRun(returncode=1)
    with mock.patch("subprocess.run", fake):
        with pytest.raises(ReconcileError, match="restart chronyd"):
            LinuxNTPHandler(path=str(tmp_path / "c.conf")).reconcile(_config(True))


def test_write_failure_raises_before_restart(tmp_path):
    fake = FakeRun()
    missing = tmp_path / "missing" / "chrony.conf"
    with mock.patch("subprocess.run", fake):
        with pytest.raises(ReconcileError, match="chrony.conf"):
            LinuxNTPHandler(path=str(missing)).reconcile(_config(True))
    assert fake.calls == []