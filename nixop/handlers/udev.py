"""Writes custom udev symlink rules and reloads udev."""

from __future__ import annotations

import subprocess

from nixop.config import COMMENT_HEADER
from nixop.controller import Handler, ReconcileError, register_handler
from nixop.utils import atomic_write_file

UDEV_RULES_FILE = "/etc/udev/rules.d/99-custom.rules"


def _rule_line(rule):
    parts = [f'SUBSYSTEM=="{rule.subsystem}", ']
    parts.extend(f'ATTRS{{{key}}}=="{value}", ' for key, value in rule.attrs.items())
    parts.append(f'SYMLINK+="{rule.symlink}"\n')
    return "".join(parts)


def render_udev_rules(rules):
    """Render a rules file with one symlink rule per entry of ``rules``."""
    return COMMENT_HEADER + "".join(_rule_line(rule) for rule in rules)


def _run(args, what):
    try:
        result = subprocess.run(
            args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
        )
    except OSError as exc:
        raise ReconcileError(f"failed to {what}: {exc}") from exc
    if result.returncode != 0:
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        raise ReconcileError(
            f"failed to {what}: exit status {result.returncode}, output: {output}"
        )


class LinuxUdevHandler(Handler):
    """Writes the configured udev rules, then reloads and triggers udev."""

    def __init__(self, path=UDEV_RULES_FILE):
        self.path = path

    def match(self, os_info):
        return os_info.kernel_name == "Linux"

    def reconcile(self, config):
        try:
            atomic_write_file(render_udev_rules(config.spec.udev.rules), self.path, 0o644)
        except OSError as exc:
            raise ReconcileError(f"failed to write udev rules: {exc}") from exc

        _run(["udevadm", "control", "--reload-rules"], "reload udev rules")
        _run(["udevadm", "trigger"], "trigger udev rules")


register_handler("udev", LinuxUdevHandler())