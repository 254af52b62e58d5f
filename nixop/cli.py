"""Command-line entry point for the operator."""

from __future__ import annotations

import argparse
import logging

from nixop.config import ConfigError
from nixop.controller import ControllerError, new_controller

# Importing the handler modules registers them with the default registry.
from nixop.handlers import dns, firewall, hosts, ntp, serial, system, udev  # noqa: F401
from nixop.handlers.network import handler as network_handler  # noqa: F401

log = logging.getLogger("nixop")


def _parser():
    parser = argparse.ArgumentParser(
        prog="nixop",
        description="Keep this system in line with a declarative configuration file.",
    )
    parser.add_argument(
        "--config",
        "-config",
        default="config.yaml",
        help="Path to configuration file",
    )
    return parser


def main(argv=None):
    """Run the operator; return the process exit status."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        controller = new_controller(args.config)
    except ControllerError as exc:
        log.critical("Failed to create controller: %s", exc)
        return 1

    try:
        controller.run()
    except KeyboardInterrupt:
        return 0
    except (OSError, ConfigError) as exc:
        log.critical("Error running controller: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())