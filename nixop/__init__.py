"""Declarative reconciliation of Linux host configuration from a YAML file."""

__version__ = "0.1.0"