[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nixop"
version = "0.1.0"
description = "Declarative host configuration operator: reconciles network, DNS, hosts, NTP, serial, timezone and udev settings from a YAML file"
requires-python = ">=3.10"
keywords = ["operator", "reconcile", "network", "dns", "udev", "netplan", "configuration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml>=6.0",
    "watchdog>=3.0",
    "psutil>=5.9",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
nixop = "nixop.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["nixop"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
