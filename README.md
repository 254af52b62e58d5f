# nixop

`nixop` keeps a Linux host in line with a single declarative YAML file.
It reconciles the host against the file when it starts and again every
time the file is modified:

- **network** – static IPv4/IPv6 addresses, gateways and MTU, written for
  each of NetworkManager, netplan and ifupdown that is installed; the
  running backend is then told to reload
- **dns** – nameservers in `/etc/resolv.conf`
- **hosts** – entries in `/etc/hosts` (after fixed loopback lines)
- **system** – timezone via `timedatectl set-timezone`
- **ntp** – `/etc/chrony.conf` and a restart of `chronyd`, or
  `systemctl stop chronyd` when NTP is disabled
- **serial** – serial port settings via `stty`
- **udev** – symlink rules in `/etc/udev/rules.d/99-custom.rules`, followed
  by `udevadm control --reload-rules` and `udevadm trigger`

The resolv.conf, hosts and network backend files are only rewritten when
their content differs from what the configuration asks for; the chrony and
udev files are written on every reconcile. Every write is atomic (temporary
file in the same directory, synced, then renamed over the target).

## Installation

```
pip install .
```

## Running

```
nixop --config /etc/nixop/config.yaml
```

Without `--config`, `config.yaml` in the current directory is used. The
same entry point is available as `python -m nixop.cli`. The operator needs
root privileges to write system files and restart services. It exits with
status 1 if it cannot read `/etc/os-release` or the kernel release, or if
the configuration file does not exist; an error in one handler is logged
and does not stop the others.

## Configuration

```yaml
apiVersion: v1
kind: SystemConfiguration
metadata:
  name: edge-node
spec:
  network:
    interfaces:
      - name: eth0
        nodeSelector:
          hostname: node-1
        ipAddress: 192.0.2.10/24
        gateway: 192.0.2.1
        ipv6Address: 2001:db8::10/64
        mtu: 1500
    dns:
      nameservers: [192.0.2.53, 198.51.100.53]
    hosts:
      - ip: 192.0.2.20
        hostnames: [db, db.internal]
  system:
    timezone: Europe/Berlin
    ntp:
      enabled: true
      servers: [ntp1.example.com, ntp2.example.com]
  serials:
    - device: /dev/ttyS0
      baudRate: 115200
      dataBits: 8
      stopBits: 1
      parity: parenb
  udev:
    rules:
      - name: gps
        subsystem: tty
        attrs:
          idVendor: "0000"
          idProduct: "0000"
        symlink: gps0
```

Missing keys take empty defaults; values of the wrong kind raise
`nixop.config.ConfigError`. An interface's `nodeSelector` limits it to the
host with the given `hostname` and/or `macAddress` (compared
case-insensitively, e.g. `02:00:00:00:00:01`); an empty selector matches
every host.

## Using it as a library

Handlers register themselves with the default registry when their modules
are imported, so import them before creating a controller:

```python
from nixop.controller import load_config, new_controller
from nixop.handlers import dns, firewall, hosts, ntp, serial, system, udev
from nixop.handlers.network import handler

config = load_config("config.yaml")      # a nixop.config.SystemConfiguration
controller = new_controller("config.yaml")
errors = controller.reconcile()          # list of exceptions, empty on success
```

`nixop.config.configuration_from_dict` builds a configuration from an
already decoded document. Individual pieces such as
`nixop.handlers.dns.render_resolv_conf`, `nixop.handlers.hosts.render_hosts`,
`nixop.handlers.udev.render_udev_rules`,
`nixop.handlers.network.netplan.desired_netplan` and
`nixop.handlers.serial.stty_arguments` can be used on their own.

For each area, the controller picks the first registered handler whose
`match` accepts the running system's `OSInfo`; further handlers can be added
with `nixop.controller.register_handler`, or a separate
`nixop.controller.HandlerRegistry` can be passed to `new_controller`.

## Limitations

- Firewall rules are parsed but not applied: an empty rule list is accepted,
  and any rule makes the firewall handler report an error.
- Only Linux is supported.
- Nothing is removed: interface files, host entries or udev rules that are
  no longer in the configuration are only dropped when the file they live
  in is rewritten.