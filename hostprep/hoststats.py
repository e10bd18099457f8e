"""Host, network and user data for the ``hostinfo`` reports.

Every ``parse_*`` function is pure and takes the raw text of the file or
command it is named after; the ``collect_*`` functions only gather that text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from hostprep.executor import Executor
from hostprep.utils import log_warning

UNITS = ("KB", "MB", "GB", "TB")
EXCLUDED_FS_TYPES = ("tmpfs", "devtmpfs", "overlay")
PROC_ROOT = Path("/proc")
PASSWD_FILE = Path("/etc/passwd")


def humanize_kb(value: float) -> str:
    """Render a kilobyte count in the largest unit below 1024, up to TB."""
    size = float(value)
    unit = 0
    while size >= 1024 and unit < len(UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {UNITS[unit]}"


def humanize_bytes(value: int) -> str:
    return humanize_kb(value / 1024)


@dataclass
class DiskVolume:
    device: str
    size: str
    used: str
    avail: str
    use_percent: str
    mount_point: str


@dataclass
class NetworkInterface:
    name: str
    family: str
    address: str
    rx_bytes: int = 0
    tx_bytes: int = 0
    rx_errors: int = 0
    tx_errors: int = 0


@dataclass(frozen=True)
class InterfaceCounters:
    rx_bytes: int
    tx_bytes: int
    rx_errors: int
    tx_errors: int


@dataclass
class ListeningPort:
    process: str
    pid: int
    user: str
    fd: str
    protocol: str
    address: str
    port: int

    @property
    def endpoint(self) -> str:
        if ":" in self.address:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


@dataclass
class HostSnapshot:
    cpu_count: int
    mem_total_kb: int
    mem_used_kb: int
    load_averages: tuple[float, float, float]
    uptime_seconds: float
    disk_volumes: list[DiskVolume] = field(default_factory=list)
    network_interfaces: list[NetworkInterface] = field(default_factory=list)
    listening_ports: list[ListeningPort] = field(default_factory=list)

    def interfaces(self, family: str) -> list[NetworkInterface]:
        return [iface for iface in self.network_interfaces if iface.family == family]


@dataclass
class UserSnapshot:
    root_users: list[str]
    all_users: list[str]
    logged_in: list[str]


# Parsers -----------------------------------------------------------------

def parse_meminfo(text: str) -> tuple[int, int]:
    """Return ``(total_kb, used_kb)``; used is MemTotal minus MemAvailable."""
    values = {}
    for line in text.splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts:
            values[key.strip()] = int(parts[0])
    total = values.get("MemTotal", 0)
    available = values.get("MemAvailable")
    if available is None:
        available = values.get("MemFree", 0) + values.get("Buffers", 0) + values.get("Cached", 0)
    return total, max(total - available, 0)


def parse_loadavg(text: str) -> tuple[float, float, float]:
    one, five, fifteen = text.split()[:3]
    return float(one), float(five), float(fifteen)


def parse_uptime(text: str) -> float:
    return float(text.split()[0])


def format_uptime(seconds: float) -> str:
    """``uptime -p`` style: ``3 days, 4 hours, 5 minutes``."""
    minutes_total = int(seconds) // 60
    days, remainder = divmod(minutes_total, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    parts = []
    for amount, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if amount:
            parts.append(f"{amount} {unit}" + ("s" if amount != 1 else ""))
    return ", ".join(parts) or "0 minutes"


def parse_df(text: str) -> list[DiskVolume]:
    """Parse ``df --output=source,size,used,avail,pcent,target`` output."""
    volumes = []
    for line in text.splitlines()[1:]:
        parts = line.split(maxsplit=5)
        if len(parts) < 6:
            continue
        device, size, used, avail, pcent, mount = parts
        if device.startswith("/dev/"):
            device = device[len("/dev/"):]
        volumes.append(DiskVolume(device, size, used, avail, pcent, mount))
    return volumes


def parse_net_dev(text: str) -> dict[str, InterfaceCounters]:
    """Map interface name to its byte and error counters from /proc/net/dev."""
    counters = {}
    for line in text.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        fields = rest.split()
        if len(fields) < 11:
            continue
        counters[name.strip()] = InterfaceCounters(
            rx_bytes=int(fields[0]),
            rx_errors=int(fields[2]),
            tx_bytes=int(fields[8]),
            tx_errors=int(fields[10]),
        )
    return counters


def parse_ip_addr(text: str) -> list[tuple[str, str]]:
    """Parse ``ip -o addr show`` one-line output into ``(name, cidr)`` pairs."""
    entries = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 4:
            continue
        name = fields[1].split("@", 1)[0]
        entries.append((name, fields[3]))
    return entries


def build_interfaces(
    addresses: list[tuple[str, str]],
    family: str,
    counters: dict[str, InterfaceCounters],
) -> list[NetworkInterface]:
    interfaces = []
    for name, address in addresses:
        stats = counters.get(name, InterfaceCounters(0, 0, 0, 0))
        interfaces.append(
            NetworkInterface(
                name=name,
                family=family,
                address=address,
                rx_bytes=stats.rx_bytes,
                tx_bytes=stats.tx_bytes,
                rx_errors=stats.rx_errors,
                tx_errors=stats.tx_errors,
            )
        )
    return interfaces


_PORT_RE = re.compile(r"^(?P<address>.*):(?P<port>\d+)$")


def parse_lsof(text: str) -> list[ListeningPort]:
    """Parse ``lsof -i -P -n`` output into listening sockets sorted by port.

    Columns: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME [(STATE)].
    """
    ports = []
    for line in text.splitlines():
        if "(LISTEN)" not in line:
            continue
        fields = line.split()
        if len(fields) < 10:
            continue
        name = fields[8]
        match = _PORT_RE.match(name)
        if not match:
            continue
        address = match.group("address").strip("[]")
        ports.append(
            ListeningPort(
                process=fields[0].replace("\\x20", " "),
                pid=int(fields[1]),
                user=fields[2],
                fd=fields[3],
                protocol=f"{fields[7]} ({fields[4]})",
                address=address,
                port=int(match.group("port")),
            )
        )
    return sort_ports(ports)


def sort_ports(ports: list[ListeningPort]) -> list[ListeningPort]:
    return sorted(ports, key=lambda p: (p.port, p.process, p.pid))


def parse_passwd(text: str) -> list[tuple[str, int]]:
    """``(username, uid)`` pairs from passwd-format text."""
    entries = []
    for line in text.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        fields = line.split(":")
        if len(fields) < 3:
            continue
        try:
            uid = int(fields[2])
        except ValueError:
            continue
        entries.append((fields[0], uid))
    return entries


# Collectors --------------------------------------------------------------

def _read(executor: Executor, path: Path) -> str:
    text = executor.read_file(path)
    if text is None:
        log_warning(f"{path} is not readable")
        return ""
    return text


def _command_output(executor: Executor, command: list[str]) -> str:
    result = executor.run(command, mutable=False)
    if not result.ok:
        log_warning(f"{command[0]} failed: {(result.stderr or result.stdout).strip()}")
    return result.stdout


def collect_cpu_count(executor: Executor) -> int:
    output = _command_output(executor, ["nproc"]).strip()
    return int(output) if output.isdigit() else 0


def collect_host_snapshot(executor: Executor, proc_root: Path = PROC_ROOT) -> HostSnapshot:
    mem_total, mem_used = parse_meminfo(_read(executor, proc_root / "meminfo"))
    loadavg = _read(executor, proc_root / "loadavg")
    uptime = _read(executor, proc_root / "uptime")

    df_command = ["df", "-h"]
    for fs_type in EXCLUDED_FS_TYPES:
        df_command += ["-x", fs_type]
    df_command.append("--output=source,size,used,avail,pcent,target")

    counters = parse_net_dev(_read(executor, proc_root / "net" / "dev"))
    interfaces = []
    for family, flag in (("v4", "-4"), ("v6", "-6")):
        addresses = parse_ip_addr(_command_output(executor, ["ip", "-o", flag, "addr", "show"]))
        interfaces.extend(build_interfaces(addresses, family, counters))

    return HostSnapshot(
        cpu_count=collect_cpu_count(executor),
        mem_total_kb=mem_total,
        mem_used_kb=mem_used,
        load_averages=parse_loadavg(loadavg) if loadavg.strip() else (0.0, 0.0, 0.0),
        uptime_seconds=parse_uptime(uptime) if uptime.strip() else 0.0,
        disk_volumes=parse_df(_command_output(executor, df_command)),
        network_interfaces=interfaces,
        listening_ports=parse_lsof(_command_output(executor, ["lsof", "-i", "-P", "-n"])),
    )


def collect_user_snapshot(executor: Executor, passwd_file: Path = PASSWD_FILE) -> UserSnapshot:
    getent = parse_passwd(_command_output(executor, ["getent", "passwd"]))
    local = parse_passwd(_read(executor, passwd_file))
    who = _command_output(executor, ["who"])
    return UserSnapshot(
        root_users=[name for name, uid in getent if uid == 0],
        all_users=[name for name, _ in local],
        logged_in=[line for line in who.splitlines() if line.strip()],
    )
