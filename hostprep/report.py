"""Rendering of the ``hostinfo`` reports."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from hostprep.hoststats import (
    HostSnapshot,
    NetworkInterface,
    UserSnapshot,
    format_uptime,
    humanize_bytes,
    humanize_kb,
)


def _section(console: Console, title: str) -> None:
    console.print()
    console.print(f"[bold yellow]{title}[/bold yellow]")


def _field(label: str, value: object) -> str:
    return f"[green]{label + ':':<44}[/green] {value}"


def disk_table(snapshot: HostSnapshot) -> Table:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold cyan")
    table.add_column("Device", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Avail", justify="right")
    table.add_column("Use%", justify="right")
    table.add_column("Mounted on", no_wrap=True)
    for volume in snapshot.disk_volumes:
        table.add_row(
            volume.device, volume.size, volume.used, volume.avail, volume.use_percent, volume.mount_point
        )
    return table


def interface_table(interfaces: list[NetworkInterface]) -> Table:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold cyan")
    table.add_column("Interface", no_wrap=True)
    table.add_column("IP Address", no_wrap=True)
    table.add_column("RX", justify="right")
    table.add_column("TX", justify="right")
    table.add_column("RX Errors", justify="right")
    table.add_column("TX Errors", justify="right")
    for iface in interfaces:
        table.add_row(
            iface.name,
            iface.address,
            humanize_bytes(iface.rx_bytes),
            humanize_bytes(iface.tx_bytes),
            str(iface.rx_errors),
            str(iface.tx_errors),
        )
    return table


def port_table(snapshot: HostSnapshot) -> Table:
    """Listening sockets, ascending by port whatever order they were found in."""
    table = Table(box=box.SIMPLE_HEAD, header_style="bold cyan")
    table.add_column("Process", no_wrap=True)
    table.add_column("PID", justify="right")
    table.add_column("User")
    table.add_column("FD")
    table.add_column("Protocol")
    table.add_column("Port (Address)", no_wrap=True)
    for port in sorted(snapshot.listening_ports, key=lambda p: p.port):
        table.add_row(port.process, str(port.pid), port.user, port.fd, port.protocol, port.endpoint)
    return table


def render_host_report(
    snapshot: HostSnapshot,
    console: Console,
    now: Optional[datetime] = None,
) -> None:
    now = now or datetime.now()
    one, five, fifteen = snapshot.load_averages

    console.print(Rule("Host information", style="blue"))
    console.print(_field("CPU cores", snapshot.cpu_count))
    console.print(_field("Total memory", humanize_kb(snapshot.mem_total_kb)))
    console.print(_field("Used memory", humanize_kb(snapshot.mem_used_kb)))

    _section(console, "Disks:")
    console.print(disk_table(snapshot))

    console.print(_field("Load average", f"{one:.2f} {five:.2f} {fifteen:.2f}"))
    console.print(_field("Uptime", format_uptime(snapshot.uptime_seconds)))
    console.print(_field("Current time", now.strftime("%H:%M:%S")))

    _section(console, "IPv4 interfaces:")
    console.print(interface_table(snapshot.interfaces("v4")))
    _section(console, "IPv6 interfaces:")
    console.print(interface_table(snapshot.interfaces("v6")))

    console.print(Rule(style="blue"))
    _section(console, "Listening ports:")
    console.print(port_table(snapshot))


def render_users_report(users: UserSnapshot, console: Console) -> None:
    console.print(Rule("User information", style="blue"))
    console.print("[green]1) Users with UID 0:[/green]")
    for name in users.root_users:
        console.print(name, markup=False, highlight=False)
    console.print(Rule(style="blue"))
    console.print("[green]2) All users:[/green]")
    for name in users.all_users:
        console.print(name, markup=False, highlight=False)
    console.print(Rule(style="blue"))
    console.print("[green]3) Logged-in users:[/green]")
    for line in users.logged_in:
        console.print(line, markup=False, highlight=False)
