"""CLI interface for the provisioning tool and the host reporter."""
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from . import config as config_module
from . import hoststats
from . import report
from . import steps
from . import utils
from .executor import Executor
from .types import PreflightError


def setup(
    passwordless_sudo: bool = typer.Option(
        True, "--passwordless-sudo/--no-passwordless-sudo", envvar="HOSTPREP_PASSWORDLESS_SUDO",
        help="Grant the invoking user passwordless sudo",
    ),
    gui_tools: bool = typer.Option(
        False, "--gui-tools/--no-gui-tools", envvar="HOSTPREP_GUI_TOOLS",
        help="Install GUI tools when a graphical session is present",
    ),
    ssh_keys: bool = typer.Option(
        True, "--ssh-keys/--no-ssh-keys", envvar="HOSTPREP_SSH_KEYS",
        help="Generate an ed25519 key pair if none exists",
    ),
    chrome: bool = typer.Option(
        True, "--chrome/--no-chrome", envvar="HOSTPREP_CHROME", help="Install Google Chrome",
    ),
    min_free_space: int = typer.Option(
        config_module.DEFAULT_MIN_FREE_SPACE_GB, "--min-free-space", envvar="HOSTPREP_MIN_FREE_SPACE_GB",
        help="Minimum free space on / in GB",
    ),
    log_file: Path = typer.Option(
        config_module.DEFAULT_LOG_FILE, "--log-file", envvar="HOSTPREP_LOG_FILE", readable=False,
        help="Run log (appended)",
    ),
    backup_root: Path = typer.Option(
        config_module.DEFAULT_BACKUP_ROOT, "--backup-root", envvar="HOSTPREP_BACKUP_ROOT", readable=False,
        help="Directory that receives the per-run backup directory",
    ),
    monitrc: Optional[Path] = typer.Option(
        None, "--monitrc", envvar="HOSTPREP_MONITRC", help="monit control file to install",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Provision a fresh Debian/Ubuntu host."""
    run_config = config_module.build_config(
        enable_passwordless_sudo=passwordless_sudo,
        install_gui_tools=gui_tools,
        generate_ssh_keys=ssh_keys,
        install_chrome=chrome,
        min_free_space_gb=min_free_space,
        log_file=log_file,
        backup_root=backup_root,
        monitrc_source=monitrc,
        dry_run=dry_run,
    )

    try:
        utils.setup_logging(verbose, run_config.log_file)
    except OSError as e:
        typer.echo(f"❗ Cannot open log file {run_config.log_file}: {e}")
        utils.setup_logging(verbose)

    try:
        steps.provision_system(run_config, Executor(dry_run=dry_run))
    except PreflightError as e:
        utils.log_error(str(e))
        typer.echo(f"❗ {e}")
        raise typer.Exit(1)

    typer.echo("✅ Provisioning complete!")


app = typer.Typer(
    name="provision",
    help="A clean, modular system provisioning tool.",
    add_completion=False,
    invoke_without_command=True,
    callback=setup,
)


HOSTINFO_USAGE = """Usage: hostinfo [options]
Options:
  --host         Show host information (requires root)
  --users        Show user information
  -h, --help     Show this help"""


def hostinfo(
    ctx: typer.Context,
    host: bool = typer.Option(False, "--host", help="Show host information"),
    users: bool = typer.Option(False, "--users", help="Show user information"),
    show_help: bool = typer.Option(False, "--help", "-h", help="Show this help"),
):
    """Report host, network and user status."""
    extra: List[str] = list(ctx.args)
    if extra:
        typer.echo(f"Unknown option: {' '.join(extra)}", err=True)
        typer.echo(HOSTINFO_USAGE)
        raise typer.Exit(1)
    if show_help or not (host or users):
        typer.echo(HOSTINFO_USAGE)
        raise typer.Exit(0)

    executor = Executor()
    console = Console(highlight=False)

    if host:
        if not utils.is_root():
            typer.echo("Permission denied: the host report must be run as root.", err=True)
            raise typer.Exit(1)
        report.render_host_report(hoststats.collect_host_snapshot(executor), console)

    if users:
        report.render_users_report(hoststats.collect_user_snapshot(executor), console)


hostinfo_app = typer.Typer(name="hostinfo", add_completion=False)
hostinfo_app.command(
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
    add_help_option=False,
)(hostinfo)


if __name__ == "__main__":
    app()
