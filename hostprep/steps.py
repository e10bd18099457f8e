"""Provisioning workflow steps."""
from datetime import datetime

from hostprep import packages
from hostprep.backup import backup_sensitive_files, run_backup_dir
from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.packages import InstallStatus, PackageReport
from hostprep.preflight import run_preflight
from hostprep.services import install_monitrc
from hostprep.shell import configure_shell
from hostprep.ssh import generate_ssh_key, write_ssh_client_config
from hostprep.sudo import configure_passwordless_sudo
from hostprep.types import ProvisionError, RunSummary
from hostprep.utils import log_error, log_info, log_warning

# KeyError comes from pwd lookups of a missing target user.
STEP_ERRORS = (ProvisionError, OSError, KeyError)


def create_backups(config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    summary.backup_dir = run_backup_dir(config, datetime.now())
    summary.backups = backup_sensitive_files(config, executor, summary.backup_dir)


def install_dependencies(config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    """Refresh apt, upgrade, then reconcile every package category."""
    if not packages.update_package_lists(executor):
        summary.fail("package lists", "apt-get update failed")
    if packages.upgrade_packages(executor):
        summary.record("System updated and upgraded")
    else:
        summary.fail("upgrade", "apt-get full-upgrade failed")

    log_info("Installing system utilities...")
    report = PackageReport()
    report.extend(packages.reconcile(config.base_packages, executor))
    report.extend(packages.install_gui_tools(config, executor))
    if config.install_chrome:
        report.outcomes.append(packages.install_chrome(executor))
    packages.cleanup(executor)

    summary.packages = report
    summary.record(
        f"Packages: {report.count(InstallStatus.INSTALLED)} installed, "
        f"{report.count(InstallStatus.ALREADY_PRESENT)} already present, "
        f"{len(report.failures)} failed"
    )


def configure_security(config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    """Sudo policy, SSH identity and SSH client config."""
    try:
        written = configure_passwordless_sudo(config, executor)
    except STEP_ERRORS as e:
        log_error(f"Failed to configure sudo: {e}")
        written = False
    if written is False:
        summary.fail("sudo", "could not write passwordless sudo entry")
    elif config.enable_passwordless_sudo:
        summary.record("Passwordless sudo configured (WARNING: not recommended for production)")

    try:
        pair = generate_ssh_key(config, executor)
    except STEP_ERRORS as e:
        log_error(str(e))
        summary.fail("ssh key", str(e))
    else:
        if pair is not None:
            summary.record(f"SSH key generated at {pair.private_key_path}")

    try:
        write_ssh_client_config(config, executor)
    except STEP_ERRORS as e:
        log_error(f"Failed to write SSH client config: {e}")
        summary.fail("ssh config", str(e))
    else:
        summary.record("Secure SSH client configuration applied")


def configure_user_environment(config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    if configure_shell(config, executor):
        summary.record(f"Custom prompt and aliases added to {config.bashrc_path}")


def configure_services(config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    if install_monitrc(config, executor):
        summary.record(f"monitrc configuration installed to {config.monitrc_target}")


def run_step(name: str, step, config: ProvisioningConfig, executor: Executor, summary: RunSummary) -> None:
    """Run one phase; its failure is recorded and the pipeline moves on."""
    try:
        step(config, executor, summary)
    except STEP_ERRORS as e:
        log_error(f"{name} step failed: {e}")
        summary.fail(name, str(e))


def print_summary(config: ProvisioningConfig, summary: RunSummary) -> None:
    log_info("Summary of actions:")
    lines = list(summary.actions)
    if summary.backup_dir is not None:
        lines.append(f"Backups created in: {summary.backup_dir}")
    lines.append(f"Logs available at: {config.log_file}")
    for number, line in enumerate(lines, start=1):
        print(f"{number}. {line}")

    if summary.packages and summary.packages.failures:
        log_warning("The following packages failed to install:")
        for outcome in summary.packages.failures:
            print(f"  {outcome.package.install_target}: {outcome.reason}")
    for failure in summary.failures:
        log_warning(f"{failure.step}: {failure.reason}")

    log_info("Next steps:")
    print(f"1. Review the logs at {config.log_file} for any warnings or errors")
    if summary.backup_dir is not None:
        print(f"2. Check the backups at {summary.backup_dir}")
    if config.generate_ssh_keys:
        print("3. Add your public SSH key to remote servers if needed")
    print("4. Log out and back in for all changes to take effect")


def provision_system(config: ProvisioningConfig, executor: Executor) -> RunSummary:
    """Main provisioning workflow.

    Only preflight failures propagate; everything after that is collected on
    the returned summary.
    """
    # Phase 1: Preflight (raises PreflightError)
    run_preflight(config, executor)

    summary = RunSummary()

    # Phase 2: Backups
    run_step("backup", create_backups, config, executor, summary)

    # Phase 3: Packages
    run_step("packages", install_dependencies, config, executor, summary)

    # Phase 4: Security configuration
    run_step("security", configure_security, config, executor, summary)

    # Phase 5: Shell configuration
    run_step("shell", configure_user_environment, config, executor, summary)

    # Phase 6: Service configuration
    run_step("monit", configure_services, config, executor, summary)

    print_summary(config, summary)
    return summary
