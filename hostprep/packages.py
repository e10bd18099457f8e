"""apt-based package reconciliation."""
from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

from hostprep.config import PackageSpec, ProvisioningConfig
from hostprep.executor import CommandResult, Executor
from hostprep.utils import log_action, log_error, log_info, log_warning

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}

CHROME_PACKAGE = "google-chrome-stable"
CHROME_URL = "https://dl.google.com/linux/direct/google-chrome-stable_current_amd64.deb"
CHROME_DEB = Path("/tmp/google-chrome-stable_current_amd64.deb")


class InstallStatus(enum.Enum):
    ALREADY_PRESENT = "already present"
    INSTALLED = "installed"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallOutcome:
    package: PackageSpec
    status: InstallStatus
    reason: Optional[str] = None


@dataclass
class PackageReport:
    outcomes: list[InstallOutcome] = field(default_factory=list)

    def extend(self, outcomes: Iterable[InstallOutcome]) -> None:
        self.outcomes.extend(outcomes)

    @property
    def failures(self) -> list[InstallOutcome]:
        return [o for o in self.outcomes if o.status is InstallStatus.FAILED]

    def count(self, status: InstallStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


def _failure_reason(result: CommandResult) -> str:
    text = (result.stderr or result.stdout).strip()
    last_line = text.splitlines()[-1] if text else ""
    return last_line or f"exit code {result.returncode}"


def is_installed(name: str, executor: Executor) -> bool:
    """True when dpkg reports ``name`` in the installed state."""
    result = executor.run(["dpkg-query", "-W", "--showformat=${Status}", name], mutable=False)
    return result.ok and result.stdout.strip().endswith(" installed")


def install_package(spec: PackageSpec, executor: Executor) -> InstallOutcome:
    if is_installed(spec.name, executor):
        log_info(f"{spec.name} is already installed, skipping...")
        return InstallOutcome(spec, InstallStatus.ALREADY_PRESENT)

    log_action(f"Installing {spec.install_target}...")
    result = executor.run(["apt-get", "install", "-y", spec.install_target], env=NONINTERACTIVE)
    if not result.ok:
        reason = _failure_reason(result)
        log_error(f"Failed to install {spec.install_target}: {reason}")
        return InstallOutcome(spec, InstallStatus.FAILED, reason)
    return InstallOutcome(spec, InstallStatus.INSTALLED)


def reconcile(specs: Iterable[PackageSpec], executor: Executor) -> list[InstallOutcome]:
    """Install whatever in ``specs`` is missing; never stops on a failure."""
    outcomes = [install_package(spec, executor) for spec in specs]

    failed = [o for o in outcomes if o.status is InstallStatus.FAILED]
    if failed:
        log_error("Failed to install the following packages:")
        for outcome in failed:
            print(outcome.package.install_target)
        log_warning("You may want to try installing these packages manually")
    return outcomes


def update_package_lists(executor: Executor) -> bool:
    log_info("Updating package lists...")
    result = executor.run(["apt-get", "update", "-y"], env=NONINTERACTIVE)
    if not result.ok:
        log_error(f"Failed to update package lists: {_failure_reason(result)}")
    return result.ok


def upgrade_packages(executor: Executor) -> bool:
    log_info("Checking for upgradable packages...")
    listing = executor.run(["apt", "list", "--upgradable"], mutable=False)
    upgradable = [line for line in listing.stdout.splitlines() if "upgradable" in line]
    if not upgradable:
        log_info("No packages to upgrade.")
        return True

    log_action(f"Upgrading {len(upgradable)} packages...")
    result = executor.run(["apt-get", "full-upgrade", "-y"], env=NONINTERACTIVE)
    if not result.ok:
        log_error(f"Failed to upgrade packages: {_failure_reason(result)}")
    return result.ok


def gui_session_detected(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return bool(environ.get("DISPLAY") or environ.get("WAYLAND_DISPLAY"))


def install_gui_tools(
    config: ProvisioningConfig,
    executor: Executor,
    environ: Optional[Mapping[str, str]] = None,
) -> list[InstallOutcome]:
    """Install the GUI category only when enabled and a display is present."""
    if not config.install_gui_tools:
        log_info("Skipping GUI tools installation (disabled)")
        return []
    if not gui_session_detected(environ):
        log_info("Skipping GUI tools installation (no graphical session detected)")
        return []

    log_info("Installing GUI tools...")
    return reconcile(config.gui_packages, executor)


def install_chrome(executor: Executor, deb_path: Path = CHROME_DEB) -> InstallOutcome:
    """Install Google Chrome from the vendor .deb."""
    spec = PackageSpec(CHROME_PACKAGE)
    log_info("Setting up Google Chrome...")
    if is_installed(CHROME_PACKAGE, executor):
        log_info("Google Chrome is already installed, skipping...")
        return InstallOutcome(spec, InstallStatus.ALREADY_PRESENT)

    log_action("Downloading Google Chrome...")
    download = executor.run(["wget", "-q", "-O", str(deb_path), CHROME_URL])
    if not download.ok:
        log_error("Failed to download Google Chrome. Check your internet connection.")
        return InstallOutcome(spec, InstallStatus.FAILED, "download failed")

    try:
        log_action("Installing Google Chrome...")
        if executor.run(["dpkg", "-i", str(deb_path)], env=NONINTERACTIVE).ok:
            return InstallOutcome(spec, InstallStatus.INSTALLED)

        log_warning("Fixing dependencies...")
        fixed = executor.run(["apt-get", "install", "-f", "-y"], env=NONINTERACTIVE)
        if fixed.ok:
            return InstallOutcome(spec, InstallStatus.INSTALLED)
        log_error("Failed to install Google Chrome dependencies")
        return InstallOutcome(spec, InstallStatus.FAILED, _failure_reason(fixed))
    finally:
        executor.remove_file(deb_path)


def cleanup(executor: Executor) -> None:
    log_info("Cleaning up...")
    executor.run(["apt-get", "autoremove", "-y", "--purge"], env=NONINTERACTIVE)
    executor.run(["apt-get", "clean"])
