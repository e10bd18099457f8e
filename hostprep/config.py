"""Run configuration for the provisioner."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hostprep import utils

DEFAULT_LOG_FILE = Path("/var/log/system_setup.log")
DEFAULT_BACKUP_ROOT = Path("/root")
DEFAULT_MIN_FREE_SPACE_GB = 5
PING_TEST_IP = "8.8.8.8"
PING_TEST_DOMAIN = "example.com"
SUDOERS_FILE = Path("/etc/sudoers")
SUDOERS_DIR = Path("/etc/sudoers.d")
MONITRC_TARGET = Path("/etc/monit/monitrc")


@dataclass(frozen=True)
class PackageSpec:
    name: str
    version_constraint: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "PackageSpec":
        """Parse ``name`` or ``name=constraint`` (apt's pinning syntax)."""
        name, sep, constraint = text.partition("=")
        return cls(name.strip(), constraint.strip() if sep and constraint.strip() else None)

    @property
    def install_target(self) -> str:
        if self.version_constraint:
            return f"{self.name}={self.version_constraint}"
        return self.name

    def __str__(self) -> str:
        return self.install_target


def _specs(*names: str) -> tuple[PackageSpec, ...]:
    return tuple(PackageSpec.parse(name) for name in names)


GUI_CATEGORY = "gui"

PACKAGE_CATEGORIES: dict[str, tuple[PackageSpec, ...]] = {
    "monitoring": _specs("htop=3.*", "atop=2.*", "sysstat=12.*", "smartmontools=7.*", "ncdu=1.*"),
    "network": _specs(
        "net-tools", "nmap", "mtr", "inetutils-ping", "rsync", "lftp", "w3m", "lynx", "btop",
    ),
    "text-tools": _specs("vim", "nano", "tmux", "tree", "less"),
    "disk-tools": _specs("lvm2", "xfsprogs", "gparted", "hdparm"),
    "security": _specs("wireguard-tools", "openssh-server"),
    "misc": _specs(
        "unzip", "jq", "plocate", "neofetch", "mc", "git", "fuse", "libfuse2", "procps",
        "alpine", "curl", "mdadm", "xclip", "wrk", "vlc", "monit",
    ),
    GUI_CATEGORY: _specs("flameshot"),
}


@dataclass(frozen=True)
class ProvisioningConfig:
    target_user: str
    target_home: Path
    backup_root: Path = DEFAULT_BACKUP_ROOT
    backup_dir: Optional[Path] = None
    enable_passwordless_sudo: bool = True
    install_gui_tools: bool = False
    generate_ssh_keys: bool = True
    install_chrome: bool = True
    min_free_space_gb: int = DEFAULT_MIN_FREE_SPACE_GB
    log_file: Path = DEFAULT_LOG_FILE
    ping_test_ip: str = PING_TEST_IP
    ping_test_domain: str = PING_TEST_DOMAIN
    run_as_user: Optional[str] = None
    sudoers_file: Path = SUDOERS_FILE
    sudoers_dir: Path = SUDOERS_DIR
    monitrc_source: Optional[Path] = None
    monitrc_target: Path = MONITRC_TARGET
    package_categories: dict[str, tuple[PackageSpec, ...]] = field(
        default_factory=lambda: dict(PACKAGE_CATEGORIES)
    )
    dry_run: bool = False

    @property
    def base_packages(self) -> list[PackageSpec]:
        """Every package outside the GUI category, in category order."""
        return [
            spec
            for category, specs in self.package_categories.items()
            if category != GUI_CATEGORY
            for spec in specs
        ]

    @property
    def gui_packages(self) -> list[PackageSpec]:
        return list(self.package_categories.get(GUI_CATEGORY, ()))

    @property
    def bashrc_path(self) -> Path:
        return self.target_home / ".bashrc"

    @property
    def ssh_dir(self) -> Path:
        return self.target_home / ".ssh"

    @property
    def sensitive_files(self) -> list[Path]:
        return [self.bashrc_path, self.ssh_dir / "config", self.sudoers_file]


def build_config(
    *,
    enable_passwordless_sudo: bool = True,
    install_gui_tools: bool = False,
    generate_ssh_keys: bool = True,
    install_chrome: bool = True,
    min_free_space_gb: int = DEFAULT_MIN_FREE_SPACE_GB,
    log_file: Path = DEFAULT_LOG_FILE,
    backup_root: Path = DEFAULT_BACKUP_ROOT,
    monitrc_source: Optional[Path] = None,
    target_user: Optional[str] = None,
    dry_run: bool = False,
) -> ProvisioningConfig:
    """Resolve user and home into an immutable config.

    The per-run backup directory is left unset; the backup phase picks it
    under ``backup_root`` once preflight has passed.
    """
    user = target_user or utils.get_real_user()
    if target_user:
        home = Path(os.path.expanduser(f"~{target_user}"))
    else:
        home = Path(utils.get_real_home())
    run_as = user if user and user != utils.current_user() else None

    return ProvisioningConfig(
        target_user=user,
        target_home=home,
        backup_root=Path(backup_root),
        enable_passwordless_sudo=enable_passwordless_sudo,
        install_gui_tools=install_gui_tools,
        generate_ssh_keys=generate_ssh_keys,
        install_chrome=install_chrome,
        min_free_space_gb=min_free_space_gb,
        log_file=Path(log_file),
        run_as_user=run_as,
        monitrc_source=Path(monitrc_source) if monitrc_source else None,
        dry_run=dry_run,
    )
