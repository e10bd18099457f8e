"""Copies of sensitive files taken before any step touches them."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from hostprep.utils import log_action, log_info

if TYPE_CHECKING:
    from hostprep.config import ProvisioningConfig
    from hostprep.executor import Executor

BACKUP_PREFIX = "system_setup_backup_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass(frozen=True)
class BackupRecord:
    source_path: Path
    backup_path: Path
    timestamp: datetime


def resolve_backup_dir(root: Path, now: datetime) -> Path:
    """Pick a run directory under ``root`` that does not exist yet.

    Two runs inside the same second get ``-1``, ``-2`` ... suffixes.
    """
    base = root / f"{BACKUP_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}"
    candidate = base
    suffix = 0
    while candidate.exists():
        suffix += 1
        candidate = base.with_name(f"{base.name}-{suffix}")
    return candidate


def backup_files(
    paths: Iterable[Path],
    backup_dir: Path,
    executor: "Executor",
    now: datetime,
) -> list[BackupRecord]:
    """Copy every existing file in ``paths`` into ``backup_dir``."""
    log_info(f"Creating backups in {backup_dir}...")
    executor.ensure_directory(backup_dir, mode=0o700)

    records = []
    for source in paths:
        if not source.is_file():
            continue
        destination = backup_dir / f"{source.name}.backup"
        executor.copy_file(source, destination)
        log_action(f"Backed up {source}")
        records.append(BackupRecord(source, destination, now))
    return records


def run_backup_dir(config: "ProvisioningConfig", now: datetime) -> Path:
    """The configured run directory, or a fresh one under ``backup_root``."""
    if config.backup_dir is not None:
        return config.backup_dir
    return resolve_backup_dir(config.backup_root, now)


def backup_sensitive_files(
    config: "ProvisioningConfig",
    executor: "Executor",
    backup_dir: Optional[Path] = None,
) -> list[BackupRecord]:
    now = datetime.now()
    return backup_files(config.sensitive_files, backup_dir or run_backup_dir(config, now), executor, now)
