from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hostprep.backup import BackupRecord
    from hostprep.packages import PackageReport


class ProvisionError(Exception):
    """Base error for the provisioner."""


class PreflightError(ProvisionError):
    """A precondition failed; nothing has been changed on the host."""


@dataclass
class StepFailure:
    step: str
    reason: str


@dataclass
class RunSummary:
    backup_dir: Optional[Path] = None
    backups: list["BackupRecord"] = field(default_factory=list)
    packages: Optional["PackageReport"] = None
    actions: list[str] = field(default_factory=list)
    failures: list[StepFailure] = field(default_factory=list)

    def record(self, action: str) -> None:
        self.actions.append(action)

    def fail(self, step: str, reason: str) -> None:
        self.failures.append(StepFailure(step, reason))
