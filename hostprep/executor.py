"""Command and file primitives shared by provisioning steps and reports."""
from __future__ import annotations

import os
import pwd
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import sh

from hostprep.utils import log_action

COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    command: list[str]
    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Executor:
    """Runs OS commands through ``sh`` and touches files on the local host.

    Commands never raise on a non-zero exit; callers inspect ``returncode``.
    With ``dry_run`` set, anything marked ``mutable`` is announced instead of
    executed.
    """

    def __init__(self, *, dry_run: bool = False):
        self.dry_run = dry_run

    def run(
        self,
        command: Sequence[str],
        *,
        mutable: bool = True,
        env: Optional[dict[str, str]] = None,
        input: Optional[str] = None,
        as_user: Optional[str] = None,
    ) -> CommandResult:
        cmd_list = list(command)
        if as_user:
            cmd_list = ["sudo", "-u", as_user, *cmd_list]

        if self.dry_run and mutable:
            log_action(f"[DRY RUN] Would run: {shlex.join(cmd_list)}")
            return CommandResult(cmd_list, "", "skipped (dry-run)", 0)

        try:
            program = sh.Command(cmd_list[0])
        except sh.CommandNotFound:
            return CommandResult(cmd_list, "", f"{cmd_list[0]}: command not found", COMMAND_NOT_FOUND)

        kwargs = {"_return_cmd": True, "_ok_code": list(range(256))}
        if env:
            exec_env = os.environ.copy()
            exec_env.update(env)
            kwargs["_env"] = exec_env
        if input is not None:
            kwargs["_in"] = input

        proc = program(*cmd_list[1:], **kwargs)
        return CommandResult(
            cmd_list,
            _decode(proc.stdout),
            _decode(proc.stderr),
            proc.exit_code,
        )

    # File primitives -----------------------------------------------------
    def read_file(self, path: Path) -> Optional[str]:
        try:
            return Path(path).read_text()
        except FileNotFoundError:
            return None

    def write_file(self, path: Path, content: str, *, mode: int = 0o644) -> None:
        """Replace ``path`` with ``content``; new files are created with ``mode``."""
        if self.dry_run:
            log_action(f"[DRY RUN] Would write {path}")
            return
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "w") as handle:
            handle.write(content)
        os.chmod(path, mode)

    def append_file(self, path: Path, content: str) -> None:
        if self.dry_run:
            log_action(f"[DRY RUN] Would append to {path}")
            return
        with open(path, "a") as handle:
            handle.write(content)

    def ensure_directory(self, path: Path, *, mode: int) -> None:
        if self.dry_run:
            log_action(f"[DRY RUN] Would create {path}")
            return
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        os.chmod(path, mode)

    def copy_file(self, source: Path, destination: Path, *, mode: Optional[int] = None) -> None:
        if self.dry_run:
            log_action(f"[DRY RUN] Would copy {source} to {destination}")
            return
        shutil.copy2(source, destination)
        if mode is not None:
            os.chmod(destination, mode)

    def chmod(self, path: Path, mode: int) -> None:
        if self.dry_run:
            return
        os.chmod(path, mode)

    def chown(self, path: Path, user: Optional[str]) -> None:
        """Hand ``path`` to ``user`` and their primary group."""
        if self.dry_run or not user:
            return
        entry = pwd.getpwnam(user)
        shutil.chown(path, user=entry.pw_uid, group=entry.pw_gid)

    def remove_file(self, path: Path) -> None:
        if self.dry_run:
            return
        Path(path).unlink(missing_ok=True)


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return str(output)
