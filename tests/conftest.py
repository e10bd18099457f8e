"""Shared fixtures: a scripted executor and a sandboxed config."""
from datetime import datetime
from pathlib import Path

import pytest

from hostprep.config import PackageSpec, ProvisioningConfig
from hostprep.executor import CommandResult, Executor


class FakeExecutor(Executor):
    """Executor that answers commands from a script and records them.

    ``responses`` maps a command prefix (tuple) to a ``CommandResult`` or a
    callable returning one; the longest matching prefix wins. Unmatched
    commands succeed with empty output. File primitives run for real so
    tests can point them at ``tmp_path``; ``chown`` is only recorded.
    """

    def __init__(self, responses=None, *, dry_run=False):
        super().__init__(dry_run=dry_run)
        self.responses = dict(responses or {})
        self.calls = []
        self.chowned = []

    def respond(self, prefix, stdout="", returncode=0, stderr=""):
        self.responses[tuple(prefix)] = CommandResult(list(prefix), stdout, stderr, returncode)

    def run(self, command, *, mutable=True, env=None, input=None, as_user=None):
        cmd_list = list(command)
        self.calls.append({"command": cmd_list, "env": env, "input": input, "as_user": as_user})
        if self.dry_run and mutable:
            return CommandResult(cmd_list, "", "skipped (dry-run)", 0)

        best = None
        for prefix in self.responses:
            if tuple(cmd_list[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return CommandResult(cmd_list, "", "", 0)
        response = self.responses[best]
        if callable(response):
            return response(cmd_list)
        return response

    def chown(self, path, user):
        self.chowned.append((Path(path), user))

    def commands(self):
        return [call["command"] for call in self.calls]

    def ran(self, *prefix):
        return any(tuple(cmd[: len(prefix)]) == prefix for cmd in self.commands())


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def make_config(tmp_path):
    """Build a config whose every path lives under ``tmp_path``."""
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    etc = tmp_path / "etc"
    (etc / "sudoers.d").mkdir(parents=True)

    def _make(**overrides):
        values = dict(
            target_user="alice",
            target_home=home,
            backup_dir=tmp_path / "backups" / "system_setup_backup_20240101_120000",
            log_file=tmp_path / "log" / "system_setup.log",
            run_as_user="alice",
            sudoers_file=etc / "sudoers",
            sudoers_dir=etc / "sudoers.d",
            monitrc_target=etc / "monit" / "monitrc",
            install_chrome=False,
            package_categories={
                "monitoring": (PackageSpec.parse("htop=3.*"),),
                "misc": (PackageSpec("git"), PackageSpec("jq")),
                "gui": (PackageSpec("flameshot"),),
            },
        )
        values.update(overrides)
        return ProvisioningConfig(**values)

    return _make


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 1, 12, 0, 0)
