"""Passwordless sudo policy."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.utils import log_action, log_error, log_info, log_warning

DROP_IN_MODE = 0o440


def sudoers_entry(user: str) -> str:
    return f"{user} ALL=(ALL) NOPASSWD:ALL"


def _normalise(line: str) -> str:
    return " ".join(line.split())


def policy_contains(text: Optional[str], entry: str) -> bool:
    """True when a non-comment line of ``text`` equals ``entry``.

    Whitespace runs are collapsed before comparing, so ``user  ALL=...``
    matches but a commented-out or longer line does not.
    """
    if not text:
        return False
    wanted = _normalise(entry)
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if _normalise(stripped) == wanted:
            return True
    return False


def drop_in_path(config: ProvisioningConfig) -> Path:
    """sudo ignores ``sudoers.d`` files whose names contain a ``.``."""
    name = config.target_user.replace(".", "_")
    return config.sudoers_dir / f"{name}-nopasswd"


def write_drop_in(config: ProvisioningConfig, executor: Executor, entry: str) -> bool:
    """Write and validate the drop-in; an invalid file never stays in place."""
    target = drop_in_path(config)
    if config.dry_run:
        log_action(f"[DRY RUN] Would add passwordless sudo via {target}")
        return True

    staging = target.with_name(f".{target.name}.tmp")
    executor.write_file(staging, entry + "\n", mode=DROP_IN_MODE)

    check = executor.run(["visudo", "-cf", str(staging)], mutable=False)
    if not check.ok:
        executor.remove_file(staging)
        log_error(f"visudo rejected the drop-in: {(check.stderr or check.stdout).strip()}")
        return False

    staging.replace(target)
    log_action(f"Added passwordless sudo via {target}")
    return True


def append_to_main_policy(config: ProvisioningConfig, executor: Executor, entry: str) -> bool:
    result = executor.run(
        ["visudo", "-f", str(config.sudoers_file)],
        env={"EDITOR": "tee -a"},
        input=entry + "\n",
    )
    if not result.ok:
        log_error(f"Failed to append to {config.sudoers_file}: {(result.stderr or result.stdout).strip()}")
        return False
    log_action(f"Added passwordless sudo directly to {config.sudoers_file}")
    return True


def configure_passwordless_sudo(config: ProvisioningConfig, executor: Executor) -> Optional[bool]:
    """Grant the target user passwordless sudo.

    Returns ``None`` when skipped or already configured, otherwise whether
    the write succeeded.
    """
    log_info("Checking sudo configuration...")
    if not config.enable_passwordless_sudo:
        log_info("Skipping passwordless sudo configuration")
        return None

    log_warning("Enabling passwordless sudo - this is not recommended for production systems")
    user = config.target_user
    if not user or user == "root":
        log_info("No non-root user to configure passwordless sudo for, skipping.")
        return None

    entry = sudoers_entry(user)
    main_policy = executor.read_file(config.sudoers_file)
    drop_in = executor.read_file(drop_in_path(config))
    if policy_contains(main_policy, entry) or policy_contains(drop_in, entry):
        log_info(f"Passwordless sudo already configured for {user}")
        return None

    if config.sudoers_dir.is_dir():
        return write_drop_in(config, executor, entry)
    return append_to_main_policy(config, executor, entry)
