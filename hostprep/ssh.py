"""SSH identity and client configuration for the target user."""
from __future__ import annotations

import socket
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.types import ProvisionError
from hostprep.utils import log_action, log_info

KEY_ALGORITHM = "ed25519"
KDF_ROUNDS = 100
SSH_CONFIG_TEMPLATE = Path(__file__).parent / "configs" / "ssh_config"


@dataclass(frozen=True)
class SshKeyPair:
    private_key_path: Path
    public_key_path: Path
    comment: str
    algorithm: str = KEY_ALGORITHM


def private_key_path(config: ProvisioningConfig) -> Path:
    return config.ssh_dir / f"id_{KEY_ALGORITHM}"


def key_comment(user: str, now: datetime, hostname: Optional[str] = None) -> str:
    return f"{user}@{hostname or socket.gethostname()}-{now.strftime('%Y%m%d')}"


def ensure_ssh_dir(config: ProvisioningConfig, executor: Executor) -> None:
    executor.ensure_directory(config.ssh_dir, mode=0o700)
    executor.chown(config.ssh_dir, config.run_as_user)


def generate_ssh_key(
    config: ProvisioningConfig,
    executor: Executor,
    now: Optional[datetime] = None,
) -> Optional[SshKeyPair]:
    """Create an ed25519 key pair unless the private key already exists."""
    if not config.generate_ssh_keys:
        log_info("Skipping SSH key generation")
        return None

    private_key = private_key_path(config)
    if private_key.exists():
        log_info(f"SSH key already exists at {private_key} - skipping generation")
        return None

    log_info(f"Generating SSH keys for {config.target_user}...")
    ensure_ssh_dir(config, executor)

    pair = SshKeyPair(
        private_key_path=private_key,
        public_key_path=private_key.with_name(private_key.name + ".pub"),
        comment=key_comment(config.target_user, now or datetime.now()),
    )
    result = executor.run(
        [
            "ssh-keygen", "-t", KEY_ALGORITHM, "-a", str(KDF_ROUNDS),
            "-f", str(pair.private_key_path), "-N", "", "-C", pair.comment, "-q",
        ],
        as_user=config.run_as_user,
    )
    if not result.ok:
        raise ProvisionError(f"ssh-keygen failed: {(result.stderr or result.stdout).strip()}")

    for path in (pair.private_key_path, pair.public_key_path):
        executor.chmod(path, 0o600)

    public_key = executor.read_file(pair.public_key_path)
    if public_key:
        log_info(f"SSH public key ({KEY_ALGORITHM}):")
        print(public_key.strip())
    return pair


def write_ssh_client_config(config: ProvisioningConfig, executor: Executor) -> Path:
    """Overwrite ``~/.ssh/config`` with the hardened defaults on every run."""
    log_info("Configuring SSH with secure defaults...")
    ensure_ssh_dir(config, executor)

    target = config.ssh_dir / "config"
    executor.write_file(target, SSH_CONFIG_TEMPLATE.read_text(), mode=0o600)
    executor.chown(target, config.run_as_user)
    log_action(f"Wrote {target}")
    return target
