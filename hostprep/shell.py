"""Shell prompt, alias and history customizations."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.utils import log_action, log_info

BLOCK_BEGIN = "# >>> hostprep shell customizations >>>"
BLOCK_END = "# <<< hostprep shell customizations <<<"
BASHRC_TEMPLATE = Path(__file__).parent / "configs" / "bashrc_block"


def has_block(text: Optional[str]) -> bool:
    """True when ``text`` holds the begin marker as a line of its own."""
    if not text:
        return False
    return any(line.strip() == BLOCK_BEGIN for line in text.splitlines())


def render_block(payload: str) -> str:
    return f"\n{BLOCK_BEGIN}\n{payload.rstrip()}\n{BLOCK_END}\n"


def configure_shell(config: ProvisioningConfig, executor: Executor) -> bool:
    """Append the customization block to the user's ``.bashrc`` once.

    Returns True when the block was appended.
    """
    log_info("Setting up custom prompt and aliases...")
    bashrc = config.bashrc_path
    current = executor.read_file(bashrc)
    if has_block(current):
        log_info(f"Custom prompt already exists in {bashrc} - skipping")
        return False

    executor.append_file(bashrc, render_block(BASHRC_TEMPLATE.read_text()))
    executor.chown(bashrc, config.run_as_user)
    log_action(f"Custom prompt and aliases added to {bashrc}")
    log_info(f"To apply changes immediately, run: source {bashrc}")
    return True
