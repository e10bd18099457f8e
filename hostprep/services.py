"""monit configuration and service state."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.types import ProvisionError
from hostprep.utils import command_exists, log_action, log_info, log_warning

MONITRC_MODE = 0o600


def install_monitrc(
    config: ProvisioningConfig,
    executor: Executor,
    now: Optional[datetime] = None,
) -> bool:
    """Install the monit control file and (re)start monit.

    Returns False when there is nothing to install. A configuration that
    ``monit -t`` rejects raises ``ProvisionError`` after the file is in place.
    """
    log_info("Installing monitrc configuration...")
    source = config.monitrc_source
    if source is None or not source.is_file():
        log_warning(f"monitrc not found ({source or 'no source configured'}), skipping")
        return False

    target = config.monitrc_target
    executor.ensure_directory(target.parent, mode=0o755)
    if target.exists():
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        backup = target.with_name(f"{target.name}.backup.{stamp}")
        executor.copy_file(target, backup)
        log_action(f"Backed up existing monitrc to {backup}")

    executor.copy_file(source, target, mode=MONITRC_MODE)
    log_action(f"Installed monitrc to {target}")

    if not command_exists("monit"):
        log_warning("Monit is not installed; configuration installed but service not restarted.")
        return True

    check = executor.run(["monit", "-t"], mutable=False)
    if not check.ok:
        raise ProvisionError(f"monitrc validation failed: {(check.stderr or check.stdout).strip()}")

    active = executor.run(["systemctl", "is-active", "--quiet", "monit"], mutable=False)
    if active.ok:
        log_action("Restarting monit service...")
        if not executor.run(["systemctl", "restart", "monit"]).ok:
            raise ProvisionError("Failed to restart monit service")
    else:
        log_action("Monit service is not running, starting it...")
        started = executor.run(["systemctl", "start", "monit"]).ok
        if not (started and executor.run(["systemctl", "enable", "monit"]).ok):
            log_warning("Monit service could not be started (may need manual configuration)")
    return True
