"""Checks that must pass before the provisioner changes anything."""
import shutil

from hostprep.config import ProvisioningConfig
from hostprep.executor import Executor
from hostprep.types import PreflightError
from hostprep.utils import command_exists, is_root, log_info

GIB = 1024 ** 3
REQUIRED_COMMANDS = ("apt-get", "dpkg-query")


def check_package_manager() -> None:
    missing = [command for command in REQUIRED_COMMANDS if not command_exists(command)]
    if missing:
        raise PreflightError(
            f"This tool requires the apt package manager (Debian/Ubuntu); missing: {', '.join(missing)}"
        )


def host_reachable(host: str, executor: Executor) -> bool:
    result = executor.run(["ping", "-c", "1", "-W", "5", host], mutable=False)
    return result.ok


def check_network(config: ProvisioningConfig, executor: Executor) -> None:
    """Probe the test IP first and the test domain as a fallback."""
    for host in (config.ping_test_ip, config.ping_test_domain):
        if host_reachable(host, executor):
            log_info(f"Network connectivity confirmed via {host}.")
            return
    raise PreflightError(
        f"No internet connectivity detected (could not reach {config.ping_test_ip} "
        f"or {config.ping_test_domain})"
    )


def free_space_gb(path: str = "/") -> int:
    return shutil.disk_usage(path).free // GIB


def check_disk_space(config: ProvisioningConfig) -> None:
    available = free_space_gb("/")
    if available < config.min_free_space_gb:
        raise PreflightError(
            f"Not enough disk space. Need at least {config.min_free_space_gb}GB free, "
            f"found {available}GB."
        )


def check_privileges() -> None:
    if not is_root():
        raise PreflightError("This tool must be run as root or with sudo")


def run_preflight(config: ProvisioningConfig, executor: Executor) -> None:
    """Run every check in order; the first failure raises ``PreflightError``."""
    log_info("Running preflight checks...")
    check_package_manager()
    check_network(config, executor)
    check_disk_space(config)
    check_privileges()
    log_info("Preflight checks passed.")
