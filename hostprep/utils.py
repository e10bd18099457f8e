"""Utility functions for the provisioning tool."""
import getpass
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger("hostprep")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def current_user() -> str:
    """Name of the user this process runs as."""
    return getpass.getuser()


def get_real_user() -> str:
    """Get the real username (handles sudo)."""
    return os.environ.get('SUDO_USER', os.environ.get('USER', ''))


def get_real_home() -> str:
    """Get the real user's home directory (handles sudo)."""
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user:
        return os.path.expanduser(f'~{sudo_user}')
    return os.environ.get('HOME', '')


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")
    logger.info(message)


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")
    logger.info(message)


def log_warning(message: str) -> None:
    """Log a warning that does not stop the run."""
    print(f"[WARN] {message}")
    logger.warning(message)


def log_error(message: str) -> None:
    """Log an error."""
    print(f"[ERROR] {message}")
    logger.error(message)


def setup_logging(verbose: bool = False, log_file: Optional[Union[str, Path]] = None) -> None:
    """Setup logging configuration.

    Console output stays with the ``log_*`` helpers; the ``hostprep`` logger
    only feeds the append-only run log when ``log_file`` is given.
    """
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(file_handler)
    logger.debug("Logging to %s", log_path)
