"""Tests for hostprep.utils module."""
import logging

import pytest
from unittest.mock import patch
from hostprep import utils


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    utils.setup_logging()


def test_command_exists_when_command_found():
    """Test command_exists returns True when command is found."""
    with patch('shutil.which', return_value='/usr/bin/apt-get'):
        assert utils.command_exists('apt-get') is True


def test_command_exists_when_command_not_found():
    """Test command_exists returns False when command not found."""
    with patch('shutil.which', return_value=None):
        assert utils.command_exists('nonexistent') is False


def test_is_root_when_root():
    """Test is_root returns True when running as root."""
    with patch('os.geteuid', return_value=0):
        assert utils.is_root() is True


def test_is_root_when_not_root():
    """Test is_root returns False when not running as root."""
    with patch('os.geteuid', return_value=1000):
        assert utils.is_root() is False


def test_get_real_user_when_sudo():
    """Test get_real_user returns SUDO_USER when running with sudo."""
    with patch.dict('os.environ', {'SUDO_USER': 'testuser', 'USER': 'root'}):
        assert utils.get_real_user() == 'testuser'


def test_get_real_user_when_not_sudo():
    """Test get_real_user returns USER when not running with sudo."""
    with patch.dict('os.environ', {'USER': 'normaluser'}, clear=True):
        assert utils.get_real_user() == 'normaluser'


def test_get_real_home_when_sudo():
    """Test get_real_home returns sudo user's home."""
    with patch.dict('os.environ', {'SUDO_USER': 'testuser'}):
        with patch('os.path.expanduser', return_value='/home/testuser'):
            assert utils.get_real_home() == '/home/testuser'


def test_get_real_home_when_not_sudo():
    """Test get_real_home returns current user's home."""
    with patch.dict('os.environ', {'HOME': '/home/normaluser'}, clear=True):
        assert utils.get_real_home() == '/home/normaluser'


def test_log_info(capsys):
    """Test log_info outputs formatted message."""
    utils.log_info("Test message")
    captured = capsys.readouterr()
    assert "[INFO] Test message\n" == captured.out


def test_log_action(capsys):
    """Test log_action outputs indented message."""
    utils.log_action("Installing package")
    captured = capsys.readouterr()
    assert "  -> Installing package\n" == captured.out


def test_log_warning(capsys):
    utils.log_warning("Careful")
    assert capsys.readouterr().out == "[WARN] Careful\n"


def test_log_error(capsys):
    utils.log_error("Broken")
    assert capsys.readouterr().out == "[ERROR] Broken\n"


def test_setup_logging_verbose():
    """Test setup_logging in verbose mode."""
    utils.setup_logging(verbose=True)
    assert utils.logger.level == logging.DEBUG


def test_setup_logging_normal():
    """Test setup_logging in normal mode."""
    utils.setup_logging(verbose=False)
    assert utils.logger.level == logging.INFO


def test_setup_logging_appends_to_log_file(tmp_path):
    """Messages land in the log file and earlier runs are kept."""
    log_file = tmp_path / "var" / "log" / "system_setup.log"
    log_file.parent.mkdir(parents=True)
    log_file.write_text("previous run\n")

    utils.setup_logging(verbose=False, log_file=log_file)
    utils.log_info("Second run")
    for handler in utils.logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert content.startswith("previous run\n")
    assert "INFO | Second run" in content


def test_setup_logging_creates_log_directory(tmp_path):
    log_file = tmp_path / "nested" / "setup.log"

    utils.setup_logging(log_file=log_file)

    assert log_file.parent.is_dir()
