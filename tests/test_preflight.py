"""Tests for preflight checks."""
import pytest
from unittest.mock import MagicMock, patch

from hostprep import preflight
from hostprep.types import PreflightError

GIB = 1024 ** 3


@pytest.fixture
def healthy_host():
    """Patch every probe to report a healthy, privileged host."""
    with patch('hostprep.preflight.command_exists', return_value=True) as mock_exists, \
         patch('hostprep.preflight.shutil.disk_usage', return_value=MagicMock(free=50 * GIB)) as mock_usage, \
         patch('hostprep.preflight.is_root', return_value=True) as mock_root:
        yield {"command_exists": mock_exists, "disk_usage": mock_usage, "is_root": mock_root}


class TestPackageManager:

    def test_missing_apt_fails(self, healthy_host, make_config, fake_executor):
        """Test a host without apt fails with a package manager message."""
        healthy_host["command_exists"].side_effect = lambda name: name != "apt-get"

        with pytest.raises(PreflightError, match="apt package manager"):
            preflight.run_preflight(make_config(), fake_executor)

        assert fake_executor.calls == []


class TestNetwork:

    def test_ip_probe_success(self, make_config, fake_executor):
        preflight.check_network(make_config(), fake_executor)

        assert fake_executor.commands() == [["ping", "-c", "1", "-W", "5", "8.8.8.8"]]

    def test_falls_back_to_domain(self, make_config, fake_executor):
        """Test the DNS name is probed when the IP is unreachable."""
        fake_executor.respond(["ping", "-c", "1", "-W", "5", "8.8.8.8"], returncode=1)

        preflight.check_network(make_config(), fake_executor)

        assert fake_executor.commands()[-1][-1] == "example.com"

    def test_no_connectivity(self, healthy_host, make_config, fake_executor):
        fake_executor.respond(["ping"], returncode=2)

        with pytest.raises(PreflightError, match="No internet connectivity"):
            preflight.run_preflight(make_config(), fake_executor)


class TestDiskSpace:

    def test_insufficient_space(self, healthy_host, make_config, fake_executor):
        healthy_host["disk_usage"].return_value = MagicMock(free=2 * GIB)

        with pytest.raises(PreflightError, match="Need at least 5GB free"):
            preflight.run_preflight(make_config(), fake_executor)

    def test_exact_minimum_passes(self, healthy_host, make_config):
        healthy_host["disk_usage"].return_value = MagicMock(free=5 * GIB)

        preflight.check_disk_space(make_config())


class TestPrivileges:

    def test_not_root(self, healthy_host, make_config, fake_executor):
        healthy_host["is_root"].return_value = False

        with pytest.raises(PreflightError, match="root"):
            preflight.run_preflight(make_config(), fake_executor)

    def test_capability_checks_run_before_privilege_check(self, healthy_host, make_config, fake_executor):
        """Test a non-root run without network reports the network problem first."""
        healthy_host["is_root"].return_value = False
        fake_executor.respond(["ping"], returncode=1)

        with pytest.raises(PreflightError, match="connectivity"):
            preflight.run_preflight(make_config(), fake_executor)
        healthy_host["is_root"].assert_not_called()


def test_preflight_passes_on_healthy_host(healthy_host, make_config, fake_executor, capsys):
    preflight.run_preflight(make_config(), fake_executor)

    assert "Preflight checks passed." in capsys.readouterr().out
