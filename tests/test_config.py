"""Tests for run configuration."""
import dataclasses
from pathlib import Path

import pytest
from unittest.mock import patch

from hostprep.config import PACKAGE_CATEGORIES, PackageSpec, build_config


class TestPackageSpec:

    def test_parse_with_constraint(self):
        spec = PackageSpec.parse("htop=3.*")

        assert spec.name == "htop"
        assert spec.version_constraint == "3.*"
        assert spec.install_target == "htop=3.*"

    def test_parse_plain_name(self):
        spec = PackageSpec.parse("jq")

        assert spec == PackageSpec("jq")
        assert spec.install_target == "jq"


def test_categories_are_static():
    assert set(PACKAGE_CATEGORIES) == {
        "monitoring", "network", "text-tools", "disk-tools", "security", "misc", "gui",
    }
    assert PackageSpec("flameshot") in PACKAGE_CATEGORIES["gui"]


class TestBuildConfig:

    @patch('hostprep.config.utils.current_user', return_value='root')
    @patch('hostprep.config.utils.get_real_home', return_value='/home/alice')
    @patch('hostprep.config.utils.get_real_user', return_value='alice')
    def test_resolves_sudo_user(self, mock_user, mock_home, mock_current, tmp_path):
        config = build_config(backup_root=tmp_path)

        assert config.target_user == "alice"
        assert config.target_home == Path("/home/alice")
        assert config.run_as_user == "alice"
        assert config.backup_root == tmp_path
        assert config.backup_dir is None
        assert config.enable_passwordless_sudo is True
        assert config.install_gui_tools is False
        assert config.min_free_space_gb == 5

    @patch('hostprep.config.utils.current_user', return_value='root')
    @patch('hostprep.config.utils.get_real_home', return_value='/root')
    @patch('hostprep.config.utils.get_real_user', return_value='root')
    def test_no_run_as_for_same_user(self, mock_user, mock_home, mock_current, tmp_path):
        config = build_config(backup_root=tmp_path)

        assert config.run_as_user is None

    def test_config_is_immutable(self, make_config):
        config = make_config()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.enable_passwordless_sudo = False

    def test_gui_packages_kept_out_of_base_list(self, make_config):
        config = make_config()

        assert [s.name for s in config.base_packages] == ["htop", "git", "jq"]
        assert [s.name for s in config.gui_packages] == ["flameshot"]

    def test_sensitive_files(self, make_config):
        config = make_config()

        assert config.sensitive_files == [
            config.target_home / ".bashrc",
            config.target_home / ".ssh" / "config",
            config.sudoers_file,
        ]
