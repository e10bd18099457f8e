"""Tests for the shell environment configurator."""
from hostprep import shell


class TestHasBlock:

    def test_marker_line_present(self):
        assert shell.has_block(f"export A=1\n{shell.BLOCK_BEGIN}\nalias l='ls'\n")

    def test_marker_inside_other_text_does_not_count(self):
        """Test an incidental mention of the marker is not a match."""
        assert not shell.has_block(f"echo '{shell.BLOCK_BEGIN}'\n")

    def test_empty(self):
        assert not shell.has_block(None)
        assert not shell.has_block("")


class TestConfigureShell:

    def test_appends_block_without_touching_existing_content(self, make_config, fake_executor):
        config = make_config()
        original = "# ~/.bashrc\nexport EDITOR=vim\n"
        config.bashrc_path.write_text(original)

        assert shell.configure_shell(config, fake_executor) is True

        content = config.bashrc_path.read_text()
        assert content.startswith(original)
        assert shell.BLOCK_BEGIN in content
        assert content.rstrip().endswith(shell.BLOCK_END)
        assert "HISTSIZE=100000" in content

    def test_second_run_does_not_duplicate(self, make_config, fake_executor, capsys):
        config = make_config()
        config.bashrc_path.write_text("# rc\n")

        shell.configure_shell(config, fake_executor)
        after_first = config.bashrc_path.read_text()
        assert shell.configure_shell(config, fake_executor) is False

        assert config.bashrc_path.read_text() == after_first
        assert after_first.count(shell.BLOCK_BEGIN) == 1
        assert "already exists" in capsys.readouterr().out

    def test_ownership_goes_to_target_user(self, make_config, fake_executor):
        config = make_config()

        shell.configure_shell(config, fake_executor)

        assert fake_executor.chowned == [(config.bashrc_path, "alice")]

    def test_creates_missing_bashrc(self, make_config, fake_executor):
        config = make_config()

        shell.configure_shell(config, fake_executor)

        assert config.bashrc_path.exists()
