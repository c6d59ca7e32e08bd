"""Unit tests for the NvimLink facade."""

from unittest.mock import MagicMock, patch

import pytest

from nvimlink.errors import ConfigurationError
from nvimlink.models import NvimLinkConfig, TerminalFamily
from nvimlink.nvimlink import NvimLink


def _make_executable(directory, name):
    path = directory / name
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def vault(tmp_path):
    directory = tmp_path / "vault"
    directory.mkdir()
    return str(directory)


@pytest.fixture
def make_link(bin_dir, vault, notices, popen_factory, attach):
    def factory(platform="linux", **overrides):
        values = {"nvim_path": "/opt/nvim/bin/nvim", "terminal": "kitty", "vault_path": vault}
        values.update(overrides)
        link = NvimLink(
            NvimLinkConfig(**values),
            notices.append,
            platform=platform,
            search_dirs=[str(bin_dir)],
            popen=popen_factory,
            run=MagicMock(name="run"),
            attach=attach,
        )
        link.sessions.schedule_probe = MagicMock(name="schedule_probe")
        return link

    return factory


class TestDescribe:
    def test_reports_resolved_binaries(self, make_link, bin_dir):
        kitty = _make_executable(bin_dir, "kitty")
        link = make_link()

        assert dict(link.describe()) == {
            "Term Path": kitty,
            "Nvim Path": "/opt/nvim/bin/nvim",
            "Version": "manual",
            "Error State": "None",
            "Listen On": "127.0.0.1:2006",
        }

    def test_reports_missing_binaries(self, make_link):
        link = make_link(nvim_path=None)
        described = dict(link.describe())

        assert described["Term Path"] == "Not Found/Not Set"
        assert described["Nvim Path"] == "Not Found"
        assert described["Error State"] == "Neovim binary not found automatically."


class TestBuildPlan:
    def test_unknown_terminal(self, make_link):
        link = make_link()
        with pytest.raises(ConfigurationError, match="Unknown terminal: 'kitty'"):
            link.build_plan()

    def test_unresolved_nvim(self, make_link, bin_dir):
        _make_executable(bin_dir, "kitty")
        link = make_link(nvim_path=None)
        with pytest.raises(ConfigurationError, match="Neovim binary path is not configured"):
            link.build_plan()

    @patch("nvimlink.nvimlink.get_login_shell", return_value="/bin/zsh")
    def test_posix_plan(self, _shell, make_link, bin_dir, vault):
        kitty = _make_executable(bin_dir, "kitty")
        plan = make_link(api_key="secret").build_plan()

        assert plan.argv == [kitty, "-e", "/opt/nvim/bin/nvim", "--listen", "127.0.0.1:2006"]
        assert plan.shell_override == "/bin/zsh"
        assert plan.cwd == vault
        assert plan.env_overrides == {"OBSIDIAN_REST_API_KEY": "secret"}

    def test_no_api_key_means_no_injected_variable(self, make_link, bin_dir):
        _make_executable(bin_dir, "kitty")
        assert make_link().build_plan().env_overrides == {}

    @patch("nvimlink.nvimlink.get_login_shell")
    def test_windows_plan_skips_login_shell(self, mock_shell, make_link, bin_dir):
        _make_executable(bin_dir, "wt.exe")
        plan = make_link(platform="win32", terminal="wt.exe").build_plan()

        assert plan.family is TerminalFamily.TABBED
        assert plan.use_shell is False
        assert plan.shell_override is None
        mock_shell.assert_not_called()


class TestLaunch:
    def test_configuration_error_is_reported(self, make_link, notices, popen_factory):
        link = make_link()

        assert link.launch() is False

        assert popen_factory.calls == []
        assert notices == [
            "Unknown terminal: 'kitty'. Is it installed and on your PATH? Cannot start Neovim."
        ]

    @patch("nvimlink.nvimlink.get_login_shell", return_value="/bin/sh")
    def test_launch_then_refuse_second(self, _shell, make_link, bin_dir, notices, popen_factory):
        _make_executable(bin_dir, "kitty")
        link = make_link()

        assert link.launch() is True
        assert link.is_running() is True
        assert link.launch() is False

        assert len(popen_factory.calls) == 1
        assert notices == ["Linked Neovim instance already running"]
        link.close()
        assert link.is_running() is False

    @patch("nvimlink.nvimlink.get_login_shell", return_value="/bin/sh")
    def test_open_file_routes_to_owned_instance(self, _shell, make_link, bin_dir, vault):
        _make_executable(bin_dir, "kitty")
        link = make_link()
        link.router._run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        link.launch()

        result = link.open_file("notes/today.md").result(timeout=5)

        assert result.ok
        assert result.command[-1] == f"{vault}/notes/today.md"
        link.close()
