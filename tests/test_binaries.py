"""Unit tests for nvimlink.binaries."""

import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from nvimlink.binaries import (
    NOT_FOUND_ERROR,
    find_nvim_candidates,
    find_terminal,
    nvim_version,
    resolve_nvim,
)
from nvimlink.models import MANUAL_VERSION


def make_result(stdout="", stderr="", returncode=0):
    """Return a mock CompletedProcess-like object."""
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


def _make_executable(directory, name="nvim"):
    path = directory / name
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return str(path)


pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX executable bits")


class TestNvimVersion:
    @patch("nvimlink.binaries.subprocess.run")
    def test_parses_version_line(self, mock_run):
        mock_run.return_value = make_result(stdout="NVIM v0.10.2\nBuild type: Release\n")
        assert nvim_version("/usr/bin/nvim") == (0, 10, 2)
        mock_run.assert_called_once_with(
            ["/usr/bin/nvim", "--version"],
            capture_output=True,
            text=True,
            timeout=5,
        )

    @patch("nvimlink.binaries.subprocess.run")
    def test_returns_none_without_version(self, mock_run):
        mock_run.return_value = make_result(stdout="VIM - Vi IMproved 9.0")
        assert nvim_version("/usr/bin/vim") is None

    @patch("nvimlink.binaries.subprocess.run")
    def test_returns_none_on_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="nvim --version", timeout=5)
        assert nvim_version("/usr/bin/nvim") is None

    @patch("nvimlink.binaries.subprocess.run")
    def test_returns_none_on_permission_error(self, mock_run):
        mock_run.side_effect = PermissionError("denied")
        assert nvim_version("/usr/bin/nvim") is None


class TestResolveNvim:
    def test_override_is_trusted_without_checks(self):
        location = resolve_nvim("/does/not/exist/nvim", search_dirs=[])
        assert location.path == "/does/not/exist/nvim"
        assert location.version == MANUAL_VERSION
        assert location.error is None

    def test_newest_version_wins(self, tmp_path):
        old_dir = tmp_path / "old"
        new_dir = tmp_path / "new"
        old_dir.mkdir()
        new_dir.mkdir()
        old_nvim = _make_executable(old_dir)
        new_nvim = _make_executable(new_dir)
        versions = {old_nvim: (0, 9, 5), new_nvim: (0, 10, 1)}

        with patch("nvimlink.binaries.nvim_version", side_effect=versions.get):
            location = resolve_nvim(None, search_dirs=[str(old_dir), str(new_dir)])

        assert location.path == new_nvim
        assert location.version == "0.10.1"
        assert location.error is None

    def test_equal_versions_keep_search_order(self, tmp_path):
        first_dir = tmp_path / "a"
        second_dir = tmp_path / "b"
        first_dir.mkdir()
        second_dir.mkdir()
        first = _make_executable(first_dir)
        _make_executable(second_dir)

        with patch("nvimlink.binaries.nvim_version", return_value=(0, 10, 0)):
            matches = find_nvim_candidates([str(first_dir), str(second_dir)])

        assert [path for _, path in matches][0] == first
        assert len(matches) == 2

    def test_unversioned_candidates_are_skipped(self, tmp_path):
        _make_executable(tmp_path)
        with patch("nvimlink.binaries.nvim_version", return_value=None):
            assert find_nvim_candidates([str(tmp_path)]) == []

    def test_nothing_found_returns_error_location(self, tmp_path):
        location = resolve_nvim(None, search_dirs=[str(tmp_path)])
        assert location.path == ""
        assert location.resolved is False
        assert location.error == NOT_FOUND_ERROR


class TestFindTerminal:
    def test_bare_name_found_in_search_dirs(self, tmp_path):
        kitty = _make_executable(tmp_path, "kitty")
        assert find_terminal("kitty", search_dirs=[str(tmp_path)]) == kitty

    def test_missing_terminal_returns_none_with_warning(self, tmp_path, caplog):
        assert find_terminal("alacritty", search_dirs=[str(tmp_path)]) is None
        assert "could not find terminal binary" in caplog.text

    def test_explicit_path_must_be_executable(self, tmp_path):
        script = tmp_path / "term"
        script.write_text("")
        script.chmod(0o644)
        assert find_terminal(str(script)) is None
        script.chmod(0o755)
        assert find_terminal(str(script)) == str(script)

    def test_empty_name_returns_none(self):
        assert find_terminal("  ") is None
