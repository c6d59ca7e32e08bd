"""Locate the Neovim and terminal emulator executables."""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path

from nvimlink.models import MANUAL_VERSION, BinaryLocation

log = logging.getLogger(__name__)

NOT_FOUND_ERROR = "Neovim binary not found automatically."
VERSION_TIMEOUT_SECONDS = 5
NVIM_VERSION_RE = re.compile(r"NVIM v(\d+)\.(\d+)\.(\d+)")


def _well_known_dirs() -> list[str]:
    """Return install locations that are often missing from a GUI app's PATH."""
    home = Path.home()
    if os.name == "nt":
        dirs: list[str] = []
        for env_key, parts in (
            ("PROGRAMFILES", ("Neovim", "bin")),
            ("PROGRAMFILES(X86)", ("Neovim", "bin")),
            ("LOCALAPPDATA", ("Programs", "Neovim", "bin")),
            ("PROGRAMDATA", ("chocolatey", "bin")),
        ):
            base = os.environ.get(env_key)
            if base:
                dirs.append(str(Path(base).joinpath(*parts)))
        dirs.append(str(home / "scoop" / "shims"))
        return dirs
    return [
        "/usr/local/bin",
        "/opt/homebrew/bin",
        "/snap/bin",
        "/opt/nvim-linux64/bin",
        str(home / ".local" / "bin"),
        str(home / "bin"),
        "/usr/bin",
    ]


def default_search_dirs() -> list[str]:
    """Return PATH directories followed by well-known locations, deduplicated."""
    raw_dirs = os.environ.get("PATH", "").split(os.pathsep) + _well_known_dirs()
    dirs: list[str] = []
    seen: set[str] = set()
    for raw_dir in raw_dirs:
        path_dir = raw_dir.strip()
        if not path_dir:
            continue
        normalized = os.path.normpath(os.path.expanduser(path_dir))
        if normalized in seen:
            continue
        seen.add(normalized)
        dirs.append(normalized)
    return dirs


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def nvim_version(path: str) -> tuple[int, int, int] | None:
    """Run ``nvim --version`` and return its (major, minor, patch)."""
    try:
        result = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=VERSION_TIMEOUT_SECONDS,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        log.debug("%s --version failed: %s", path, e)
        return None
    match = NVIM_VERSION_RE.search(result.stdout or "")
    if match is None:
        log.debug("%s --version printed no NVIM version", path)
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return major, minor, patch


def find_nvim_candidates(search_dirs: list[str]) -> list[tuple[tuple[int, int, int], str]]:
    """Return working Neovim executables as (version, path), newest first."""
    exe_name = "nvim.exe" if os.name == "nt" else "nvim"
    matches: list[tuple[tuple[int, int, int], str]] = []
    seen: set[str] = set()
    for search_dir in search_dirs:
        candidate = os.path.join(search_dir, exe_name)
        if not _is_executable(candidate):
            continue
        real = os.path.realpath(candidate)
        if real in seen:
            continue
        seen.add(real)
        version = nvim_version(candidate)
        if version is None:
            continue
        matches.append((version, candidate))
    # sorted() is stable, so equal versions keep search-order preference.
    return sorted(matches, key=lambda match: match[0], reverse=True)


def resolve_nvim(override_path: str | None, search_dirs: list[str] | None = None) -> BinaryLocation:
    """Resolve the Neovim executable.

    A configured override is trusted as-is; a bad path only surfaces when it
    is executed. Otherwise the newest Neovim found in ``search_dirs`` wins.
    """
    if override_path and override_path.strip():
        log.info("using manual Neovim path: %s", override_path)
        return BinaryLocation(path=override_path.strip(), version=MANUAL_VERSION)

    log.info("searching for Neovim binary in default locations")
    dirs = default_search_dirs() if search_dirs is None else search_dirs
    matches = find_nvim_candidates(dirs)
    if not matches:
        log.error("failed to find Neovim binary: %s", NOT_FOUND_ERROR)
        return BinaryLocation(path="", error=NOT_FOUND_ERROR)
    version, path = matches[0]
    return BinaryLocation(path=path, version=".".join(str(part) for part in version))


def find_terminal(name: str, search_dirs: list[str] | None = None) -> str | None:
    """Resolve a terminal emulator name or path to an executable path."""
    candidate = name.strip()
    if not candidate:
        return None
    has_sep = os.path.sep in candidate or (
        os.path.altsep is not None and os.path.altsep in candidate
    )
    if has_sep:
        found = candidate if _is_executable(candidate) else None
    else:
        dirs = default_search_dirs() if search_dirs is None else search_dirs
        found = shutil.which(candidate, path=os.pathsep.join(dirs))
    if found is None:
        log.warning(
            "could not find terminal binary for '%s'. Is it installed and in your PATH?",
            name,
        )
    return found
