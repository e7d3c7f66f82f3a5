"""Engine binary resolution.

Checks an explicit path, then the ``LUTGRADE_FFMPEG`` / ``LUTGRADE_FFPROBE``
environment variables, then ``PATH``, then the usual package manager
install locations. A candidate only counts if it is an executable file.
"""

import os
import pathlib
import platform
import shutil
from typing import Optional


def _build_search_dirs() -> list[pathlib.Path]:
    """Well-known install directories for the current platform."""
    dirs: list[pathlib.Path] = []
    system = platform.system()

    if system == "Windows":
        dirs.append(pathlib.Path.home() / "scoop" / "shims")
        program_files = os.environ.get("ProgramFiles")
        if program_files:
            dirs.append(pathlib.Path(program_files) / "ffmpeg" / "bin")
    else:
        if system == "Darwin":
            dirs.append(pathlib.Path("/opt/homebrew/bin"))   # Homebrew on Apple Silicon
            dirs.append(pathlib.Path("/opt/local/bin"))      # MacPorts
        dirs.append(pathlib.Path("/usr/local/bin"))
        dirs.append(pathlib.Path("/usr/bin"))
        dirs.append(pathlib.Path.home() / ".local" / "bin")

    return dirs


_EXTRA_SEARCH_DIRS = _build_search_dirs()


def is_executable(path: str | pathlib.Path) -> bool:
    candidate = pathlib.Path(path)
    return candidate.is_file() and os.access(candidate, os.X_OK)


def resolve_binary(name: str, explicit: Optional[str] = None, env_var: Optional[str] = None) -> Optional[str]:
    """Return the full path to a usable binary, or ``None``."""
    for candidate in (explicit, os.environ.get(env_var) if env_var else None):
        if candidate and is_executable(candidate):
            return str(pathlib.Path(candidate).resolve())

    found = shutil.which(name)
    if found:
        return found

    suffix = ".exe" if platform.system() == "Windows" else ""
    for directory in _EXTRA_SEARCH_DIRS:
        candidate = directory / f"{name}{suffix}"
        if is_executable(candidate):
            return str(candidate)

    return None


def resolve_ffmpeg(explicit: Optional[str] = None) -> Optional[str]:
    return resolve_binary("ffmpeg", explicit, "LUTGRADE_FFMPEG")


def resolve_ffprobe(explicit: Optional[str] = None) -> Optional[str]:
    return resolve_binary("ffprobe", explicit, "LUTGRADE_FFPROBE")
