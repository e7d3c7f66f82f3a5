"""Path validation and filter-value escaping.

LUT and video paths end up inside filter-graph strings and subprocess
argument lists, so they are resolved and checked before use.
"""

import os
from pathlib import Path

ALLOWED_VIDEO_EXTENSIONS = {
    '.mp4', '.mkv', '.avi', '.mov', '.webm', '.m4v', '.mpg', '.mpeg', '.mts',
    '.m2ts', '.ts', '.mxf',
}
ALLOWED_LUT_EXTENSIONS = {'.cube', '.3dl', '.csp', '.dat', '.m3d'}

# Critical system directories that should be protected from write operations
UNSAFE_DIRECTORIES = {
    "/bin", "/boot", "/dev", "/etc", "/lib", "/lib64", "/proc",
    "/run", "/sbin", "/sys", "/usr",
}


def _check_unsafe_path(path: Path) -> None:
    """Raise ValueError if the path targets a sensitive system directory."""
    path_str = str(path)
    for unsafe in UNSAFE_DIRECTORIES:
        if path_str == unsafe or path_str.startswith(f"{unsafe}{os.sep}"):
            raise ValueError(f"Path targets unsafe system directory: {path}")

    if os.name == 'nt':
        lower_path = path_str.lower()
        if (lower_path.startswith("c:\\windows") or
                lower_path.startswith("c:\\program files")):
            raise ValueError(f"Path targets unsafe system directory: {path}")


def validate_path(path: str | Path, allowed_extensions: set[str], must_exist: bool = True) -> Path:
    """Generic path validator for file inputs.

    Args:
        path: The path to validate.
        allowed_extensions: Set of allowed file extensions (e.g. {'.cube'}).
        must_exist: If True, raises ValueError when the file doesn't exist.

    Returns:
        The resolved, absolute path.

    Raises:
        ValueError: If path is empty, contains traversal, has an invalid
                    extension, or doesn't exist (when must_exist=True).
    """
    if not str(path).strip():
        raise ValueError("Path cannot be empty")

    if ".." in Path(path).parts:
        raise ValueError(f"Path contains directory traversal (..): {path}")

    resolved = Path(path).resolve()

    if resolved.suffix.lower() not in allowed_extensions:
        raise ValueError(
            f"Invalid file extension: {resolved.suffix}. "
            f"Allowed: {sorted(allowed_extensions)}"
        )

    if must_exist:
        if not resolved.exists():
            raise ValueError(f"File not found: {resolved}")
        if not resolved.is_file():
            raise ValueError(f"Path is not a file: {resolved}")

    return resolved


def validate_video_path(path: str | Path, must_exist: bool = True) -> Path:
    """Validate and resolve a source video path."""
    return validate_path(path, ALLOWED_VIDEO_EXTENSIONS, must_exist=must_exist)


def validate_lut_path(path: str | Path, must_exist: bool = True) -> Path:
    """Validate and resolve a 3D LUT path."""
    return validate_path(path, ALLOWED_LUT_EXTENSIONS, must_exist=must_exist)


def validate_output_dir(path: str | Path) -> Path:
    """Validate an export directory. The directory need not exist yet."""
    if not str(path).strip():
        raise ValueError("Output path cannot be empty")

    if ".." in Path(path).parts:
        raise ValueError(f"Output path contains directory traversal (..): {path}")

    resolved = Path(path).resolve()
    _check_unsafe_path(resolved)
    return resolved


def escape_filter_path(path: str | Path) -> str:
    """Quote a path for use as a single-quoted filter option value.

    Inside single quotes only the quote itself is special to the filter
    graph parser; it is closed, escaped and reopened.
    """
    text = str(path)
    if "'" in text:
        text = text.replace("'", "'\\''")
    return f"'{text}'"
