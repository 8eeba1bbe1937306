"""
Shared utility helpers.

This module keeps the "sharp edges" (errors, validation and path handling) in
one place so the rest of the code can stay focused on page geometry.
"""

from __future__ import annotations

from pathlib import Path


class UserError(Exception):
    """Raised for user-facing problems that should show a clear message."""


class ParseError(UserError):
    """The input bytes are not a readable PDF document."""


class FileAccessError(UserError):
    """Reading the input or writing an output failed."""


class GeometryError(UserError):
    """A page has geometry that cannot produce a meaningful output page."""


DEFAULT_SUFFIX = "_unspread"


def normalize_path(value: str) -> Path:
    """
    Convert user input to a Path.

    We do not resolve() here because we want to preserve relative paths in
    manifests and error messages.
    """

    return Path(value).expanduser()


def ensure_file_exists(path: Path, label: str) -> Path:
    """Validate that a path exists and is a file."""

    if not path.exists():
        raise UserError(f"{label} not found: {path}")
    if not path.is_file():
        raise UserError(f"{label} is not a file: {path}")
    return path


def ensure_dir(path: Path, dry_run: bool) -> None:
    """Create a directory if needed, unless this is a dry-run."""

    if dry_run:
        return
    path.mkdir(parents=True, exist_ok=True)


def ensure_file_path(path: Path, label: str) -> None:
    """Ensure a path is a file path (not an existing directory)."""

    if path.exists() and path.is_dir():
        raise UserError(f"{label} is a directory, not a file: {path}")


def validate_positive_int(value: int, label: str) -> int:
    """Common validation for options like --debug_dpi."""

    if value <= 0:
        raise UserError(f"{label} must be a positive integer.")
    return value


def normalize_rotation(angle: int) -> int:
    """
    Map any multiple of 90 onto 0/90/180/270.

    PDF allows negative and >360 values for /Rotate; anything that is not a
    right angle is rejected.
    """

    if angle % 90 != 0:
        raise GeometryError(f"Page rotation must be a multiple of 90, got {angle}.")
    return angle % 360


def with_suffix(path: Path, suffix: str = DEFAULT_SUFFIX) -> Path:
    """
    Insert a suffix before the final extension.

    Examples:
    - book.pdf -> book_unspread.pdf
    - scans.v2.pdf -> scans.v2_unspread.pdf
    - book -> book_unspread
    """

    if not suffix:
        raise UserError("Output suffix must not be empty.")
    return path.with_name(f"{path.stem}{suffix}{path.suffix}")


def read_bytes(path: Path) -> bytes:
    """Read a whole input file, mapping OS errors onto FileAccessError."""

    ensure_file_exists(path, "PDF")
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileAccessError(f"Failed to read {path}: {exc}") from exc


def write_bytes(path: Path, data: bytes) -> None:
    """Write a whole output file, creating its folder first."""

    try:
        ensure_dir(path.parent, dry_run=False)
        path.write_bytes(data)
    except OSError as exc:
        raise FileAccessError(f"Failed to write {path}: {exc}") from exc
