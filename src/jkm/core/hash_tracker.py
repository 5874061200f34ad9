"""Requirements drift detection via a content-hash marker stored in the venv."""

import hashlib
from dataclasses import dataclass
from pathlib import Path

MARKER_FILENAME = ".requirements_hash"


@dataclass(frozen=True)
class Freshness:
    """Comparison of the stored marker against the requirements file on disk.

    Attributes:
        up_to_date: True when the marker matches (or there is nothing to install)
        current_hash: Digest of the requirements file ("" if it does not exist)
        stored_hash: Digest from the marker, or None if no marker
    """

    up_to_date: bool
    current_hash: str
    stored_hash: str | None


def compute_file_hash(path: Path) -> str:
    """Return the lowercase MD5 hex digest of a file's raw bytes."""
    return hashlib.md5(path.read_bytes()).hexdigest()


def marker_path(venv_dir: Path) -> Path:
    return venv_dir / MARKER_FILENAME


def read_stored_hash(venv_dir: Path) -> str | None:
    """Read the marker, or None if it is missing or unreadable."""
    try:
        return marker_path(venv_dir).read_text(encoding="utf-8").strip()
    except OSError:
        return None


def write_hash(venv_dir: Path, digest: str) -> None:
    marker_path(venv_dir).write_text(digest, encoding="utf-8")


def check_freshness(venv_dir: Path, requirements_path: Path) -> Freshness:
    """Compare the stored marker with the current requirements file.

    A missing requirements file counts as up to date: there is nothing to
    install.
    """
    try:
        current = compute_file_hash(requirements_path)
    except OSError:
        return Freshness(up_to_date=True, current_hash="", stored_hash=None)

    stored = read_stored_hash(venv_dir)
    return Freshness(
        up_to_date=stored is not None and stored == current,
        current_hash=current,
        stored_hash=stored,
    )
