"""
Path resolution utilities.

Everything the bot reads or writes on disk is resolved against the repository root
unless the configured path is already absolute.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

BASE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = BASE_DIR / "templates"


def resolve_repo_path(path: Union[str, Path]) -> Path:
    candidate = Path(path).expanduser()
    if candidate.is_absolute() or candidate.drive:
        return candidate
    return BASE_DIR / candidate


def resolve_data_file(data_dir: Union[str, Path], filename: str) -> Path:
    """Return the path of a store file inside the configured data directory."""
    return resolve_repo_path(data_dir) / filename
