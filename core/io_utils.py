"""
File I/O helpers for the JSON stores.

Blocking file access runs in a worker thread so the event loop never stalls.
"""
from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any


class StoreReadError(RuntimeError):
    """A store file exists but could not be read or decoded."""


async def read_json(path: Path, default: Any = None) -> Any:
    """
    Load a JSON document from ``path``.

    A missing file yields ``default``. An unreadable or malformed file raises
    ``StoreReadError`` so callers can decide whether that is fatal.
    """
    def _read() -> Any:
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except FileNotFoundError:
            return default
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StoreReadError(f"{path}: {exc}") from exc

    return await asyncio.to_thread(_read)


async def write_json_atomic(path: Path, data: Any) -> None:
    """Overwrite ``path`` with ``data`` as UTF-8 JSON via a temp file and rename."""
    def _write() -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)

    await asyncio.to_thread(_write)

