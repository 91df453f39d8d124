"""
config-governance — filesystem utilities

File: src/config_governance/utils/fs.py
Last updated: 2026-10-19

Purpose
- Provide the write-temp-then-rename primitive every document write goes through.

Functional requirements
- Atomic writes use temp files in the destination directory and replace in a single step.
- JSON documents are written with 2-space indentation and a trailing newline.

Non-functional requirements
- Standard library only; no locking (callers serialize writers).
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

PathLike = str | os.PathLike[str]

__all__ = [
    "PathLike",
    "atomic_write",
    "atomic_write_json",
    "render_json_document",
]


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.

    Readers observe either the previous content or the new content, never a
    truncated file.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        mode = "wb" if isinstance(data, bytes) else "w"
        open_kwargs: dict[str, Any] = {} if isinstance(data, bytes) else {"encoding": encoding}
        with os.fdopen(fd, mode, **open_kwargs) as file_handle:
            file_handle.write(data)
            file_handle.flush()
            os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def render_json_document(document: Any) -> str:
    """Serialize ``document`` the way governed JSON files are stored on disk."""

    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def atomic_write_json(path: PathLike, document: Any) -> None:
    atomic_write(path, render_json_document(document))


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
