"""
Atomic file operations for generated site artifacts.

Writes either complete successfully or leave the previous file untouched,
so the site never serves a torn apps.json or index.html.
Uses write-to-temp-then-rename for POSIX atomicity guarantees.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def dump_json(data: Any, indent: int = 2) -> str:
    """
    Serialize data the way generated artifacts are stored.

    Key order follows the mapping's insertion order and the output always
    ends with a newline, so identical data yields identical bytes.
    """
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def atomic_write_text(path: Union[str, Path], content: str, mode: int = 0o644) -> None:
    """
    Write text content to file atomically.

    Args:
        path: Destination file path
        content: Text content to write
        mode: File permissions (default 0o644)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory keeps the rename on one filesystem
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        # newline="" keeps line endings exactly as given
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, mode)
        os.replace(temp_path, path)

    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def write_if_changed(path: Union[str, Path], content: str) -> bool:
    """
    Atomically replace a file only when its content differs.

    Returns:
        True if the file was written.
    """
    path = Path(path)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                current = f.read()
        except (OSError, UnicodeDecodeError):
            current = None
        if current == content:
            return False

    atomic_write_text(path, content)
    return True


def atomic_write_json(path: Union[str, Path], data: Any, indent: int = 2) -> bool:
    """
    Write JSON data atomically, skipping the write if nothing changed.

    Returns:
        True if the file was written.
    """
    return write_if_changed(path, dump_json(data, indent=indent))
