from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Callable, Optional


def list_files(root: Path) -> list[Path]:
    paths = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if not name.startswith(".")]
        base = Path(current)
        paths.extend(base / name for name in filenames if not name.startswith("."))
    return paths


def tree_signature(root: Path) -> str:
    """Digest of every visible file's path, mtime and size under root."""
    if not root.is_dir():
        raise FileNotFoundError(f"Content directory not found: {root}")
    digest = hashlib.sha256()
    for path in sorted(list_files(root), key=lambda p: p.as_posix()):
        stat = path.stat()
        digest.update(path.relative_to(root).as_posix().encode("utf-8"))
        digest.update(b"\0")
        digest.update(f"{stat.st_mtime_ns}:{stat.st_size}".encode("ascii"))
        digest.update(b"\0")
    return digest.hexdigest()


class TreeCache:
    """Navigation HTML memoised on the content tree signature."""

    def __init__(self) -> None:
        self._entry: Optional[tuple[str, str]] = None

    def get(self, root: Path, build: Callable[[], str]) -> str:
        signature = tree_signature(root)
        entry = self._entry
        if entry is not None and entry[0] == signature:
            return entry[1]
        rendered = build()
        self._entry = (signature, rendered)
        return rendered

    def clear(self) -> None:
        self._entry = None
