"""Filesystem helpers shared by the snapshot and token stores."""

import os
import re
import tempfile
from pathlib import Path

from errors import InvalidKey

MAX_KEY_LENGTH = 128

_KEY_PATTERN = re.compile(r"[A-Za-z0-9_.@-]+")


def validate_key(key: str) -> str:
    """Return ``key`` if it is safe to use as a file name.

    Raises:
        InvalidKey: For empty, over-long, dot-leading keys or keys with
            characters outside ``[A-Za-z0-9_.@-]``.
    """
    if (
        not key
        or len(key) > MAX_KEY_LENGTH
        or key.startswith(".")
        or not _KEY_PATTERN.fullmatch(key)
    ):
        raise InvalidKey(key)
    return key


def write_atomic(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` via a temp file and ``os.replace``.

    Readers see either the old content or the new content, never a partial
    write. Raises ``OSError`` on failure, leaving ``path`` untouched.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def dir_size(path: Path) -> int:
    """Total size in bytes of every file below ``path``."""
    total = 0
    for entry in os.scandir(path):
        if entry.is_dir(follow_symlinks=False):
            total += dir_size(Path(entry.path))
        else:
            total += entry.stat(follow_symlinks=False).st_size
    return total
