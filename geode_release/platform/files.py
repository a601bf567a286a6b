"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

__all__ = ["scoped_temp_file"]


@contextmanager
def scoped_temp_file(*, prefix: str, suffix: str) -> Iterator[Path]:
    """Create an empty temp file and remove it when the block exits.

    Removal happens on every exit path, including exceptions.

    Raises:
        OSError: If the file cannot be created.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
    finally:
        tmp_path.unlink(missing_ok=True)
