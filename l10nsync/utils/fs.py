"""Filesystem helpers."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

logger = logging.getLogger("l10nsync.utils.fs")


def atomic_write_text(path: Union[str, Path], content: str, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``content`` without leaving a half-written file.

    The content goes to a temporary file in the same directory which is then
    moved over the target with ``os.replace``.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug("Could not remove temporary file %s", tmp_name)
        raise


def atomic_write_bytes(path: Union[str, Path], content: bytes) -> None:
    """Binary counterpart of :func:`atomic_write_text`."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug("Could not remove temporary file %s", tmp_name)
        raise
