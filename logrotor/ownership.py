"""Carry a rotated log file's ownership over to its replacement."""

from __future__ import annotations

import os
import stat
import sys

__all__ = ["chown"]


def chown(name: str | os.PathLike[str], info: os.stat_result) -> None:
    """Create ``name`` empty with the mode and owner recorded in ``info``.

    The file is created (or truncated) with the permission bits of ``info``
    and then handed to the user and group that owned the original file.
    Ownership only carries meaning on Linux; elsewhere nothing is done.

    Raises :class:`OSError` if the file cannot be created or its owner
    cannot be changed.
    """
    if not sys.platform.startswith("linux"):
        return
    path = os.fspath(name)
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, stat.S_IMODE(info.st_mode))
    os.close(fd)
    os.chown(path, info.st_uid, info.st_gid)