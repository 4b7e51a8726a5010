"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path

from .errors import KernelBuildError


def copy_file(src: Path, dest: Path) -> None:
    """Copy ``src`` to ``dest`` keeping its permission bits and its owner.

    The copy is chowned to the uid/gid of ``src``, not of the caller, so files
    written by the mapped container user stay owned by that user.
    """
    info = os.stat(src)
    chown = getattr(os, "chown", None)
    if chown is None:
        raise KernelBuildError(f"failed to get ownership of {src} on this platform")

    shutil.copyfile(src, dest)
    os.chmod(dest, stat.S_IMODE(info.st_mode))
    try:
        chown(dest, info.st_uid, info.st_gid)
    except OSError as exc:
        raise KernelBuildError(f"chown failed for {dest}: {exc}") from exc
