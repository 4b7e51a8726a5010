"""Unpack the kernel source archive."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .errors import ArtifactMissingError
from .runner import CommandRunner

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (".tar.xz", ".tar.gz", ".tar.bz2", ".tar.zst", ".tgz", ".tar")


def source_dir_for(archive: Path) -> Path:
    """Return the directory ``archive`` unpacks to, e.g. linux-5.10.188.tar.xz -> linux-5.10.188."""
    name = archive.name
    for suffix in ARCHIVE_SUFFIXES:
        if name.endswith(suffix) and len(name) > len(suffix):
            return archive.with_name(name[: -len(suffix)])
    raise ValueError(f"not a recognised archive name: {name!r}")


def staging_dir_for(target: Path) -> Path:
    return target.with_name(target.name + ".partial")


def extract(archive: Path, runner: CommandRunner) -> Path:
    target = source_dir_for(archive)
    if target.exists():
        logger.info("exists: %s (skipping)", target)
        return target

    staging = staging_dir_for(target)
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir(parents=True)

    logger.info("untar kernel -> %s", target)
    runner.run(["tar", "xf", str(archive.resolve()), "-C", str(staging.resolve())])

    unpacked = staging / target.name
    if not unpacked.is_dir():
        raise ArtifactMissingError(f"{archive.name} did not unpack to {target.name}/")
    unpacked.rename(target)
    shutil.rmtree(staging)
    return target
