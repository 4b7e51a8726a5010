"""Compile the kernel image and publish it."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import BuildConfig
from .errors import ArtifactMissingError
from .files import copy_file
from .paths import OUTPUT_DIR_MODE
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def build_timestamp(now: datetime | None = None) -> str:
    """Format ``now`` the way ``date`` does, e.g. ``Mon Jan  2 15:04:05 UTC 2006``."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{moment:%a %b} {moment.day:2d} {moment:%H:%M:%S} UTC {moment.year}"


def compile_kernel(
    tree: Path,
    cfg: BuildConfig,
    runner: CommandRunner,
    *,
    timestamp: str | None = None,
) -> Path:
    binary = cfg.binary_name
    env = dict(os.environ)
    env["KBUILD_BUILD_TIMESTAMP"] = timestamp or build_timestamp()

    logger.info("compiling %s with %d jobs", binary, cfg.job_count)
    runner.run(
        ["make", f"ARCH={cfg.arch}", f"-j{cfg.job_count}", binary],
        cwd=tree,
        env=env,
    )

    built = tree / binary
    if not built.is_file():
        raise ArtifactMissingError(f"built the kernel alright, but cannot find {built}")

    cfg.output_dir.mkdir(mode=OUTPUT_DIR_MODE, parents=True, exist_ok=True)
    artifact = cfg.output_dir / built.name
    copy_file(built, artifact)
    logger.info("wrote: %s", artifact)
    return artifact
