"""Stage and normalize the kernel configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import BuildConfig
from .files import copy_file
from .runner import CommandRunner

logger = logging.getLogger(__name__)

STAGED_CONFIG_NAME = "kernel.config"
ACTIVE_CONFIG_NAME = ".config"


def stage_config(reference: Path, tree: Path) -> Path:
    """Copy the reference config into ``tree`` as ``kernel.config``."""
    destination = tree / STAGED_CONFIG_NAME
    logger.info("copying kernel config -> %s", destination)
    copy_file(reference, destination)
    return destination


def normalize_config(tree: Path, cfg: BuildConfig, runner: CommandRunner) -> Path:
    """Reset ``tree`` to the staged config and fill in defaults for new options.

    A previous ``.config`` means the tree has been built before, so both
    clean targets run first to drop stale objects and config residue.
    """
    active = tree / ACTIVE_CONFIG_NAME
    if active.exists():
        logger.info("cleaning previous build in %s", tree)
        runner.run(["make", "distclean"], cwd=tree)
        runner.run(["make", "clean"], cwd=tree)

    copy_file(tree / STAGED_CONFIG_NAME, active)
    runner.run(["make", f"ARCH={cfg.arch}", "olddefconfig"], cwd=tree)

    for flag, option in cfg.config_overrides:
        runner.run(["./scripts/config", flag, option], cwd=tree)
    return active
