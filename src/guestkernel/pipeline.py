"""Sequence the build modes."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from . import container
from .compiler import compile_kernel
from .config import BuildConfig
from .configure import normalize_config, stage_config
from .errors import stage
from .extract import extract
from .fetch import fetch
from .preflight import assert_build_tools_ready
from .runner import CommandRunner

logger = logging.getLogger(__name__)

TEMP_PREFIX = "guestkernel-build-"


@dataclass(frozen=True)
class Modes:
    build_image: bool = False
    run_container: bool = False
    build_kernel: bool = False


def build_kernel(cfg: BuildConfig, runner: CommandRunner, workdir: Path) -> Path:
    """Fetch, extract, configure and compile the kernel inside ``workdir``.

    Downloads and extraction are skipped when their outputs exist. Clean,
    configure and compile always run.
    """
    with stage("preflight"):
        assert_build_tools_ready()

    workdir = workdir.resolve()
    archive = workdir / cfg.kernel_archive_name
    reference = workdir / cfg.config_name

    with stage("download kernel source"):
        fetch(cfg.kernel_url, archive, timeout_s=cfg.fetch_timeout_s)
    with stage("download kernel config"):
        fetch(cfg.config_url, reference, timeout_s=cfg.fetch_timeout_s)
    with stage("untar kernel"):
        tree = extract(archive, runner)
    with stage("copy kernel config"):
        stage_config(reference, tree)
    with stage("configure kernel"):
        normalize_config(tree, cfg, runner)
    with stage("kernel compile"):
        return compile_kernel(tree, cfg, runner)


def run(
    modes: Modes,
    cfg: BuildConfig,
    runner: CommandRunner,
    *,
    workdir: Path,
    temp_root: Path | None = None,
) -> None:
    """Run each selected mode in order: build image, run container, build kernel.

    The build context directory is removed however this returns.
    """
    with tempfile.TemporaryDirectory(prefix=TEMP_PREFIX, dir=temp_root) as temp_dir:
        context_dir = Path(temp_dir)

        if modes.build_image:
            with stage("build image"):
                container.stage_program(context_dir)
                container.build_image(context_dir, cfg, runner)

        if modes.run_container:
            with stage("run container"):
                container.run_container(context_dir, cfg, runner)

        if modes.build_kernel:
            artifact = build_kernel(cfg, runner, workdir)
            logger.info("kernel image ready: %s", artifact)
