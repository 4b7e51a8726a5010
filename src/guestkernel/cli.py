"""Command line interface.

Usage:
    guestkernel -build-image -run-container
    guestkernel -build-kernel
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import DEFAULT_ARCH, BuildConfig, supported_arches
from .errors import KernelBuildError
from .paths import OUTPUT_DIR_ENV, get_output_dir
from .pipeline import Modes, run
from .runner import CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="guestkernel",
        description="Build a Linux kernel image for a microVM guest.",
    )
    parser.add_argument(
        "-arch",
        "--arch",
        default=DEFAULT_ARCH,
        help=(
            "Architecture to compile the kernel for, supported archs: "
            f"{', '.join(supported_arches())} (default: {DEFAULT_ARCH})."
        ),
    )
    parser.add_argument(
        "-build-image",
        "--build-image",
        action="store_true",
        help="Build the container image that builds the kernel.",
    )
    parser.add_argument(
        "-run-container",
        "--run-container",
        action="store_true",
        help="Run the previously built container image.",
    )
    parser.add_argument(
        "-build-kernel",
        "--build-kernel",
        action="store_true",
        help="Download, configure and build the kernel in the working directory.",
    )
    parser.add_argument(
        "-workdir",
        "--workdir",
        type=Path,
        default=Path("."),
        help="Directory holding downloads and the kernel source tree (default: .).",
    )
    parser.add_argument(
        "-output-dir",
        "--output-dir",
        help=(
            "Directory the kernel image is copied to "
            f"(default: ${OUTPUT_DIR_ENV} or /tmp/kernel.image)."
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every command run.")
    args = parser.parse_args(argv)

    if not (args.build_image or args.run_container or args.build_kernel):
        parser.error("select at least one of -build-image, -run-container, -build-kernel")
    return args


def main(argv: list[str] | None = None, runner: CommandRunner | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
    )

    cfg = BuildConfig(arch=args.arch, output_dir=get_output_dir(args.output_dir))
    try:
        cfg.validate()
    except ValueError as exc:
        print(f"guestkernel: error: {exc}", file=sys.stderr)
        return 2

    modes = Modes(
        build_image=args.build_image,
        run_container=args.run_container,
        build_kernel=args.build_kernel,
    )
    try:
        run(modes, cfg, runner or SubprocessRunner(), workdir=args.workdir)
    except (KernelBuildError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0
