"""Output path helpers for guestkernel."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

OUTPUT_DIR_ENV = "GUESTKERNEL_OUTPUT_DIR"
DEFAULT_OUTPUT_DIR = Path("/tmp/kernel.image")

# Bind-mount target inside the build container. Never derived from the host.
CONTAINER_OUTPUT_DIR = PurePosixPath("/tmp/kernel.image")
OUTPUT_DIR_MODE = 0o776


def get_output_dir(output_dir: str | Path | None = None) -> Path:
    """Return the directory the kernel artifact is copied into.

    Priority order:
    1) explicit ``output_dir`` argument
    2) ``GUESTKERNEL_OUTPUT_DIR`` environment variable
    3) ``/tmp/kernel.image``
    """
    if output_dir is not None:
        return Path(output_dir).expanduser().resolve()

    override = os.environ.get(OUTPUT_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()

    return DEFAULT_OUTPUT_DIR

