"""Build configuration."""

from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .extract import source_dir_for
from .paths import get_output_dir

DEFAULT_ARCH = "x86_64"

# see https://www.kernel.org/releases.json
KERNEL_SOURCE_URL = "https://cdn.kernel.org/pub/linux/kernel/v5.x/linux-5.10.188.tar.xz"

# Firecracker's guest config, from resources/guest_configs in firecracker-microvm/firecracker.
KERNEL_CONFIG_URL = (
    "https://raw.githubusercontent.com/firecracker-microvm/firecracker/main/"
    "resources/guest_configs/microvm-kernel-x86_64-5.10.config"
)

DEFAULT_IMAGE_TAG = "guestkernel-build"
DEFAULT_BASE_IMAGE = "debian:bullseye"

COMMON_PACKAGES = (
    "bc",
    "bison",
    "ca-certificates",
    "flex",
    "kmod",
    "libelf-dev",
    "libssl-dev",
    "python3",
    "xz-utils",
)

ARCH_PACKAGES: dict[str, tuple[str, ...]] = {
    "x86_64": ("build-essential",),
}

# Path of the kernel image relative to the source tree.
ARCH_BINARIES: dict[str, str] = {
    "x86_64": "vmlinux",
}

# The guest kernel does not need debug info.
DEFAULT_CONFIG_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("--disable", "DEBUG_INFO"),
    ("--enable", "DEBUG_INFO_NONE"),
)


def supported_arches() -> tuple[str, ...]:
    return tuple(sorted(ARCH_BINARIES))


def url_basename(url: str) -> str:
    """Return the final path segment of ``url``."""
    name = PurePosixPath(urllib.parse.urlsplit(url).path).name
    if not name:
        raise ValueError(f"cannot derive a file name from URL: {url!r}")
    return name


@dataclass(frozen=True)
class BuildConfig:
    arch: str = DEFAULT_ARCH
    kernel_url: str = KERNEL_SOURCE_URL
    config_url: str = KERNEL_CONFIG_URL
    image_tag: str = DEFAULT_IMAGE_TAG
    base_image: str = DEFAULT_BASE_IMAGE
    output_dir: Path = field(default_factory=get_output_dir)
    jobs: int | None = None
    fetch_timeout_s: float | None = None
    config_overrides: tuple[tuple[str, str], ...] = DEFAULT_CONFIG_OVERRIDES

    def validate(self) -> None:
        if self.arch not in ARCH_BINARIES:
            raise ValueError(
                f"`arch` must be one of {', '.join(supported_arches())}, got: {self.arch!r}"
            )
        for name in ("kernel_url", "config_url", "image_tag", "base_image"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"`{name}` must be a non-empty string.")
        source_dir_for(Path(self.kernel_archive_name))
        url_basename(self.config_url)
        if self.jobs is not None and (not isinstance(self.jobs, int) or self.jobs <= 0):
            raise ValueError(f"`jobs` must be a positive int, got: {self.jobs!r}")
        if self.fetch_timeout_s is not None and self.fetch_timeout_s <= 0:
            raise ValueError(
                f"`fetch_timeout_s` must be positive, got: {self.fetch_timeout_s!r}"
            )

    @property
    def kernel_archive_name(self) -> str:
        return url_basename(self.kernel_url)

    @property
    def config_name(self) -> str:
        return url_basename(self.config_url)

    @property
    def binary_name(self) -> str:
        return ARCH_BINARIES[self.arch]

    @property
    def packages(self) -> tuple[str, ...]:
        return ARCH_PACKAGES[self.arch] + COMMON_PACKAGES

    @property
    def job_count(self) -> int:
        if self.jobs is not None:
            return self.jobs
        return os.cpu_count() or 1
