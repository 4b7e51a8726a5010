"""guestkernel package."""

from .config import BuildConfig
from .errors import KernelBuildError
from .pipeline import Modes, build_kernel, run

__all__ = ["BuildConfig", "KernelBuildError", "Modes", "build_kernel", "run"]
