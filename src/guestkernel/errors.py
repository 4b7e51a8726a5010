"""Errors that abort a kernel build."""

from __future__ import annotations

import contextlib
import shlex
from collections.abc import Iterator, Sequence


class KernelBuildError(RuntimeError):
    """Base class for unrecoverable build failures."""


class FetchError(KernelBuildError):
    """Remote resource could not be retrieved."""


class ArtifactMissingError(KernelBuildError):
    """A step reported success but its expected output is absent."""


class CommandError(KernelBuildError):
    def __init__(self, args: Sequence[str], returncode: int) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        super().__init__(f"`{shlex.join(self.args_list)}` exited with status {returncode}")


class StageError(KernelBuildError):
    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")


@contextlib.contextmanager
def stage(name: str) -> Iterator[None]:
    """Attribute any build or filesystem failure raised inside to ``name``."""
    try:
        yield
    except StageError:
        raise
    except (KernelBuildError, OSError) as exc:
        raise StageError(name, exc) from exc
