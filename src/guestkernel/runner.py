"""External command execution."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from .errors import CommandError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run ``args`` to completion, raising ``CommandError`` on non-zero exit."""


class SubprocessRunner:
    """Runs commands with the calling process's stdout and stderr."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        argv = [str(arg) for arg in args]
        if cwd is None:
            logger.debug("running: %s", shlex.join(argv))
        else:
            logger.debug("running in %s: %s", cwd, shlex.join(argv))
        completed = subprocess.run(
            argv,
            cwd=cwd,
            env=None if env is None else dict(env),
            check=False,
        )
        if completed.returncode != 0:
            raise CommandError(argv, completed.returncode)
