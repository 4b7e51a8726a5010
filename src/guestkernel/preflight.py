"""Host tool checks."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass

from .errors import KernelBuildError

BUILD_TOOLS = ("tar", "make")


def container_tool_candidates() -> tuple[str, ...]:
    """Return container tool names in order of preference."""
    return ("docker", "podman")


def find_container_tool() -> str:
    """Locate docker or podman on PATH, following symlinks.

    A ``docker`` shim that links to podman resolves to podman.
    """
    candidates = container_tool_candidates()
    for candidate in candidates:
        resolved = shutil.which(candidate)
        if resolved:
            return os.path.realpath(resolved)
    raise KernelBuildError(f"none of {', '.join(candidates)} found in $PATH")


@dataclass(frozen=True)
class ToolCheckResult:
    found: dict[str, str]
    missing_executables: list[str]

    @property
    def ok(self) -> bool:
        return not self.missing_executables


def check_build_tools(names: tuple[str, ...] = BUILD_TOOLS) -> ToolCheckResult:
    """Check that the tools the build-kernel chain shells out to exist."""
    found: dict[str, str] = {}
    missing: list[str] = []
    for name in names:
        resolved = shutil.which(name)
        if resolved:
            found[name] = resolved
        else:
            missing.append(name)
    return ToolCheckResult(found=found, missing_executables=missing)


def assert_build_tools_ready(names: tuple[str, ...] = BUILD_TOOLS) -> None:
    """Raise KernelBuildError when build tools are missing."""
    result = check_build_tools(names)
    if result.ok:
        return

    lines = ["kernel build tools are missing:"]
    for name in result.missing_executables:
        lines.append(f"- {name}")
    lines.append("Install them, or build inside the container with `-build-image -run-container`.")
    raise KernelBuildError("\n".join(lines))
