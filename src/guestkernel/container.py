"""Build and run the kernel build container.

The image embeds this package and re-invokes it with ``-build-kernel``, so
inside the container the program skips straight to downloading and building.
It runs as an unprivileged user with the host invoker's uid/gid, which keeps
files copied into the bind-mounted output directory writable from the host.
"""

from __future__ import annotations

import logging
import os
import shutil
import string
from collections.abc import Sequence
from pathlib import Path

from .config import BuildConfig
from .errors import KernelBuildError
from .paths import CONTAINER_OUTPUT_DIR, OUTPUT_DIR_MODE
from .preflight import find_container_tool
from .runner import CommandRunner

logger = logging.getLogger(__name__)

PACKAGE_NAME = "guestkernel"
CONTAINERFILE_NAME = "Dockerfile"
CONTAINER_USER = "guestkernel"
PROGRAM_DIR = "/opt/guestkernel"
PROGRAM_DIR_MODE = 0o755

_CONTAINERFILE_TEMPLATE = string.Template(
    """\
FROM ${base_image}
RUN apt-get update && apt-get install -y --no-install-recommends ${packages}
COPY ${package} ${program_dir}/${package}
RUN echo '${user}:x:${uid}:${gid}:nobody:/:/bin/sh' >> /etc/passwd && \\
    chown -R ${uid}:${gid} /usr/src
USER ${user}
WORKDIR /usr/src
ENV PYTHONPATH=${program_dir}
ENTRYPOINT ["python3", "-m", "${package}", "-arch", "${arch}", "-build-kernel"]
"""
)


def render_containerfile(
    *,
    uid: int,
    gid: int,
    arch: str,
    packages: Sequence[str],
    base_image: str,
) -> str:
    """Render the Dockerfile for the build image."""
    if not packages:
        raise ValueError("`packages` must not be empty.")
    return _CONTAINERFILE_TEMPLATE.substitute(
        base_image=base_image,
        packages=" ".join(packages),
        package=PACKAGE_NAME,
        program_dir=PROGRAM_DIR,
        user=CONTAINER_USER,
        uid=int(uid),
        gid=int(gid),
        arch=arch,
    )


def current_identity() -> tuple[int, int]:
    getuid = getattr(os, "getuid", None)
    getgid = getattr(os, "getgid", None)
    if getuid is None or getgid is None:
        raise KernelBuildError("cannot determine the numeric user identity on this platform")
    return getuid(), getgid()


def needs_keep_id(tool: str) -> bool:
    """Return whether ``tool`` must be told to map the container user to the invoker.

    Podman runs rootless containers in a user namespace where the image's user
    is not the host user unless ``--userns=keep-id`` is given.
    """
    return Path(tool).name != "docker"


def stage_program(context_dir: Path) -> Path:
    """Copy this package into ``context_dir`` so the image can run it."""
    source = Path(__file__).resolve().parent
    destination = context_dir / PACKAGE_NAME
    logger.info("copying %s -> %s", source, destination)
    shutil.copytree(
        source,
        destination,
        ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
    )
    destination.chmod(PROGRAM_DIR_MODE)
    return destination


def build_image(context_dir: Path, cfg: BuildConfig, runner: CommandRunner) -> None:
    uid, gid = current_identity()
    containerfile = context_dir / CONTAINERFILE_NAME
    logger.info("creating dockerfile -> %s", containerfile)
    containerfile.write_text(
        render_containerfile(
            uid=uid,
            gid=gid,
            arch=cfg.arch,
            packages=cfg.packages,
            base_image=cfg.base_image,
        ),
        encoding="utf-8",
    )

    tool = find_container_tool()
    logger.info("building container %s with %s", cfg.image_tag, tool)
    runner.run(
        [tool, "build", "--rm=true", f"--tag={cfg.image_tag}", "."],
        cwd=context_dir,
    )


def run_args(tool: str, cfg: BuildConfig) -> list[str]:
    args = [tool, "run", "--rm"]
    if needs_keep_id(tool):
        args.append("--userns=keep-id")
    args.extend(["--volume", f"{cfg.output_dir}:{CONTAINER_OUTPUT_DIR}:Z", cfg.image_tag])
    return args


def run_container(context_dir: Path, cfg: BuildConfig, runner: CommandRunner) -> None:
    tool = find_container_tool()
    cfg.output_dir.mkdir(mode=OUTPUT_DIR_MODE, parents=True, exist_ok=True)
    logger.info(
        "running container: working directory: %s, build results: %s",
        context_dir,
        cfg.output_dir,
    )
    runner.run(run_args(tool, cfg), cwd=context_dir)
