from __future__ import annotations

import io
import shutil
import tarfile
from pathlib import Path

import pytest

from guestkernel.errors import ArtifactMissingError, CommandError
from guestkernel.extract import extract, source_dir_for, staging_dir_for
from guestkernel.runner import SubprocessRunner


def test_source_dir_strips_archive_suffix(tmp_path: Path) -> None:
    assert source_dir_for(tmp_path / "linux-5.10.188.tar.xz") == tmp_path / "linux-5.10.188"
    assert source_dir_for(tmp_path / "linux-6.1.tgz") == tmp_path / "linux-6.1"
    assert source_dir_for(Path("linux-6.6.tar")) == Path("linux-6.6")


def test_source_dir_rejects_unknown_suffix(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="archive"):
        source_dir_for(tmp_path / "linux-5.10.188.zip")


def test_existing_tree_skips_archive_tool(runner, tmp_path: Path) -> None:
    archive = tmp_path / "linux-5.10.188.tar.xz"
    (tmp_path / "linux-5.10.188").mkdir()

    assert extract(archive, runner) == tmp_path / "linux-5.10.188"
    assert runner.calls == []


def test_invokes_tar_once_and_moves_tree_into_place(kernel_runner, tmp_path: Path) -> None:
    archive = tmp_path / "linux-5.10.188.tar.xz"
    archive.write_bytes(b"xz")

    tree = extract(archive, kernel_runner)

    assert tree == tmp_path / "linux-5.10.188"
    assert (tree / "Makefile").is_file()
    assert kernel_runner.count("tar") == 1
    assert kernel_runner.commands[0][:3] == ["tar", "xf", str(archive.resolve())]
    assert not staging_dir_for(tree).exists()


def test_tar_failure_leaves_no_target(runner, tmp_path: Path) -> None:
    archive = tmp_path / "linux-5.10.188.tar.xz"
    archive.write_bytes(b"truncated")
    runner.fail(["tar"])

    with pytest.raises(CommandError, match="tar xf"):
        extract(archive, runner)

    assert not (tmp_path / "linux-5.10.188").exists()


def test_leftover_staging_dir_is_discarded(kernel_runner, tmp_path: Path) -> None:
    archive = tmp_path / "linux-5.10.188.tar.xz"
    stale = staging_dir_for(tmp_path / "linux-5.10.188")
    (stale / "linux-5.10.188").mkdir(parents=True)
    (stale / "linux-5.10.188" / "half-written.c").write_text("int", encoding="utf-8")

    tree = extract(archive, kernel_runner)

    assert not (tree / "half-written.c").exists()


def test_archive_without_expected_top_level_dir(runner, tmp_path: Path) -> None:
    archive = tmp_path / "linux-5.10.188.tar.xz"

    with pytest.raises(ArtifactMissingError, match="did not unpack"):
        extract(archive, runner)


@pytest.mark.skipif(shutil.which("tar") is None, reason="tar is not installed")
def test_extracts_real_tarball(tmp_path: Path) -> None:
    archive = tmp_path / "linux-9.9.tar.gz"
    with tarfile.open(archive, mode="w:gz") as handle:
        data = b"VERSION = 9\n"
        member = tarfile.TarInfo("linux-9.9/Makefile")
        member.size = len(data)
        handle.addfile(member, io.BytesIO(data))

    tree = extract(archive, SubprocessRunner())

    assert (tree / "Makefile").read_bytes() == b"VERSION = 9\n"
