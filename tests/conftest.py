from __future__ import annotations

import functools
import http.server
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from guestkernel.errors import CommandError
from guestkernel.extract import source_dir_for

Handler = Callable[..., None]


@dataclass
class Call:
    args: list[str]
    cwd: Path | None
    env: dict[str, str] | None


@dataclass
class RecordingRunner:
    """Stands in for SubprocessRunner: records calls and simulates their effects."""

    calls: list[Call] = field(default_factory=list)
    handlers: list[tuple[tuple[str, ...], Handler]] = field(default_factory=list)
    failures: list[tuple[tuple[str, ...], int]] = field(default_factory=list)

    def on(self, prefix: Sequence[str], handler: Handler) -> None:
        self.handlers.append((tuple(prefix), handler))

    def fail(self, prefix: Sequence[str], returncode: int = 2) -> None:
        self.failures.append((tuple(prefix), returncode))

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        argv = [str(arg) for arg in args]
        self.calls.append(Call(args=argv, cwd=cwd, env=None if env is None else dict(env)))
        for prefix, returncode in self.failures:
            if tuple(argv[: len(prefix)]) == prefix:
                raise CommandError(argv, returncode)
        for prefix, handler in self.handlers:
            if tuple(argv[: len(prefix)]) == prefix:
                handler(argv, cwd)

    @property
    def commands(self) -> list[list[str]]:
        return [call.args for call in self.calls]

    def count(self, *prefix: str) -> int:
        return sum(1 for argv in self.commands if tuple(argv[: len(prefix)]) == prefix)


def _fake_untar(argv: list[str], cwd: Path | None) -> None:
    # tar xf <archive> -C <staging>
    archive = Path(argv[2])
    staging = Path(argv[4])
    tree = staging / source_dir_for(archive).name
    (tree / "scripts").mkdir(parents=True)
    (tree / "Makefile").write_text("# kernel\n", encoding="utf-8")


def _fake_make(argv: list[str], cwd: Path | None) -> None:
    assert cwd is not None
    target = argv[-1]
    if target == "distclean":
        (cwd / ".config").unlink(missing_ok=True)
    elif target == "vmlinux":
        (cwd / "vmlinux").write_bytes(b"\x7fELF kernel")


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def kernel_runner() -> RecordingRunner:
    """A runner whose tar and make calls behave like a successful kernel build."""
    fake = RecordingRunner()
    fake.on(["tar"], _fake_untar)
    fake.on(["make"], _fake_make)
    return fake


@dataclass
class Remote:
    root: Path
    base_url: str
    requests: list[str]

    def add(self, name: str, data: bytes) -> str:
        (self.root / name).write_bytes(data)
        return self.url(name)

    def url(self, name: str) -> str:
        return f"{self.base_url}/{name}"


class _QuietHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        pass


@pytest.fixture
def remote(tmp_path: Path, monkeypatch) -> Iterator[Remote]:
    """Serve ``tmp_path / "remote"`` over HTTP on localhost."""
    for name in ("no_proxy", "NO_PROXY"):
        monkeypatch.setenv(name, "*")

    root = tmp_path / "remote"
    root.mkdir()
    requests: list[str] = []

    class Handler(_QuietHandler):
        def do_GET(self) -> None:
            requests.append(self.path)
            super().do_GET()

    server = http.server.ThreadingHTTPServer(
        ("127.0.0.1", 0),
        functools.partial(Handler, directory=str(root)),
    )
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield Remote(root=root, base_url=f"http://127.0.0.1:{server.server_address[1]}", requests=requests)
    finally:
        server.shutdown()
        server.server_close()
        thread.join()
