"""Download remote build inputs."""

from __future__ import annotations

import http.client
import logging
import os
import urllib.error
import urllib.request
from pathlib import Path

from .config import url_basename
from .errors import FetchError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
_USER_AGENT = "guestkernel/0.1"


def resolve_destination(url: str, dest: str | Path | None = None) -> Path:
    """Return ``dest``, or the URL's final path segment when it is empty."""
    if dest is not None and str(dest):
        return Path(dest)
    return Path(url_basename(url))


def partial_path(destination: Path) -> Path:
    return destination.with_name(destination.name + ".part")


def _stream(response, handle) -> int:
    written = 0
    while True:
        chunk = response.read(_CHUNK_SIZE)
        if not chunk:
            return written
        handle.write(chunk)
        written += len(chunk)


def _expected_length(response) -> int | None:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def fetch(url: str, dest: str | Path | None = None, *, timeout_s: float | None = None) -> Path:
    """Download ``url`` to ``dest`` unless something is already there.

    The body is streamed to ``<dest>.part`` and renamed over ``dest`` only
    once complete, so an existing ``dest`` is always a finished download.
    """
    destination = resolve_destination(url, dest)
    if destination.exists():
        logger.info("exists: %s (skipping)", destination)
        return destination

    logger.info("downloading %s -> %s", url, destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = partial_path(destination)
    request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout_s) as response:
            if response.status != 200:
                raise FetchError(
                    f"unexpected HTTP status code for {url}: got {response.status}, want 200"
                )
            expected = _expected_length(response)
            with partial.open("wb") as handle:
                written = _stream(response, handle)
            # http.client reports a connection closed mid-body as a short read.
            if expected is not None and written != expected:
                raise FetchError(
                    f"truncated download of {url}: got {written} of {expected} bytes"
                )
    except urllib.error.HTTPError as exc:
        partial.unlink(missing_ok=True)
        raise FetchError(
            f"unexpected HTTP status code for {url}: got {exc.code}, want 200"
        ) from exc
    except (OSError, http.client.HTTPException) as exc:
        partial.unlink(missing_ok=True)
        raise FetchError(f"failed to download {url}: {exc}") from exc
    except FetchError:
        partial.unlink(missing_ok=True)
        raise

    os.replace(partial, destination)
    return destination
