"""Blob store backends for payload offload.

Storage
-------
:class:`FilesystemBlobStore` keeps each object as a plain file at
``<root>/<key>`` with a JSON sidecar next to it::

    <root>/results/user.signup/2026-01-02/evt_1/1767323045678.json
    <root>/results/user.signup/2026-01-02/evt_1/1767323045678.json.meta.json

The sidecar records the content type and the caller's custom metadata map.
Objects are written to a temporary file first and linked into place, so a
reader never observes a half-written object. A key is written once: a second
``put`` to the same key raises :exc:`BlobExistsError` and leaves the stored
object untouched.

Keys
----
Keys are ``/``-separated relative paths. Empty segments, ``.``/``..`` segments
and absolute keys are rejected so a key can never address a file outside the
store root.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_META_SUFFIX = ".meta.json"
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9._-]")


# ── Exceptions ────────────────────────────────────────────────────────────────


class BlobError(Exception):
    """Base exception for blob store failures."""


class BlobWriteError(BlobError):
    """Raised when an object cannot be stored."""


class BlobExistsError(BlobWriteError):
    """Raised when an object is already stored under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Blob already exists: {key}")
        self.key = key


class BlobNotFoundError(BlobError):
    """Raised when no object exists for the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Blob not found: {key}")
        self.key = key


# ── Types ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BlobObject:
    """A stored object together with its metadata."""

    key: str
    data: bytes
    content_type: str = "application/octet-stream"
    custom_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)


class BlobStore(Protocol):
    """Out-of-line object storage addressed by string keys."""

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        custom_metadata: dict[str, str] | None = None,
    ) -> str: ...

    def get(self, key: str) -> BlobObject: ...


# ── Key helpers ───────────────────────────────────────────────────────────────


def sanitize_segment(value: object) -> str:
    """Make ``value`` safe to use as one key segment.

    Characters outside ``[A-Za-z0-9._-]`` become ``_``; segments made only of
    dots are prefixed so they cannot be read as ``.`` or ``..``.
    """
    segment = _UNSAFE_SEGMENT_CHARS.sub("_", str(value)) or "_"
    if set(segment) == {"."}:
        segment = f"_{segment}"
    return segment


def build_result_key(partition_a: object, partition_b: object, partition_c: object, timestamp: int) -> str:
    """Return ``results/<a>/<b>/<c>/<timestamp>.json`` with sanitised partitions."""
    parts = [sanitize_segment(p) for p in (partition_a, partition_b, partition_c)]
    return "/".join(["results", *parts, f"{int(timestamp)}.json"])


def validate_key(key: str) -> str:
    """Return ``key`` unchanged when it is a safe relative object key.

    Raises:
        ValueError: If the key is empty, absolute, has empty/dot segments, or
            collides with the metadata sidecar naming scheme.
    """
    if not isinstance(key, str) or not key:
        raise ValueError("blob key must be a non-empty string")
    if key.startswith("/") or "\\" in key:
        raise ValueError(f"blob key must be relative: {key!r}")
    segments = key.split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        raise ValueError(f"blob key has an invalid segment: {key!r}")
    if key.endswith(_META_SUFFIX):
        raise ValueError(f"blob key may not end with {_META_SUFFIX!r}")
    return key


# ── Backends ──────────────────────────────────────────────────────────────────


class FilesystemBlobStore:
    """:class:`BlobStore` keeping objects as files under ``root``."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _object_path(self, key: str) -> Path:
        return self.root.joinpath(*validate_key(key).split("/"))

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        custom_metadata: dict[str, str] | None = None,
    ) -> str:
        """Store ``data`` under ``key`` and return the key as the pointer.

        Raises:
            BlobExistsError: If an object is already stored under ``key``.
            BlobWriteError: If the key is invalid or the filesystem write fails.
        """
        try:
            path = self._object_path(key)
        except ValueError as exc:
            raise BlobWriteError(str(exc)) from exc

        meta = {"content_type": content_type, "custom_metadata": dict(custom_metadata or {})}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _write_atomic(path, data, overwrite=False)
            _write_atomic(path.with_name(path.name + _META_SUFFIX), json.dumps(meta).encode("utf-8"))
        except FileExistsError as exc:
            raise BlobExistsError(key) from exc
        except OSError as exc:
            raise BlobWriteError(f"Failed to write blob {key!r}: {exc}") from exc

        logger.debug("Stored blob %s (%d bytes)", key, len(data))
        return key

    def get(self, key: str) -> BlobObject:
        """Return the object stored under ``key``.

        Raises:
            BlobNotFoundError: If the key is invalid or no object exists.
        """
        try:
            path = self._object_path(key)
        except ValueError as exc:
            raise BlobNotFoundError(key) from exc

        try:
            data = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise BlobNotFoundError(key) from exc

        content_type = "application/octet-stream"
        custom_metadata: dict[str, str] = {}
        meta_path = path.with_name(path.name + _META_SUFFIX)
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            content_type = meta.get("content_type") or content_type
            custom_metadata = dict(meta.get("custom_metadata") or {})
        except FileNotFoundError:
            pass
        except ValueError:
            logger.warning("Blob metadata sidecar for %s is unreadable; using defaults.", key)

        return BlobObject(
            key=key,
            data=data,
            content_type=content_type,
            custom_metadata=custom_metadata,
        )


class InMemoryBlobStore:
    """:class:`BlobStore` holding objects in a dict. Contents die with the process."""

    def __init__(self) -> None:
        self._objects: dict[str, BlobObject] = {}
        self._lock = threading.Lock()

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        custom_metadata: dict[str, str] | None = None,
    ) -> str:
        try:
            validate_key(key)
        except ValueError as exc:
            raise BlobWriteError(str(exc)) from exc
        obj = BlobObject(
            key=key,
            data=bytes(data),
            content_type=content_type,
            custom_metadata=dict(custom_metadata or {}),
        )
        with self._lock:
            if key in self._objects:
                raise BlobExistsError(key)
            self._objects[key] = obj
        return key

    def get(self, key: str) -> BlobObject:
        with self._lock:
            obj = self._objects.get(key)
        if obj is None:
            raise BlobNotFoundError(key)
        return obj

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)


def _write_atomic(path: Path, data: bytes, *, overwrite: bool = True) -> None:
    """Write ``data`` to a temp file in ``path``'s directory, then move it to ``path``.

    With ``overwrite=False`` the temp file is hard-linked into place, which
    raises :exc:`FileExistsError` when ``path`` already exists.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
        if overwrite:
            os.replace(tmp_name, path)
            return
        os.link(tmp_name, path)
    except BaseException:
        _discard(tmp_name)
        raise
    _discard(tmp_name)


def _discard(name: str) -> None:
    try:
        os.unlink(name)
    except OSError:
        pass
