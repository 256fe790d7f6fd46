"""Blob package: out-of-line storage for oversized payload bytes.

Public surface
--------------
- :class:`BlobStore`            protocol implemented by every backend.
- :class:`FilesystemBlobStore`  objects stored as files under a root directory.
- :class:`InMemoryBlobStore`    process-local backend for tests.
- :func:`build_result_key`      ``results/<a>/<b>/<c>/<timestamp>.json`` keys.
- :exc:`BlobWriteError`, :exc:`BlobExistsError`, :exc:`BlobNotFoundError` failures.

Usage example
-------------
::

    from event_ledger.blob import FilesystemBlobStore, build_result_key

    store = FilesystemBlobStore(Path("data/blobs"))
    key = build_result_key("user.signup", "2026-01-02", "evt_1", 1767323045678)
    pointer = store.put(key, b'{"a":1}', "application/json", {"source": "webhook"})
"""

from event_ledger.blob.store import (
    BlobError,
    BlobExistsError,
    BlobNotFoundError,
    BlobObject,
    BlobStore,
    BlobWriteError,
    FilesystemBlobStore,
    InMemoryBlobStore,
    build_result_key,
)

__all__ = [
    "BlobError",
    "BlobExistsError",
    "BlobNotFoundError",
    "BlobObject",
    "BlobStore",
    "BlobWriteError",
    "FilesystemBlobStore",
    "InMemoryBlobStore",
    "build_result_key",
]
