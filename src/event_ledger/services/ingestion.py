"""Event ingestion: validate, stamp, optionally offload, and append.

Request lifecycle
-----------------
::

    Received -> Validated -> IdAssigned -> TimestampAssigned
             -> [Offloaded] -> Persisted -> Responded

Any gate may short-circuit with a :class:`~event_ledger.errors.LedgerError`.
The service keeps no per-request state on the instance; one
:class:`EventIngestor` serves all concurrent requests.

Blob offload
------------
Only active when a blob store is injected.

1. If the payload is an object whose ``offload_field`` (default ``data``)
   holds a non-empty object or array, that value is written to the blob store
   and replaced inline by ``<offload_field>_pointer``. A non-empty
   ``metadata`` object on the payload becomes the blob's custom metadata.
2. If the encoded payload is still larger than ``inline_max_bytes`` (``0``
   disables this step), the whole payload is written to the blob store and the
   stored row holds ``{"payload_pointer": key, "size": n}`` instead.

Blobs are written before the row insert and are never overwritten. A request
whose blob key is already taken (same id, same millisecond) is rejected as a
duplicate before anything is stored. If the insert fails the blob stays
behind; removing orphans is an operational task.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from event_ledger.blob import BlobError, BlobExistsError, BlobStore, build_result_key
from event_ledger.clock import utc_now_iso
from event_ledger.codec import PayloadEncodeError, encode_payload
from event_ledger.db.errors import DatabaseConflictError, DatabaseError
from event_ledger.db.store import EventStore
from event_ledger.errors import ConflictError, MalformedBodyError, StoreError, ValidationError
from event_ledger.ids import generate_event_id

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a successful append.

    Attributes:
        id: Stored event id (trimmed caller id or generated UUID).
        ts: Server-assigned timestamp.
        pointers: Blob keys written for this event, keyed by what was
            offloaded (``"data"`` for the offload field, ``"payload"`` for a
            whole-payload offload). Empty in inline-only mode.
    """

    id: str
    ts: str
    pointers: dict[str, str] = field(default_factory=dict)


def parse_json_body(raw_body: bytes | str) -> dict[str, Any]:
    """Parse a request body into a JSON object.

    Raises:
        MalformedBodyError: If the body is empty, not JSON, or not an object.
    """
    try:
        body = json.loads(raw_body)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedBodyError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise MalformedBodyError("Request body must be a JSON object")
    return body


def _has_content(value: Any) -> bool:
    return isinstance(value, (dict, list)) and len(value) > 0


def _custom_metadata(payload: dict[str, Any]) -> dict[str, str]:
    """Flatten ``payload["metadata"]`` into string values for blob metadata."""
    metadata = payload.get("metadata")
    if not isinstance(metadata, dict) or not metadata:
        return {}
    return {
        str(key): value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
        for key, value in metadata.items()
    }


class EventIngestor:
    """Append events to an :class:`EventStore`, offloading to a blob store when configured.

    Args:
        store: Durable row store.
        blob_store: Optional blob backend. ``None`` means inline-only mode.
        offload_field: Payload key moved to the blob store.
        inline_max_bytes: Size above which the whole payload is offloaded.
        id_factory: Source of generated ids.
        clock: Source of server timestamps.
    """

    def __init__(
        self,
        store: EventStore,
        blob_store: BlobStore | None = None,
        *,
        offload_field: str = "data",
        inline_max_bytes: int = 0,
        id_factory: Callable[[], str] = generate_event_id,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.store = store
        self.blob_store = blob_store
        self.offload_field = offload_field
        self.inline_max_bytes = inline_max_bytes
        self._id_factory = id_factory
        self._clock = clock

    def ingest(self, raw_body: bytes | str) -> IngestResult:
        """Parse a raw request body and append the event it describes."""
        return self.append(parse_json_body(raw_body))

    def append(self, body: dict[str, Any]) -> IngestResult:
        """Validate ``body`` (``{"id"?: str, "payload": any}``) and append it.

        A ``ts`` field in ``body`` is ignored; the timestamp is always server
        time.

        Raises:
            ValidationError: Invalid ``id``, missing ``payload``, or a payload
                that cannot be encoded.
            ConflictError: The id is already taken.
            StoreError: The row store or blob store failed.
        """
        event_id = self._resolve_id(body)

        if "payload" not in body:
            raise ValidationError("payload is required")
        payload = body["payload"]

        if "ts" in body:
            logger.debug("Ignoring client-supplied ts for event %s", event_id)
        ts = self._clock()

        try:
            payload_text = encode_payload(payload)
        except PayloadEncodeError as exc:
            raise ValidationError("payload must be JSON-serializable") from exc

        pointers: dict[str, str] = {}
        if self.blob_store is not None:
            payload_text = self._offload(self.blob_store, event_id, ts, payload, payload_text, pointers)

        try:
            self.store.insert(event_id, ts, payload_text)
        except DatabaseConflictError as exc:
            logger.info("Rejected duplicate event id %s", event_id)
            raise ConflictError(event_id) from exc
        except DatabaseError as exc:
            logger.error("Failed to insert event %s", event_id, exc_info=True)
            raise StoreError("Failed to insert event") from exc

        logger.info("Appended event %s", event_id)
        return IngestResult(id=event_id, ts=ts, pointers=pointers)

    # ── Internal helpers ─────────────────────────────────────────────────────

    def _resolve_id(self, body: dict[str, Any]) -> str:
        if "id" not in body:
            return self._id_factory()
        raw_id = body["id"]
        if not isinstance(raw_id, str) or not raw_id.strip():
            raise ValidationError("id must be a non-empty string when provided")
        try:
            raw_id.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValidationError("id must be valid UTF-8 text") from exc
        return raw_id.strip()

    def _blob_key(self, event_id: str, ts: str, payload: Any) -> str:
        event_type = payload.get("type") if isinstance(payload, dict) else None
        if not isinstance(event_type, str) or not event_type.strip():
            event_type = "untyped"
        moment = datetime.fromisoformat(ts)
        epoch_ms = int(moment.timestamp()) * 1000 + moment.microsecond // 1000
        return build_result_key(event_type, ts[:10], event_id, epoch_ms)

    def _put(
        self, blob_store: BlobStore, event_id: str, key: str, data: bytes, metadata: dict[str, str]
    ) -> str:
        try:
            return blob_store.put(key, data, JSON_CONTENT_TYPE, metadata)
        except BlobExistsError as exc:
            logger.info("Rejected duplicate event id %s (blob %s exists)", event_id, key)
            raise ConflictError(event_id) from exc
        except BlobError as exc:
            logger.error("Blob offload failed for %s", key, exc_info=True)
            raise StoreError("Failed to store payload data") from exc

    def _offload(
        self,
        blob_store: BlobStore,
        event_id: str,
        ts: str,
        payload: Any,
        payload_text: str,
        pointers: dict[str, str],
    ) -> str:
        """Move offloadable payload content to the blob store; return the inline text."""
        key = self._blob_key(event_id, ts, payload)

        if isinstance(payload, dict) and _has_content(payload.get(self.offload_field)):
            data_text = encode_payload(payload[self.offload_field])
            data = data_text.encode("utf-8")
            pointer = self._put(blob_store, event_id, key, data, _custom_metadata(payload))
            pointers[self.offload_field] = pointer

            inline = {k: v for k, v in payload.items() if k != self.offload_field}
            inline[f"{self.offload_field}_pointer"] = pointer
            payload_text = encode_payload(inline)

        encoded = payload_text.encode("utf-8")
        if self.inline_max_bytes > 0 and len(encoded) > self.inline_max_bytes:
            whole_key = key[: -len(".json")] + ".payload.json"
            pointer = self._put(blob_store, event_id, whole_key, encoded, {})
            pointers["payload"] = pointer
            payload_text = encode_payload({"payload_pointer": pointer, "size": len(encoded)})

        return payload_text
