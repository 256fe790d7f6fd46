"""JSON codec for event payloads.

Payloads are stored as compact JSON text. Encoding is strict: anything that
would not produce valid UTF-8 JSON (circular references, ``NaN``/``Infinity``,
lone surrogates, arbitrary Python objects) raises :exc:`PayloadEncodeError`. Decoding is
tolerant: text that fails to parse is returned unchanged so that legacy or
corrupt rows can still be read.
"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


class PayloadEncodeError(ValueError):
    """Raised when a payload value cannot be serialised to JSON text."""


def encode_payload(value: Any) -> str:
    """Serialise ``value`` to compact JSON text.

    Raises:
        PayloadEncodeError: If ``value`` contains a circular reference, a
            non-finite float, a string that is not valid Unicode text, or an
            object the JSON encoder does not support.
    """
    try:
        text = json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        # Lone surrogates survive json.dumps but cannot be stored as UTF-8.
        text.encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        raise PayloadEncodeError(f"payload must be JSON-serializable: {exc}") from exc
    return text


def decode_payload(text: str | None) -> Any:
    """Parse stored payload text back into a JSON value.

    Empty or missing text decodes to ``None``. Malformed text is returned as
    the raw string.
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        logger.debug("Stored payload is not valid JSON; returning raw text.")
        return text
