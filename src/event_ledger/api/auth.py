"""
Shared-secret API key check.

Clients send the key either as ``Authorization: Bearer <key>`` or as
``X-API-Key: <key>``. When both are present the bearer token is the one
checked. With no key configured the gate is open.
"""

import hmac
import logging
from collections.abc import Callable

from fastapi import Header

from event_ledger.errors import UnauthorizedError

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized - Invalid or missing API key"


def extract_api_key(authorization: str | None, x_api_key: str | None) -> str | None:
    """Return the presented key, preferring the bearer token."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer ") :].strip()
    return x_api_key


def is_authorized(expected_key: str | None, presented_key: str | None) -> bool:
    """Constant-time comparison of the presented key against the configured one."""
    if not expected_key:
        return True
    if not presented_key:
        return False
    return hmac.compare_digest(presented_key.encode("utf-8"), expected_key.encode("utf-8"))


def build_api_key_dependency(expected_key: str | None) -> Callable[..., None]:
    """
    Build a FastAPI dependency enforcing ``expected_key``.

    Args:
        expected_key: Configured secret. ``None`` or empty disables the check.

    Returns:
        Dependency callable suitable for ``APIRouter(dependencies=[...])``.
    """

    def require_api_key(
        authorization: str | None = Header(default=None),
        x_api_key: str | None = Header(default=None),
    ) -> None:
        if not is_authorized(expected_key, extract_api_key(authorization, x_api_key)):
            logger.info("Rejected request with missing or invalid API key")
            raise UnauthorizedError(UNAUTHORIZED_MESSAGE)

    return require_api_key
