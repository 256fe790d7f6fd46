"""
Retired job-tracking routes.

The old ``/jobs``, ``/runs`` and ``/executions`` endpoints were replaced by
the generic event API. They answer every method with ``410 Gone`` and name
the replacement routes.
"""

from fastapi import APIRouter

from event_ledger.errors import GoneError

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

router = APIRouter(tags=["deprecated"], include_in_schema=False)


def _gone() -> None:
    raise GoneError("Job routes are deprecated; use POST /events and GET /events instead")


router.add_api_route("/jobs", _gone, methods=ALL_METHODS)
router.add_api_route("/jobs/{rest:path}", _gone, methods=ALL_METHODS)
router.add_api_route("/runs/{rest:path}", _gone, methods=ALL_METHODS)
router.add_api_route("/executions/{rest:path}", _gone, methods=ALL_METHODS)
