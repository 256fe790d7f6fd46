"""Event append, listing, lookup and ad-hoc query endpoints."""

from fastapi import APIRouter, Query, Request
from starlette.concurrency import run_in_threadpool

from event_ledger.api.models import (
    CreateEventRequest,
    CreateEventResponse,
    ErrorResponse,
    Event,
    EventQueryRequest,
    EventQueryResponse,
    EventsResponse,
)
from event_ledger.services import EventIngestor, EventQueryService

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def router(ingestor: EventIngestor, query_service: EventQueryService) -> APIRouter:
    """Build the events router around the ingestion and query services."""
    api = APIRouter(tags=["events"])

    @api.post(
        "/events",
        status_code=201,
        response_model=CreateEventResponse,
        response_model_exclude_none=True,
        responses={**_ERRORS, 409: {"model": ErrorResponse}},
        openapi_extra={
            "requestBody": {
                "required": True,
                "content": {
                    "application/json": {"schema": CreateEventRequest.model_json_schema()}
                },
            }
        },
    )
    async def create_event(request: Request):
        """
        Append one event.

        The body is parsed by hand rather than through a model so that an
        explicit ``"payload": null`` is accepted while a missing ``payload``
        is rejected. The server assigns ``ts``.
        """
        raw_body = await request.body()
        result = await run_in_threadpool(ingestor.ingest, raw_body)
        return CreateEventResponse(id=result.id, pointers=result.pointers or None)

    @api.get("/events", response_model=EventsResponse, responses=_ERRORS)
    def list_events(
        event_id: str | None = Query(default=None, alias="id"),
        after: str | None = Query(default=None),
        before: str | None = Query(default=None),
        limit: str | None = Query(default=None),
    ):
        """List events newest first; ``after`` and ``before`` are exclusive bounds."""
        events = query_service.list_events(
            event_id=event_id, after=after, before=before, limit=limit
        )
        return {"events": events}

    @api.post("/events/query", response_model=EventQueryResponse, responses=_ERRORS)
    def query_events(request: EventQueryRequest):
        """Run a single read-only SELECT against the events table."""
        return query_service.run_query(request.sql, request.params)

    @api.get(
        "/events/{event_id}",
        response_model=Event,
        responses={**_ERRORS, 404: {"model": ErrorResponse}},
    )
    def get_event(event_id: str):
        """Fetch one event by id."""
        return query_service.get_event(event_id)

    return api
