"""Read access to offloaded payload blobs."""

from fastapi import APIRouter, Response

from event_ledger.blob import BlobNotFoundError, BlobStore
from event_ledger.errors import NotFoundError


def router(blob_store: BlobStore | None) -> APIRouter:
    """Build the blob router; every lookup is a 404 when storage is disabled."""
    api = APIRouter(tags=["blobs"])

    @api.get("/blobs/{key:path}")
    def get_blob(key: str):
        """Return the raw bytes stored under ``key`` with their content type."""
        if blob_store is None:
            raise NotFoundError("Blob storage is disabled")
        try:
            blob = blob_store.get(key)
        except BlobNotFoundError as exc:
            raise NotFoundError(str(exc)) from exc
        return Response(content=blob.data, media_type=blob.content_type)

    return api
