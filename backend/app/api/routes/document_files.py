"""Blob endpoint - GET /api/document-files/{blob_id}.

Blob locators stored on documents point at this route.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from backend.app.api.auth import get_current_caller
from backend.app.api.dependencies import (
    get_retrieval_service,
    payload_response,
    run_with_timeout,
)
from backend.app.config import Settings, get_settings
from backend.app.db.context import CallerContext
from backend.app.docs.service import RetrievalService
from backend.app.models.documents import RetrievalMode

router = APIRouter(prefix="/api/document-files", tags=["document-files"])


@router.get("/{blob_id}")
async def get_document_file(
    blob_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    service: Annotated[RetrievalService, Depends(get_retrieval_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    download: Annotated[bool, Query()] = False,
) -> Response:
    """Serve a stored blob if it belongs to one of the caller's documents.

    Args:
        blob_id: Blob ID from the locator
        download: true for an attachment, otherwise inline
    """
    mode = RetrievalMode.download if download else RetrievalMode.view
    payload = await run_with_timeout(service.retrieve_blob(caller, blob_id, mode), settings)
    return payload_response(payload)
