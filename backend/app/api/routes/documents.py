"""Document endpoints - list, view, download, status."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from backend.app.api.auth import get_current_caller
from backend.app.api.dependencies import (
    get_retrieval_service,
    payload_response,
    run_with_timeout,
)
from backend.app.config import Settings, get_settings
from backend.app.db.context import CallerContext
from backend.app.docs.service import RetrievalService
from backend.app.models.documents import (
    DocumentStatus,
    DocumentStatusView,
    DocumentSummary,
    RetrievalMode,
)

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentListResponse(BaseModel):
    """Response for GET /documents."""

    documents: list[DocumentSummary]


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    service: Annotated[RetrievalService, Depends(get_retrieval_service)],
    status: Annotated[DocumentStatus | None, Query()] = None,
) -> DocumentListResponse:
    """List the caller's documents, newest first.

    Admins see documents they uploaded; workers see documents assigned to them.
    """
    documents = await service.list_documents(caller, status)
    return DocumentListResponse(documents=documents)


@router.get("/{document_id}/view")
async def view_document(
    document_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    service: Annotated[RetrievalService, Depends(get_retrieval_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Serve the authoritative artifact inline."""
    payload = await run_with_timeout(
        service.retrieve(caller, document_id, RetrievalMode.view), settings
    )
    return payload_response(payload)


@router.get("/{document_id}/download")
async def download_document(
    document_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    service: Annotated[RetrievalService, Depends(get_retrieval_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Serve the authoritative artifact as an attachment."""
    payload = await run_with_timeout(
        service.retrieve(caller, document_id, RetrievalMode.download), settings
    )
    return payload_response(payload)


@router.get("/{document_id}/status", response_model=DocumentStatusView)
async def document_status(
    document_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    service: Annotated[RetrievalService, Depends(get_retrieval_service)],
) -> DocumentStatusView:
    """Report whether the document is signed and has a signed artifact."""
    return await service.get_status(caller, document_id)
