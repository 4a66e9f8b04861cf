"""FastAPI dependencies wiring repositories and storage into the retrieval service."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Annotated, TypeVar

from fastapi import Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.sql_repositories import SqlBlobRepository, SqlDocumentRepository
from backend.app.docs.errors import ServerError
from backend.app.docs.locator import StorageKind
from backend.app.docs.service import DocumentPayload, RetrievalService
from backend.app.docs.storage import DatabaseBlobBackend, DocumentStorage, FilesystemBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_timeout(awaitable: Awaitable[T], settings: Settings) -> T:
    """Bound a retrieval by the request timeout; a timeout is a generic 500."""
    try:
        return await asyncio.wait_for(awaitable, timeout=settings.retrieval_timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        logger.error(f"Retrieval exceeded {settings.retrieval_timeout_ms}ms")
        raise ServerError() from e


def payload_response(payload: DocumentPayload) -> Response:
    """Turn a payload into a raw-bytes response."""
    return Response(
        content=payload.content,
        media_type=payload.content_type,
        headers=payload.headers,
    )


def build_storage(session: AsyncSession, settings: Settings) -> DocumentStorage:
    """Build the dual-backend storage resolver for one session."""
    return DocumentStorage(
        DatabaseBlobBackend(SqlBlobRepository(session)),
        FilesystemBackend(settings.document_root),
        default_backend=StorageKind(settings.storage_backend),
        max_document_bytes=settings.max_document_bytes,
    )


async def get_retrieval_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RetrievalService:
    """Per-request retrieval service bound to the request's session."""
    return RetrievalService(SqlDocumentRepository(session), build_storage(session, settings))
