"""Document retrieval service.

Orchestrates one retrieval: ownership-scoped lookup, access gate, artifact
resolution, storage fetch and response metadata. Components raise typed
errors; this service is the only place that recovers from them (signed
artifact fallback) or translates them (storage failures to ServerError).
"""

import logging
import re
import time
import uuid
from dataclasses import dataclass, replace
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from backend.app.db.context import CallerContext
from backend.app.db.repositories import DocumentRepository, OwnedDocument
from backend.app.docs.access import AccessDecision, authorize
from backend.app.docs.errors import (
    ArtifactNotFound,
    DocumentNotFound,
    Forbidden,
    RetrievalError,
    ServerError,
    StorageError,
    Unauthenticated,
)
from backend.app.docs.locator import BlobLocator, StorageKind
from backend.app.docs.state import (
    SIGNED_ARTIFACT_UNREACHABLE,
    ResolvedArtifact,
    resolve_artifact,
)
from backend.app.docs.storage import DEFAULT_CONTENT_TYPE, DocumentStorage, StoredBytes
from backend.app.models.documents import (
    ArtifactKind,
    DocumentStatus,
    DocumentStatusView,
    DocumentSummary,
    RetrievalMode,
    Role,
)
from backend.app.utils.logging import StructuredRetrievalLogger
from backend.app.utils.metrics import PrometheusRetrievalMetrics

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f\x7f"\\/]+')


def safe_file_stem(title: str) -> str:
    """Strip characters that break a Content-Disposition file name."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", title).strip()
    if stem.lower().endswith(".pdf"):
        stem = stem[:-4]
    return stem or "document"


def download_file_name(title: str, artifact: ArtifactKind) -> str:
    """File name offered to the client; the signed artifact gets a suffix."""
    stem = safe_file_stem(title)
    if artifact == ArtifactKind.signed:
        stem = f"{stem}_signed"
    return f"{stem}.pdf"


def content_disposition(mode: RetrievalMode, file_name: str) -> str:
    """Build a Content-Disposition header value.

    Non-ASCII or space-containing names use the RFC 5987 filename* form.
    """
    disposition = "attachment" if mode == RetrievalMode.download else "inline"
    quoted = quote(file_name)
    if quoted != file_name:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{file_name}"'


@dataclass(frozen=True)
class DocumentPayload:
    """Bytes plus the metadata needed to build the HTTP response."""

    content: bytes
    content_type: str
    mode: RetrievalMode
    file_name: str
    artifact: ArtifactKind
    status: DocumentStatus
    source: StorageKind

    @property
    def disposition(self) -> str:
        return "attachment" if self.mode == RetrievalMode.download else "inline"

    @property
    def headers(self) -> dict[str, str]:
        """Response headers other than Content-Type and Content-Length."""
        return {
            "Content-Disposition": content_disposition(self.mode, self.file_name),
            **NO_CACHE_HEADERS,
            "X-Document-Type": self.artifact.value,
            "X-Document-Status": self.status.value,
            "X-File-Source": self.source.value,
        }


class RetrievalService:
    """Fetch documents for viewing or download on behalf of a caller."""

    def __init__(
        self,
        documents: DocumentRepository,
        storage: DocumentStorage,
        *,
        metrics: PrometheusRetrievalMetrics | None = None,
        retrieval_logger: StructuredRetrievalLogger | None = None,
    ) -> None:
        self._documents = documents
        self._storage = storage
        self._metrics = metrics or PrometheusRetrievalMetrics()
        self._log = retrieval_logger or StructuredRetrievalLogger()

    async def retrieve(
        self,
        caller: CallerContext | None,
        document_id: uuid.UUID | str,
        mode: RetrievalMode,
    ) -> DocumentPayload:
        """Retrieve the authoritative artifact of a document.

        Args:
            caller: Authenticated caller, None if no identity was supplied
            document_id: Document ID (malformed IDs behave as unknown)
            mode: view (inline) or download (attachment)

        Returns:
            DocumentPayload with bytes and response metadata

        Raises:
            Unauthenticated: No caller identity
            Forbidden: Role outside the closed set, or the access gate denies
            DocumentNotFound: No such document within the caller's scope
            ArtifactNotFound: The original artifact's bytes are unreachable
            ServerError: Storage or database failure
        """
        start = time.perf_counter()
        role = caller.role if caller is not None else "anonymous"
        artifact: str | None = None
        source: str | None = None

        try:
            owned = await self._lookup(caller, document_id)
            resolved, stored = await self._fetch_authoritative(owned)
            artifact = resolved.artifact.value
            source = stored.source.value

            payload = DocumentPayload(
                content=stored.content,
                content_type=stored.content_type or DEFAULT_CONTENT_TYPE,
                mode=mode,
                file_name=download_file_name(owned.document.title, resolved.artifact),
                artifact=resolved.artifact,
                status=owned.document.status,
                source=stored.source,
            )
        except RetrievalError as e:
            self._metrics.inc_retrieval(mode.value, artifact or "none", type(e).__name__)
            self._log.log_retrieval(
                document_id=document_id,
                caller_role=role,
                mode=mode.value,
                outcome=type(e).__name__,
                latency_ms=(time.perf_counter() - start) * 1000,
                artifact=artifact,
                source=source,
                error_reason=str(e) or None,
            )
            raise

        self._metrics.inc_retrieval(mode.value, payload.artifact.value, "success")
        self._log.log_retrieval(
            document_id=document_id,
            caller_role=role,
            mode=mode.value,
            outcome="success",
            latency_ms=(time.perf_counter() - start) * 1000,
            artifact=payload.artifact.value,
            source=payload.source.value,
        )
        return payload

    async def retrieve_blob(
        self,
        caller: CallerContext | None,
        blob_id: str,
        mode: RetrievalMode,
    ) -> DocumentPayload:
        """Retrieve a blob directly by ID.

        The caller must own a document whose original or signed artifact is
        this blob; anything else is reported as not found. Outcomes are
        logged and counted the same way as document retrievals.
        """
        start = time.perf_counter()
        role = caller.role if caller is not None else "anonymous"
        locator = BlobLocator(blob_id=blob_id)

        try:
            payload = await self._fetch_owned_blob(caller, locator, mode)
        except RetrievalError as e:
            self._metrics.inc_retrieval(mode.value, "none", type(e).__name__)
            self._log.log_retrieval(
                document_id=str(locator),
                caller_role=role,
                mode=mode.value,
                outcome=type(e).__name__,
                latency_ms=(time.perf_counter() - start) * 1000,
                source=StorageKind.database.value,
                error_reason=str(e) or None,
            )
            raise

        self._metrics.inc_retrieval(mode.value, payload.artifact.value, "success")
        self._log.log_retrieval(
            document_id=str(locator),
            caller_role=role,
            mode=mode.value,
            outcome="success",
            latency_ms=(time.perf_counter() - start) * 1000,
            artifact=payload.artifact.value,
            source=payload.source.value,
        )
        return payload

    async def _fetch_owned_blob(
        self, caller: CallerContext | None, locator: BlobLocator, mode: RetrievalMode
    ) -> DocumentPayload:
        caller = self._require_caller(caller)

        try:
            owned = await self._documents.find_owned_document_by_locator(locator, caller)
        except (SQLAlchemyError, StorageError) as e:
            logger.error(f"Blob ownership lookup failed for {locator}: {e}", exc_info=True)
            raise ServerError() from e

        if owned is None:
            raise DocumentNotFound()
        if authorize(caller, owned.document) != AccessDecision.allow:
            raise Forbidden()

        try:
            stored = await self._storage.fetch(locator)
        except StorageError as e:
            logger.error(f"Blob fetch failed for {locator}: {e}", exc_info=True)
            raise ServerError() from e

        is_signed = (
            owned.signature is not None and owned.signature.signed_locator == locator
        )

        return DocumentPayload(
            content=stored.content,
            content_type=stored.content_type,
            mode=mode,
            file_name=stored.file_name or f"file_{locator.blob_id}.pdf",
            artifact=ArtifactKind.signed if is_signed else ArtifactKind.original,
            status=owned.document.status,
            source=stored.source,
        )

    async def get_status(
        self, caller: CallerContext | None, document_id: uuid.UUID | str
    ) -> DocumentStatusView:
        """Report signing status without touching storage or mutating state."""
        owned = await self._lookup(caller, document_id)
        resolved = resolve_artifact(owned.document, owned.signature)

        if resolved.integrity_issue:
            self._report_integrity(owned, resolved.integrity_issue)

        signed_at = owned.signature.signed_at if resolved.is_signed and owned.signature else None
        return DocumentStatusView(
            document_id=owned.document.document_id,
            status=owned.document.status,
            has_signed_file=resolved.is_signed,
            signed_at=signed_at,
        )

    async def list_documents(
        self, caller: CallerContext | None, status: DocumentStatus | None = None
    ) -> list[DocumentSummary]:
        """List the caller's documents, newest first."""
        caller = self._require_caller(caller)

        try:
            owned_docs = await self._documents.list_owned_documents(caller, status)
        except (SQLAlchemyError, StorageError) as e:
            logger.error(f"Document listing failed: {e}", exc_info=True)
            raise ServerError() from e

        summaries = []
        for owned in owned_docs:
            doc = owned.document
            sig = owned.signature
            signed_locator = sig.signed_locator if sig is not None else None
            summaries.append(
                DocumentSummary(
                    document_id=doc.document_id,
                    title=doc.title,
                    description=doc.description,
                    status=doc.status,
                    admin_id=doc.owner_admin_id,
                    worker_id=doc.owner_worker_id,
                    file_url=str(doc.original_locator),
                    signed_file_url=str(signed_locator) if signed_locator else None,
                    signed_at=sig.signed_at if sig is not None else None,
                    created_at=doc.created_at,
                    updated_at=doc.updated_at,
                )
            )
        return summaries

    def _require_caller(self, caller: CallerContext | None) -> CallerContext:
        """Reject missing identities and roles outside the closed set."""
        if caller is None:
            raise Unauthenticated()
        if caller.role not in (Role.admin.value, Role.worker.value):
            raise Forbidden(f"Unsupported role: {caller.role}")
        return caller

    async def _lookup(
        self, caller: CallerContext | None, document_id: uuid.UUID | str
    ) -> OwnedDocument:
        """Ownership-scoped lookup followed by the access gate."""
        caller = self._require_caller(caller)

        try:
            doc_uuid = (
                document_id
                if isinstance(document_id, uuid.UUID)
                else uuid.UUID(str(document_id))
            )
        except ValueError as e:
            raise DocumentNotFound(f"Malformed document id: {document_id}") from e

        try:
            owned = await self._documents.get_owned_document(doc_uuid, caller)
        except SQLAlchemyError as e:
            logger.error(f"Document lookup failed for {doc_uuid}: {e}", exc_info=True)
            raise ServerError() from e
        except StorageError as e:
            logger.error(f"Document {doc_uuid} has corrupt metadata: {e}", exc_info=True)
            raise ServerError() from e

        if owned is None:
            raise DocumentNotFound()

        if authorize(caller, owned.document) != AccessDecision.allow:
            raise Forbidden()

        return owned

    async def _fetch_authoritative(
        self, owned: OwnedDocument
    ) -> tuple[ResolvedArtifact, StoredBytes]:
        """Fetch the signed artifact if available, else the original."""
        resolved = resolve_artifact(owned.document, owned.signature)

        if resolved.integrity_issue:
            self._report_integrity(owned, resolved.integrity_issue)

        try:
            return resolved, await self._storage.fetch(resolved.locator)
        except ArtifactNotFound:
            if not resolved.is_signed:
                raise
            self._report_integrity(
                owned, SIGNED_ARTIFACT_UNREACHABLE, locator=str(resolved.locator)
            )
        except StorageError as e:
            logger.error(
                f"Storage failure for document {owned.document.document_id}: {e}",
                exc_info=True,
            )
            raise ServerError() from e

        fallback = replace(
            resolved,
            locator=owned.document.original_locator,
            is_signed=False,
            integrity_issue=SIGNED_ARTIFACT_UNREACHABLE,
        )
        try:
            return fallback, await self._storage.fetch(fallback.locator)
        except StorageError as e:
            logger.error(
                f"Storage failure for document {owned.document.document_id}: {e}",
                exc_info=True,
            )
            raise ServerError() from e

    def _report_integrity(
        self, owned: OwnedDocument, reason: str, locator: str | None = None
    ) -> None:
        self._metrics.inc_integrity_warning(reason)
        self._log.log_integrity_warning(
            document_id=owned.document.document_id, reason=reason, locator=locator
        )
