"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from backend.app.db.context import CallerContext
from backend.app.docs.locator import Locator
from backend.app.models.documents import DocumentStatus


@dataclass(frozen=True)
class DocumentRecord:
    """Document metadata record with its original locator already parsed."""

    document_id: UUID
    title: str
    description: str | None
    original_locator: Locator
    status: DocumentStatus
    owner_admin_id: UUID
    owner_worker_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class SignatureRecord:
    """Outcome of a signing action. signed_locator is None for legacy empty paths."""

    document_id: UUID
    signed_locator: Locator | None
    signed_at: datetime | None


@dataclass(frozen=True)
class OwnedDocument:
    """A document together with its signature, if any."""

    document: DocumentRecord
    signature: SignatureRecord | None


@dataclass(frozen=True)
class StoredBlob:
    """Row from blob storage. content is base64 text."""

    blob_id: str
    file_name: str | None
    content_type: str | None
    content: str


class DocumentRepository(Protocol):
    """Repository for document and signature records.

    Every read is scoped to the caller's ownership field, so a document id
    belonging to someone else behaves exactly like an unknown id.
    """

    async def get_owned_document(
        self, document_id: UUID, caller: CallerContext
    ) -> OwnedDocument | None:
        """Get a document (and signature) owned by the caller.

        Args:
            document_id: Document ID
            caller: Caller identity (enforces ownership)

        Returns:
            Owned document or None if not found / not owned
        """
        ...

    async def list_owned_documents(
        self, caller: CallerContext, status: DocumentStatus | None = None
    ) -> list[OwnedDocument]:
        """List the caller's documents, newest first.

        Args:
            caller: Caller identity (enforces ownership)
            status: Optional status filter

        Returns:
            Owned documents
        """
        ...

    async def find_owned_document_by_locator(
        self, locator: Locator, caller: CallerContext
    ) -> OwnedDocument | None:
        """Find an owned document whose original or signed artifact is the locator.

        Args:
            locator: Storage locator
            caller: Caller identity (enforces ownership)

        Returns:
            Owned document or None
        """
        ...

    async def create_document(
        self,
        *,
        title: str,
        description: str | None,
        original_locator: Locator,
        admin_id: UUID,
        worker_id: UUID,
    ) -> DocumentRecord:
        """Create a pending document.

        Returns:
            The created record
        """
        ...

    async def record_signature(
        self, document_id: UUID, worker_id: UUID, signed_locator: Locator
    ) -> SignatureRecord:
        """Atomically add the signature row and flip status to signed.

        Raises:
            ValueError: If the document is unknown, not assigned to the
                worker, or already signed

        Returns:
            The created signature record
        """
        ...


class BlobRepository(Protocol):
    """Repository for database blob storage."""

    async def get_blob(self, blob_id: str) -> StoredBlob | None:
        """Get a blob by its opaque ID, or None if absent."""
        ...

    async def put_blob(self, file_name: str, content_type: str, content: str) -> str:
        """Store base64 content and return the new opaque blob ID."""
        ...
