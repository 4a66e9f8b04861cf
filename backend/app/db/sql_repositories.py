"""SQL implementations of repository interfaces."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import CallerContext
from backend.app.db.models import Document, DocumentFile, DocumentSignature
from backend.app.db.queries import select_owned_documents
from backend.app.db.repositories import (
    DocumentRecord,
    OwnedDocument,
    SignatureRecord,
    StoredBlob,
)
from backend.app.docs.errors import StorageError
from backend.app.docs.locator import Locator, parse_locator, parse_optional_locator
from backend.app.models.documents import DocumentStatus

logger = logging.getLogger(__name__)


def normalize_status(raw: str | None) -> DocumentStatus:
    """Collapse stored status strings onto the two states retrieval cares about."""
    if raw == DocumentStatus.signed.value:
        return DocumentStatus.signed
    return DocumentStatus.pending


def to_document_record(doc: Document) -> DocumentRecord:
    """Convert an ORM document to a typed record.

    Raises:
        StorageError: If the stored original locator cannot be parsed
    """
    try:
        original = parse_locator(doc.file_path)
    except ValueError as e:
        raise StorageError(f"Document {doc.document_id} has an invalid file_path") from e

    return DocumentRecord(
        document_id=doc.document_id,
        title=doc.title,
        description=doc.description,
        original_locator=original,
        status=normalize_status(doc.status),
        owner_admin_id=doc.admin_id,
        owner_worker_id=doc.worker_id,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def to_signature_record(sig: DocumentSignature) -> SignatureRecord:
    """Convert an ORM signature to a typed record; unparseable paths become None."""
    try:
        signed = parse_optional_locator(sig.signed_file_path)
    except ValueError:
        logger.warning(
            f"Signature for document {sig.document_id} has an invalid signed_file_path"
        )
        signed = None

    return SignatureRecord(
        document_id=sig.document_id,
        signed_locator=signed,
        signed_at=sig.signed_at,
    )


def to_owned_document(doc: Document) -> OwnedDocument:
    """Convert an ORM document with its loaded signature."""
    signature = to_signature_record(doc.signature) if doc.signature is not None else None
    return OwnedDocument(document=to_document_record(doc), signature=signature)


class SqlDocumentRepository:
    """SQL implementation of DocumentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_owned_document(
        self, document_id: uuid.UUID, caller: CallerContext
    ) -> OwnedDocument | None:
        """Get a document (and signature) owned by the caller."""
        stmt = select_owned_documents(caller).where(Document.document_id == document_id)
        result = await self._session.execute(stmt)
        doc = result.scalar_one_or_none()

        if doc is None:
            return None

        return to_owned_document(doc)

    async def list_owned_documents(
        self, caller: CallerContext, status: DocumentStatus | None = None
    ) -> list[OwnedDocument]:
        """List the caller's documents, newest first."""
        stmt = select_owned_documents(caller)
        if status is not None:
            stmt = stmt.where(Document.status == status.value)
        stmt = stmt.order_by(Document.created_at.desc())

        result = await self._session.execute(stmt)
        return [to_owned_document(doc) for doc in result.scalars().all()]

    async def find_owned_document_by_locator(
        self, locator: Locator, caller: CallerContext
    ) -> OwnedDocument | None:
        """Find an owned document whose original or signed artifact is the locator."""
        path = str(locator)
        stmt = (
            select_owned_documents(caller)
            .where(
                or_(
                    Document.file_path == path,
                    Document.signature.has(DocumentSignature.signed_file_path == path),
                )
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        doc = result.scalar_one_or_none()

        if doc is None:
            return None

        return to_owned_document(doc)

    async def create_document(
        self,
        *,
        title: str,
        description: str | None,
        original_locator: Locator,
        admin_id: uuid.UUID,
        worker_id: uuid.UUID,
    ) -> DocumentRecord:
        """Create a pending document."""
        now = datetime.now(timezone.utc)
        doc = Document(
            document_id=uuid.uuid4(),
            title=title,
            description=description,
            file_path=str(original_locator),
            status=DocumentStatus.pending.value,
            admin_id=admin_id,
            worker_id=worker_id,
            created_at=now,
            updated_at=now,
        )

        record = to_document_record(doc)

        self._session.add(doc)
        await self._session.commit()

        return record

    async def record_signature(
        self, document_id: uuid.UUID, worker_id: uuid.UUID, signed_locator: Locator
    ) -> SignatureRecord:
        """Atomically add the signature row and flip status to signed."""
        stmt = (
            select(Document)
            .where(Document.document_id == document_id, Document.worker_id == worker_id)
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        doc = result.scalar_one_or_none()

        if doc is None:
            await self._session.rollback()
            raise ValueError(f"Document {document_id} not found for worker {worker_id}")

        if doc.status == DocumentStatus.signed.value:
            await self._session.rollback()
            raise ValueError(f"Document {document_id} is already signed")

        now = datetime.now(timezone.utc)
        sig = DocumentSignature(
            signature_id=uuid.uuid4(),
            document_id=document_id,
            worker_id=worker_id,
            signed_file_path=str(signed_locator),
            signed_at=now,
        )
        self._session.add(sig)
        doc.status = DocumentStatus.signed.value
        doc.updated_at = now

        # Status flip and signature row commit together
        await self._session.commit()

        return SignatureRecord(
            document_id=document_id,
            signed_locator=signed_locator,
            signed_at=now,
        )


class SqlBlobRepository:
    """SQL implementation of BlobRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_blob(self, blob_id: str) -> StoredBlob | None:
        """Get a blob by ID."""
        result = await self._session.execute(
            select(DocumentFile).where(DocumentFile.file_id == blob_id)
        )
        row = result.scalar_one_or_none()

        if row is None:
            return None

        return StoredBlob(
            blob_id=row.file_id,
            file_name=row.file_name,
            content_type=row.content_type,
            content=row.content,
        )

    async def put_blob(self, file_name: str, content_type: str, content: str) -> str:
        """Store base64 content and return the new blob ID."""
        blob_id = str(uuid.uuid4())
        self._session.add(
            DocumentFile(
                file_id=blob_id,
                file_name=file_name,
                content_type=content_type,
                content=content,
            )
        )
        await self._session.commit()

        return blob_id
