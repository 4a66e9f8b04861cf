"""In-memory implementations of repository interfaces."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from backend.app.db.context import CallerContext
from backend.app.db.repositories import (
    DocumentRecord,
    OwnedDocument,
    SignatureRecord,
    StoredBlob,
)
from backend.app.docs.locator import Locator
from backend.app.models.documents import DocumentStatus, Role


def _owns(caller: CallerContext, doc: DocumentRecord) -> bool:
    if caller.role == Role.admin.value:
        return doc.owner_admin_id == caller.user_id
    if caller.role == Role.worker.value:
        return doc.owner_worker_id == caller.user_id
    return False


class InMemoryDocumentRepository:
    """In-memory implementation of DocumentRepository."""

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, DocumentRecord] = {}
        self._signatures: dict[uuid.UUID, SignatureRecord] = {}

    def add(self, document: DocumentRecord, signature: SignatureRecord | None = None) -> None:
        """Seed a record as-is, including inconsistent states."""
        self._documents[document.document_id] = document
        if signature is not None:
            self._signatures[document.document_id] = signature

    def _owned(self, document_id: uuid.UUID) -> OwnedDocument:
        return OwnedDocument(
            document=self._documents[document_id],
            signature=self._signatures.get(document_id),
        )

    async def get_owned_document(
        self, document_id: uuid.UUID, caller: CallerContext
    ) -> OwnedDocument | None:
        """Get a document (and signature) owned by the caller."""
        doc = self._documents.get(document_id)
        if doc is None or not _owns(caller, doc):
            return None
        return self._owned(document_id)

    async def list_owned_documents(
        self, caller: CallerContext, status: DocumentStatus | None = None
    ) -> list[OwnedDocument]:
        """List the caller's documents, newest first."""
        docs = [
            doc
            for doc in self._documents.values()
            if _owns(caller, doc) and (status is None or doc.status == status)
        ]
        docs.sort(
            key=lambda d: d.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return [self._owned(doc.document_id) for doc in docs]

    async def find_owned_document_by_locator(
        self, locator: Locator, caller: CallerContext
    ) -> OwnedDocument | None:
        """Find an owned document whose original or signed artifact is the locator."""
        for doc in self._documents.values():
            if not _owns(caller, doc):
                continue
            sig = self._signatures.get(doc.document_id)
            if doc.original_locator == locator or (
                sig is not None and sig.signed_locator == locator
            ):
                return self._owned(doc.document_id)
        return None

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
        record = DocumentRecord(
            document_id=uuid.uuid4(),
            title=title,
            description=description,
            original_locator=original_locator,
            status=DocumentStatus.pending,
            owner_admin_id=admin_id,
            owner_worker_id=worker_id,
            created_at=now,
            updated_at=now,
        )
        self._documents[record.document_id] = record
        return record

    async def record_signature(
        self, document_id: uuid.UUID, worker_id: uuid.UUID, signed_locator: Locator
    ) -> SignatureRecord:
        """Add the signature and flip status to signed."""
        doc = self._documents.get(document_id)
        if doc is None or doc.owner_worker_id != worker_id:
            raise ValueError(f"Document {document_id} not found for worker {worker_id}")
        if doc.status == DocumentStatus.signed:
            raise ValueError(f"Document {document_id} is already signed")

        now = datetime.now(timezone.utc)
        signature = SignatureRecord(
            document_id=document_id, signed_locator=signed_locator, signed_at=now
        )
        self._signatures[document_id] = signature
        self._documents[document_id] = replace(doc, status=DocumentStatus.signed, updated_at=now)
        return signature


class InMemoryBlobRepository:
    """In-memory implementation of BlobRepository."""

    def __init__(self) -> None:
        self._blobs: dict[str, StoredBlob] = {}

    def add(self, blob: StoredBlob) -> None:
        """Seed a blob under its own id, including non-UUID legacy ids."""
        self._blobs[blob.blob_id] = blob

    async def get_blob(self, blob_id: str) -> StoredBlob | None:
        """Get a blob by ID."""
        return self._blobs.get(blob_id)

    async def put_blob(self, file_name: str, content_type: str, content: str) -> str:
        """Store base64 content and return the new blob ID."""
        blob_id = str(uuid.uuid4())
        self._blobs[blob_id] = StoredBlob(
            blob_id=blob_id,
            file_name=file_name,
            content_type=content_type,
            content=content,
        )
        return blob_id
