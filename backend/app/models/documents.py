"""Document domain models and API schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class Role(str, Enum):
    """Caller role. Closed set for document access."""

    admin = "admin"
    worker = "worker"


class DocumentStatus(str, Enum):
    """Document lifecycle status: pending -> signed (terminal)."""

    pending = "pending"
    signed = "signed"


class RetrievalMode(str, Enum):
    """How the client intends to use the bytes."""

    view = "view"
    download = "download"


class ArtifactKind(str, Enum):
    """Which physical artifact was served."""

    original = "original"
    signed = "signed"


class DocumentSummary(BaseModel):
    """Document metadata for listings (no bytes)."""

    document_id: UUID
    title: str
    description: str | None = None
    status: DocumentStatus
    admin_id: UUID
    worker_id: UUID
    file_url: str
    signed_file_url: str | None = None
    signed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentStatusView(BaseModel):
    """Signing status of a single document."""

    document_id: UUID
    status: DocumentStatus
    has_signed_file: bool
    signed_at: datetime | None = None
