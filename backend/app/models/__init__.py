"""Models package - re-exports for convenience."""

from backend.app.models.documents import (
    ArtifactKind,
    DocumentStatus,
    DocumentStatusView,
    DocumentSummary,
    RetrievalMode,
    Role,
)

__all__ = [
    "ArtifactKind",
    "DocumentStatus",
    "DocumentStatusView",
    "DocumentSummary",
    "RetrievalMode",
    "Role",
]
