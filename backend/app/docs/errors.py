"""Error taxonomy for document retrieval.

Every error carries the HTTP status it maps to and a short public message.
Internal causes are chained with ``raise ... from`` and logged, never sent
to the client.
"""


class RetrievalError(Exception):
    """Base class for all retrieval failures."""

    status_code: int = 500
    detail: str = "Error retrieving document"


class Unauthenticated(RetrievalError):
    """No valid caller identity was supplied."""

    status_code = 401
    detail = "Not authenticated"


class Forbidden(RetrievalError):
    """The access gate denied the caller."""

    status_code = 403
    detail = "Access denied"


class DocumentNotFound(RetrievalError):
    """No document matches the id within the caller's ownership scope."""

    status_code = 404
    detail = "Document not found"


class ArtifactNotFound(RetrievalError):
    """The locator is known but its bytes are unreachable."""

    status_code = 404
    detail = "Document not found"


class StorageError(RetrievalError):
    """A storage backend failed (I/O error, corrupt stored content)."""


class ServerError(RetrievalError):
    """Generic failure surfaced to the caller."""
