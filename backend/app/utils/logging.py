"""Structured logging for document retrieval."""

import logging
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)


class StructuredRetrievalLogger:
    """Structured logger for retrievals and integrity warnings."""

    def log_retrieval(
        self,
        *,
        document_id: UUID | str,
        caller_role: str,
        mode: str,
        outcome: str,
        latency_ms: float,
        artifact: str | None = None,
        source: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one retrieval with structured data."""
        log_data: dict[str, Any] = {
            "document_id": str(document_id),
            "caller_role": caller_role,
            "mode": mode,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if artifact:
            log_data["artifact"] = artifact
        if source:
            log_data["source"] = source
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Document retrieval: {document_id} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_integrity_warning(
        self, *, document_id: UUID | str, reason: str, locator: str | None = None
    ) -> None:
        """Log a signed document whose signed artifact is missing or unreachable."""
        log_data: dict[str, Any] = {
            "document_id": str(document_id),
            "reason": reason,
        }
        if locator:
            log_data["locator"] = locator

        logger.warning(
            f"Data integrity: document {document_id} is signed but {reason}; "
            "serving original",
            extra={"structured": log_data},
        )
