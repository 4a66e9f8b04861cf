"""Ownership-safe query helpers."""

from sqlalchemy import Select, false, select
from sqlalchemy.orm import selectinload

from backend.app.db.context import CallerContext
from backend.app.db.models import Document
from backend.app.models.documents import Role


def select_owned_documents(caller: CallerContext) -> Select[tuple[Document]]:
    """Select documents with ownership scoping enforced.

    Admins see the documents they uploaded, workers the documents assigned
    to them. Any other role matches nothing.

    Args:
        caller: Caller identity with user_id and role

    Returns:
        Select statement filtered by the caller's ownership field, with the
        signature eagerly loaded
    """
    stmt = select(Document).options(selectinload(Document.signature))

    if caller.role == Role.admin.value:
        return stmt.where(Document.admin_id == caller.user_id)
    if caller.role == Role.worker.value:
        return stmt.where(Document.worker_id == caller.user_id)

    return stmt.where(false())
