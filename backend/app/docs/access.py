"""Access control gate - pure ownership check."""

from enum import Enum

from backend.app.db.context import CallerContext
from backend.app.db.repositories import DocumentRecord
from backend.app.models.documents import Role


class AccessDecision(str, Enum):
    """Outcome of an access check."""

    allow = "allow"
    forbidden = "forbidden"


def authorize(caller: CallerContext | None, doc: DocumentRecord) -> AccessDecision:
    """Decide whether the caller may retrieve the document.

    Admins must be the uploading admin; workers must be the assigned worker.
    Any other role, or a missing caller, is forbidden.
    """
    if caller is None:
        return AccessDecision.forbidden

    if caller.role == Role.admin.value and caller.user_id == doc.owner_admin_id:
        return AccessDecision.allow

    if caller.role == Role.worker.value and caller.user_id == doc.owner_worker_id:
        return AccessDecision.allow

    return AccessDecision.forbidden
