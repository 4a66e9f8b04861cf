"""Caller identity dependency.

Session issuance lives outside this service. The session layer forwards the
authenticated caller as "Bearer <role>:<user_id>"; this module only parses
that shape and never verifies credentials.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from backend.app.db.context import CallerContext


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_caller(
    authorization: Annotated[str | None, Header()] = None,
) -> CallerContext:
    """Extract the caller identity from the authorization header.

    Args:
        authorization: Authorization header (e.g., "Bearer worker:<uuid>")

    Returns:
        CallerContext with user_id and role. Unknown roles are passed
        through so the access gate can deny them with 403.

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not authorization:
        raise _unauthorized("Not authenticated")

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    token = authorization[7:].strip()  # Strip "Bearer "

    role, sep, user_id_str = token.partition(":")
    if not sep or not role:
        raise _unauthorized("Invalid token format (expected role:user_id)")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError as e:
        raise _unauthorized("Invalid token format (expected role:user_id)") from e

    return CallerContext(user_id=user_id, role=role.lower())
