"""Health check endpoints.

- /health: liveness, always 200
- /healthz: checks DB connectivity and the document root, 503 when degraded
"""

import os
from pathlib import Path
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backend.app.config import Settings, get_settings
from backend.app.db.engine import create_async_engine_from_settings

router = APIRouter()


async def check_db(settings: Settings) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        engine = create_async_engine_from_settings(settings)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        finally:
            await engine.dispose()

        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


async def check_document_root(settings: Settings) -> tuple[bool, str]:
    """Check that the filesystem document root is a readable directory.

    Returns:
        (is_ok, status_message)
    """
    root = Path(settings.document_root)

    if not root.is_dir():
        return (False, "missing")
    if not os.access(root, os.R_OK | os.X_OK):
        return (False, "unreadable")

    return (True, "ok")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz() -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if all components are ok
        503 if any component fails
    """
    settings = get_settings()

    db_ok, db_status = await check_db(settings)
    storage_ok, storage_status = await check_document_root(settings)

    core_ok = db_ok and storage_ok

    response_body = {
        "status": "ok" if core_ok else "degraded",
        "components": {
            "db": db_status,
            "document_root": storage_status,
        },
    }

    if not core_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
