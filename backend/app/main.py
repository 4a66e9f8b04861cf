"""FastAPI application - caregiver document retrieval."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.api.routes.document_files import router as document_files_router
from backend.app.api.routes.documents import router as documents_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.docs.errors import RetrievalError, Unauthenticated
from backend.app.docs.service import NO_CACHE_HEADERS

app = FastAPI(title="Caregiver Documents API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(documents_router, tags=["documents"])
app.include_router(document_files_router, tags=["document-files"])


@app.exception_handler(RetrievalError)
async def retrieval_error_handler(request: Request, exc: RetrievalError) -> JSONResponse:
    """Map retrieval errors to status codes with a short public message only."""
    headers = dict(NO_CACHE_HEADERS)
    if isinstance(exc, Unauthenticated):
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Caregiver Documents API", "version": "0.1.0"}
