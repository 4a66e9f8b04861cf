"""Shared pytest fixtures for all test suites."""

import base64
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.models import Base, Document, DocumentFile, DocumentSignature, User
from backend.app.main import app

ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a2")
WORKER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b1")
OTHER_WORKER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")


def bearer(role: str, user_id: uuid.UUID) -> dict[str, str]:
    """Authorization header in the stub session format."""
    return {"Authorization": f"Bearer {role}:{user_id}"}


@dataclass
class DocumentWorld:
    """Seeded database plus document root for integration tests."""

    engine: AsyncEngine
    root: Path
    admin_id: uuid.UUID = ADMIN_ID
    other_admin_id: uuid.UUID = OTHER_ADMIN_ID
    worker_id: uuid.UUID = WORKER_ID
    other_worker_id: uuid.UUID = OTHER_WORKER_ID

    def headers(self, role: str, user_id: uuid.UUID) -> dict[str, str]:
        """Authorization header for a caller."""
        return bearer(role, user_id)

    def write_file(self, relative_path: str, content: bytes) -> str:
        """Write a file under the document root and return its locator string."""
        path = self.root / relative_path.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return "/" + relative_path.lstrip("/")

    async def add_blob(
        self,
        content: bytes,
        content_type: str | None = "application/pdf",
        file_name: str | None = None,
        blob_id: str | None = None,
    ) -> str:
        """Insert a blob row and return its locator string."""
        blob_id = blob_id or str(uuid.uuid4())
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            session.add(
                DocumentFile(
                    file_id=blob_id,
                    file_name=file_name,
                    content_type=content_type,
                    content=base64.b64encode(content).decode("ascii"),
                )
            )
            await session.commit()
        return f"/api/document-files/{blob_id}"

    async def add_raw_blob(self, content: str, blob_id: str | None = None) -> str:
        """Insert a blob row with arbitrary (possibly corrupt) stored text."""
        blob_id = blob_id or str(uuid.uuid4())
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            session.add(DocumentFile(file_id=blob_id, content_type=None, content=content))
            await session.commit()
        return f"/api/document-files/{blob_id}"

    async def add_document(
        self,
        *,
        file_path: str,
        status: str = "pending",
        signed_file_path: str | None = None,
        with_signature: bool = False,
        title: str = "Care plan",
        admin_id: uuid.UUID = ADMIN_ID,
        worker_id: uuid.UUID = WORKER_ID,
        created_at: datetime | None = None,
    ) -> uuid.UUID:
        """Insert a document row, optionally with a signature row."""
        document_id = uuid.uuid4()
        now = created_at or datetime.now(timezone.utc)
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            session.add(
                Document(
                    document_id=document_id,
                    title=title,
                    description=None,
                    file_path=file_path,
                    status=status,
                    admin_id=admin_id,
                    worker_id=worker_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            if with_signature or signed_file_path is not None:
                session.add(
                    DocumentSignature(
                        document_id=document_id,
                        worker_id=worker_id,
                        signed_file_path=signed_file_path,
                        signed_at=now,
                    )
                )
            await session.commit()
        return document_id


@pytest_asyncio.fixture
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite async engine with all tables."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def document_root(tmp_path: Path) -> Path:
    """Empty document root directory."""
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest_asyncio.fixture
async def world(test_engine: AsyncEngine, document_root: Path) -> DocumentWorld:
    """Database seeded with two admins and two workers."""
    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        for user_id, name, role in (
            (ADMIN_ID, "Admin One", "admin"),
            (OTHER_ADMIN_ID, "Admin Two", "admin"),
            (WORKER_ID, "Worker One", "worker"),
            (OTHER_WORKER_ID, "Worker Two", "worker"),
        ):
            session.add(User(user_id=user_id, name=name, email=f"{user_id}@example.com", role=role))
        await session.commit()

    return DocumentWorld(engine=test_engine, root=document_root)


@pytest_asyncio.fixture
async def client(world: DocumentWorld) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client against the app, wired to the test database and document root."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(world.engine, expire_on_commit=False) as session:
            yield session

    def override_get_settings() -> Settings:
        return Settings(
            database_url="sqlite+aiosqlite:///unused.db",
            document_root=str(world.root),
        )

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = override_get_settings

    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
            yield http_client
    finally:
        app.dependency_overrides.clear()
