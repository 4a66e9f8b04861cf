"""Integration tests for the SQL repositories against SQLite."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import CallerContext
from backend.app.db.models import Document, DocumentSignature
from backend.app.db.sql_repositories import (
    SqlBlobRepository,
    SqlDocumentRepository,
    normalize_status,
)
from backend.app.docs.errors import StorageError
from backend.app.docs.locator import BlobLocator, FileLocator
from backend.app.models.documents import DocumentStatus


def worker(world) -> CallerContext:
    return CallerContext(user_id=world.worker_id, role="worker")


def admin(world) -> CallerContext:
    return CallerContext(user_id=world.admin_id, role="admin")


@pytest.mark.asyncio
async def test_get_owned_document_scopes_by_role(world) -> None:
    doc_id = await world.add_document(file_path="/files/a.pdf")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlDocumentRepository(session)

        as_worker = await repo.get_owned_document(doc_id, worker(world))
        as_admin = await repo.get_owned_document(doc_id, admin(world))
        as_other = await repo.get_owned_document(
            doc_id, CallerContext(user_id=world.other_worker_id, role="worker")
        )
        as_unknown_role = await repo.get_owned_document(
            doc_id, CallerContext(user_id=world.admin_id, role="auditor")
        )

    assert as_worker is not None
    assert as_worker.document.original_locator == FileLocator("files/a.pdf")
    assert as_worker.signature is None
    assert as_admin is not None
    assert as_other is None
    assert as_unknown_role is None


@pytest.mark.asyncio
async def test_signature_is_loaded_and_parsed(world) -> None:
    signed = await world.add_blob(b"signed")
    doc_id = await world.add_document(
        file_path="/files/a.pdf", status="signed", signed_file_path=signed
    )

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        owned = await SqlDocumentRepository(session).get_owned_document(doc_id, worker(world))

    assert owned is not None
    assert owned.document.status == DocumentStatus.signed
    assert owned.signature is not None
    assert isinstance(owned.signature.signed_locator, BlobLocator)
    assert str(owned.signature.signed_locator) == signed


@pytest.mark.asyncio
async def test_empty_signed_path_becomes_none(world) -> None:
    doc_id = await world.add_document(
        file_path="/files/a.pdf", status="signed", signed_file_path=""
    )

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        owned = await SqlDocumentRepository(session).get_owned_document(doc_id, worker(world))

    assert owned is not None
    assert owned.signature is not None
    assert owned.signature.signed_locator is None


@pytest.mark.asyncio
async def test_invalid_original_path_is_storage_error(world) -> None:
    doc_id = await world.add_document(file_path="")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        with pytest.raises(StorageError):
            await SqlDocumentRepository(session).get_owned_document(doc_id, worker(world))


@pytest.mark.asyncio
async def test_list_is_newest_first_and_filterable(world) -> None:
    now = datetime.now(timezone.utc)
    oldest = await world.add_document(file_path="/files/1.pdf", created_at=now - timedelta(days=2))
    middle = await world.add_document(
        file_path="/files/2.pdf",
        status="signed",
        signed_file_path="/uploads/signed/2.pdf",
        created_at=now - timedelta(days=1),
    )
    newest = await world.add_document(file_path="/files/3.pdf", created_at=now)

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlDocumentRepository(session)
        everything = await repo.list_owned_documents(admin(world))
        signed_only = await repo.list_owned_documents(admin(world), DocumentStatus.signed)

    assert [o.document.document_id for o in everything] == [newest, middle, oldest]
    assert [o.document.document_id for o in signed_only] == [middle]


@pytest.mark.asyncio
async def test_find_owned_document_by_locator(world) -> None:
    original = await world.add_blob(b"original")
    signed = await world.add_blob(b"signed")
    doc_id = await world.add_document(file_path=original, status="signed", signed_file_path=signed)

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlDocumentRepository(session)
        by_original = await repo.find_owned_document_by_locator(
            BlobLocator(original.rsplit("/", 1)[-1]), worker(world)
        )
        by_signed = await repo.find_owned_document_by_locator(
            BlobLocator(signed.rsplit("/", 1)[-1]), admin(world)
        )
        by_stranger = await repo.find_owned_document_by_locator(
            BlobLocator(signed.rsplit("/", 1)[-1]),
            CallerContext(user_id=world.other_admin_id, role="admin"),
        )

    assert by_original is not None and by_original.document.document_id == doc_id
    assert by_signed is not None and by_signed.document.document_id == doc_id
    assert by_stranger is None


@pytest.mark.asyncio
async def test_create_then_record_signature(world) -> None:
    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlDocumentRepository(session)
        created = await repo.create_document(
            title="Care plan",
            description="Weekly",
            original_locator=FileLocator("uploads/documents/a.pdf"),
            admin_id=world.admin_id,
            worker_id=world.worker_id,
        )
        signature = await repo.record_signature(
            created.document_id, world.worker_id, FileLocator("uploads/signed/a.pdf")
        )

    assert created.status == DocumentStatus.pending
    assert signature.signed_locator == FileLocator("uploads/signed/a.pdf")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        doc = (
            await session.execute(select(Document).where(Document.document_id == created.document_id))
        ).scalar_one()
        sig = (
            await session.execute(
                select(DocumentSignature).where(
                    DocumentSignature.document_id == created.document_id
                )
            )
        ).scalar_one()

    assert doc.status == "signed"
    assert doc.file_path == "/uploads/documents/a.pdf"
    assert sig.signed_file_path == "/uploads/signed/a.pdf"


@pytest.mark.asyncio
async def test_record_signature_twice_fails_without_changes(world) -> None:
    doc_id = await world.add_document(file_path="/files/a.pdf")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlDocumentRepository(session)
        await repo.record_signature(doc_id, world.worker_id, FileLocator("uploads/signed/1.pdf"))

        with pytest.raises(ValueError):
            await repo.record_signature(
                doc_id, world.worker_id, FileLocator("uploads/signed/2.pdf")
            )

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        rows = (
            await session.execute(
                select(DocumentSignature).where(DocumentSignature.document_id == doc_id)
            )
        ).scalars().all()

    assert [r.signed_file_path for r in rows] == ["/uploads/signed/1.pdf"]


@pytest.mark.asyncio
async def test_record_signature_for_unassigned_worker_fails(world) -> None:
    doc_id = await world.add_document(file_path="/files/a.pdf")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        with pytest.raises(ValueError):
            await SqlDocumentRepository(session).record_signature(
                doc_id, world.other_worker_id, FileLocator("uploads/signed/x.pdf")
            )

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        doc = (
            await session.execute(select(Document).where(Document.document_id == doc_id))
        ).scalar_one()

    assert doc.status == "pending"


@pytest.mark.asyncio
async def test_blob_put_then_get(world) -> None:
    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        repo = SqlBlobRepository(session)
        blob_id = await repo.put_blob("a.pdf", "application/pdf", "aGVsbG8=")
        blob = await repo.get_blob(blob_id)
        missing = await repo.get_blob("missing-blob")

    assert blob is not None
    assert blob.content == "aGVsbG8="
    assert blob.file_name == "a.pdf"
    assert missing is None


@pytest.mark.asyncio
async def test_blob_with_legacy_text_id_is_found(world) -> None:
    await world.add_blob(b"signed", blob_id="blob-42")

    async with AsyncSession(world.engine, expire_on_commit=False) as session:
        blob = await SqlBlobRepository(session).get_blob("blob-42")

    assert blob is not None
    assert blob.blob_id == "blob-42"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("signed", DocumentStatus.signed), ("pending", DocumentStatus.pending), ("draft", DocumentStatus.pending), (None, DocumentStatus.pending)],
)
def test_normalize_status(raw: str | None, expected: DocumentStatus) -> None:
    assert normalize_status(raw) == expected
