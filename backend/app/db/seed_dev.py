"""Dev seeding helper - demo admin, worker and documents for stub authentication."""

import asyncio
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.dependencies import build_storage
from backend.app.config import get_settings
from backend.app.db.context import CallerContext
from backend.app.db.engine import get_async_engine
from backend.app.db.models import User
from backend.app.db.sql_repositories import SqlDocumentRepository

# Fixed IDs for "Bearer admin:<id>" / "Bearer worker:<id>" in local testing
DEV_ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
DEV_WORKER_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b1")

# Smallest well-formed PDF, enough for a browser viewer
SAMPLE_PDF = (
    b"%PDF-1.4\n1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
    b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 595 842]>>endobj\n"
    b"trailer<</Root 1 0 R>>\n%%EOF\n"
)


async def seed_dev_users_and_documents() -> None:
    """Seed dev users and one pending plus one signed document.

    Users are created idempotently; documents are only created when the dev
    admin has none yet.
    """
    settings = get_settings()

    async with AsyncSession(get_async_engine(), expire_on_commit=False) as session:
        for user_id, name, email, role in (
            (DEV_ADMIN_ID, "Dev Admin", "admin@example.com", "admin"),
            (DEV_WORKER_ID, "Dev Worker", "worker@example.com", "worker"),
        ):
            result = await session.execute(select(User).where(User.user_id == user_id))
            if result.scalar_one_or_none() is None:
                print(f"Creating dev {role} with id {user_id}...")
                session.add(User(user_id=user_id, name=name, email=email, role=role))
            else:
                print(f"Dev {role} already exists")
        await session.commit()

        documents = SqlDocumentRepository(session)
        storage = build_storage(session, settings)

        admin = CallerContext(user_id=DEV_ADMIN_ID, role="admin")
        if await documents.list_owned_documents(admin):
            print("Dev documents already exist")
            return

        original = await storage.store(SAMPLE_PDF, "care_plan.pdf")
        await documents.create_document(
            title="Care plan",
            description="Weekly care plan",
            original_locator=original,
            admin_id=DEV_ADMIN_ID,
            worker_id=DEV_WORKER_ID,
        )

        contract_original = await storage.store(SAMPLE_PDF, "contract.pdf")
        contract = await documents.create_document(
            title="Contract",
            description=None,
            original_locator=contract_original,
            admin_id=DEV_ADMIN_ID,
            worker_id=DEV_WORKER_ID,
        )
        signed = await storage.store(SAMPLE_PDF, "contract.pdf", category="signed")
        await documents.record_signature(contract.document_id, DEV_WORKER_ID, signed)

        print("✅ Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_users_and_documents())
