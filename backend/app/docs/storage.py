"""Storage backend resolver - fetch and store document bytes.

Two backends:
- database: base64 text in the document_files table, addressed by BlobLocator
- filesystem: files under the configured document root, addressed by FileLocator

Fetch failures are split into ArtifactNotFound (bytes do not exist) and
StorageError (anything else), so callers can tell a missing file from a
broken backend.
"""

import asyncio
import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from backend.app.db.repositories import BlobRepository
from backend.app.docs.errors import ArtifactNotFound, StorageError
from backend.app.docs.locator import BlobLocator, FileLocator, Locator, StorageKind
from backend.app.utils.metrics import PrometheusRetrievalMetrics

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class StoredBytes:
    """Raw bytes fetched from a backend."""

    content: bytes
    content_type: str
    source: StorageKind
    file_name: str | None = None


def build_file_name(original_name: str, prefix: str = "document") -> str:
    """Build a unique, whitespace-free stored file name."""
    safe_name = re.sub(r"\s+", "_", Path(original_name).name) or "file.pdf"
    return f"{prefix}_{int(time.time() * 1000)}_{safe_name}"


class DatabaseBlobBackend:
    """Blob storage backed by the document_files table."""

    def __init__(self, blobs: BlobRepository) -> None:
        self._blobs = blobs

    async def fetch(self, locator: BlobLocator) -> StoredBytes:
        """Fetch and decode a blob.

        The blob id is opaque and is looked up exactly as stored.

        Raises:
            ArtifactNotFound: If the blob does not exist
            StorageError: If the lookup fails or the content is not valid base64
        """
        blob_id = locator.blob_id

        try:
            blob = await self._blobs.get_blob(blob_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Blob lookup failed for {blob_id}") from e

        if blob is None:
            raise ArtifactNotFound(f"Blob {blob_id} not found")

        try:
            content = base64.b64decode("".join(blob.content.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise StorageError(f"Blob {blob_id} holds malformed base64 content") from e

        return StoredBytes(
            content=content,
            content_type=blob.content_type or DEFAULT_CONTENT_TYPE,
            source=StorageKind.database,
            file_name=blob.file_name,
        )

    async def store(self, content: bytes, file_name: str, content_type: str) -> BlobLocator:
        """Store bytes as base64 and return the blob locator."""
        encoded = base64.b64encode(content).decode("ascii")
        try:
            blob_id = await self._blobs.put_blob(file_name, content_type, encoded)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to store blob {file_name}") from e
        return BlobLocator(blob_id=blob_id)


class FilesystemBackend:
    """File storage rooted at a single directory."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, locator: FileLocator) -> Path:
        """Resolve a locator under the root.

        Raises:
            ArtifactNotFound: If the resolved path escapes the root
        """
        root = self._root.resolve()
        candidate = (root / locator.relative_path).resolve()

        if not candidate.is_relative_to(root):
            logger.warning(f"Rejected locator outside document root: {locator}")
            raise ArtifactNotFound(f"Locator escapes document root: {locator}")

        return candidate

    async def fetch(self, locator: FileLocator) -> StoredBytes:
        """Read a whole file.

        Raises:
            ArtifactNotFound: If the file is missing or outside the root
            StorageError: On any other I/O failure
        """
        path = self.resolve(locator)

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ArtifactNotFound(f"File not found: {locator}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {locator}") from e

        # This backend keeps no content-type metadata
        return StoredBytes(
            content=content,
            content_type=DEFAULT_CONTENT_TYPE,
            source=StorageKind.filesystem,
            file_name=path.name,
        )

    async def store(self, content: bytes, file_name: str, category: str) -> FileLocator:
        """Write bytes to uploads/<category>/<file_name> and return the locator."""
        locator = FileLocator(relative_path=f"uploads/{category}/{file_name}")
        path = self.resolve(locator)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to write {locator}") from e

        return locator


class DocumentStorage:
    """Dispatches locators to the backend that owns them."""

    def __init__(
        self,
        blob_backend: DatabaseBlobBackend,
        filesystem_backend: FilesystemBackend,
        *,
        default_backend: StorageKind = StorageKind.filesystem,
        max_document_bytes: int = 10 * 1024 * 1024,
        metrics: PrometheusRetrievalMetrics | None = None,
    ) -> None:
        self._blob_backend = blob_backend
        self._filesystem_backend = filesystem_backend
        self._default_backend = default_backend
        self._max_document_bytes = max_document_bytes
        self._metrics = metrics or PrometheusRetrievalMetrics()

    async def fetch(self, locator: Locator) -> StoredBytes:
        """Fetch bytes for any locator, recording backend latency."""
        start = time.perf_counter()
        outcome = "error"

        try:
            if isinstance(locator, BlobLocator):
                stored = await self._blob_backend.fetch(locator)
            else:
                stored = await self._filesystem_backend.fetch(locator)
            outcome = "success"
            return stored
        except ArtifactNotFound:
            outcome = "not_found"
            raise
        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            self._metrics.record_fetch_latency(locator.kind.value, outcome, latency_ms)

    async def store(
        self,
        content: bytes,
        original_name: str,
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        category: str = "documents",
        backend: StorageKind | None = None,
    ) -> Locator:
        """Store new bytes and return a locator that classifies back to its backend.

        Raises:
            ValueError: If the content exceeds the upload limit
            StorageError: If the backend write fails
        """
        if len(content) > self._max_document_bytes:
            raise ValueError(
                f"Document is {len(content)} bytes, limit is {self._max_document_bytes}"
            )

        prefix = "signed" if category == "signed" else "document"
        file_name = build_file_name(original_name, prefix=prefix)

        if (backend or self._default_backend) == StorageKind.database:
            return await self._blob_backend.store(content, file_name, content_type)
        return await self._filesystem_backend.store(content, file_name, category)
