"""Storage locators - where a document's bytes live.

A locator is either a database blob reference or a path relative to the
document root. Both are persisted as a single string column; the string is
parsed once into a typed value at the repository boundary.

String forms:
    /api/document-files/<blob_id>   -> BlobLocator
    anything else (non-empty)       -> FileLocator
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

BLOB_LOCATOR_PREFIX = "/api/document-files/"


class StorageKind(str, Enum):
    """Backend a locator resolves to."""

    database = "database"
    filesystem = "filesystem"


@dataclass(frozen=True)
class BlobLocator:
    """Bytes stored base64-encoded in the document_files table."""

    blob_id: str

    @property
    def kind(self) -> StorageKind:
        return StorageKind.database

    def __str__(self) -> str:
        return f"{BLOB_LOCATOR_PREFIX}{self.blob_id}"


@dataclass(frozen=True)
class FileLocator:
    """Bytes stored on disk under the configured document root."""

    relative_path: str

    @property
    def kind(self) -> StorageKind:
        return StorageKind.filesystem

    def __str__(self) -> str:
        return f"/{self.relative_path}"


Locator = BlobLocator | FileLocator


def parse_locator(value: str) -> Locator:
    """Classify a stored locator string.

    Classification is prefix-based: the blob prefix wins, everything else is
    a filesystem path relative to the document root.

    Args:
        value: Stored locator string

    Returns:
        BlobLocator or FileLocator

    Raises:
        ValueError: If the string is empty, the blob id is missing, the
            path contains parent-directory segments, or a path would be
            stored as a blob locator
    """
    if not value or not value.strip():
        raise ValueError("Locator must be a non-empty string")

    if value.startswith(BLOB_LOCATOR_PREFIX):
        blob_id = value[len(BLOB_LOCATOR_PREFIX) :].strip("/")
        if not blob_id or "/" in blob_id:
            raise ValueError(f"Invalid blob locator: {value!r}")
        return BlobLocator(blob_id=blob_id)

    if "\x00" in value:
        raise ValueError("Locator contains a NUL byte")

    path = PurePosixPath(value.replace("\\", "/"))
    if ".." in path.parts:
        raise ValueError(f"Locator escapes the document root: {value!r}")

    relative = str(path).lstrip("/")
    if not relative or relative == ".":
        raise ValueError(f"Locator has no file component: {value!r}")

    # The stored form "/<relative>" must not read back as a blob locator
    if f"/{relative}".startswith(BLOB_LOCATOR_PREFIX):
        raise ValueError(f"Path collides with the blob locator prefix: {value!r}")

    return FileLocator(relative_path=relative)


def parse_optional_locator(value: str | None) -> Locator | None:
    """Parse a nullable locator column; empty strings count as absent."""
    if value is None or not value.strip():
        return None
    return parse_locator(value)
