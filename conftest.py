"""Global pytest configuration."""

import os

# Pin settings before the cached Settings instance is first built
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DOCUMENT_ROOT", "public")
os.environ.setdefault("STORAGE_BACKEND", "filesystem")
