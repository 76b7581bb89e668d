"""
Shared fixtures for the registration service tests.

The Supabase client is replaced by an in-memory fake that supports the small
query surface the repositories use (select/eq/in_/limit/insert/execute) and
the Storage bucket calls of the remote storage adapter.
"""

from __future__ import annotations

import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

# Configure the app before anything imports config.config
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "simple")
os.environ.setdefault("SERVE_PUBLIC_FILES", "false")
os.environ.setdefault("PUBLIC_ROOT", tempfile.mkdtemp(prefix="registration-public-"))

import pytest
from fastapi.testclient import TestClient

from adapters.storage_adapter import LocalStorageAdapter
from common.exceptions import StorageException
from db.supabase_client import SupabaseConnection
from repositories.user_repository import UserRepository
from security.upload_validation import FileUploadValidator
from services.registration_service import RegistrationService


# =============================================================================
# FAKE SUPABASE CLIENT
# =============================================================================


@dataclass
class FakeResult:
    data: List[Dict[str, Any]]
    count: Optional[int] = None


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.filters: List[Any] = []
        self.row: Optional[Dict[str, Any]] = None
        self.max_rows: Optional[int] = None
        self.count_mode: Optional[str] = None

    def select(self, *columns: str, count: Optional[str] = None) -> "FakeQuery":
        self.count_mode = count
        return self

    def eq(self, field: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(field) == value)
        return self

    def in_(self, field: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(lambda row: row.get(field) in values)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.max_rows = n
        return self

    def insert(self, row: Dict[str, Any]) -> "FakeQuery":
        self.row = row
        return self

    def execute(self) -> FakeResult:
        self.db.calls.append((self.table_name, "insert" if self.row is not None else "select"))
        if self.db.fail_with is not None:
            raise self.db.fail_with
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.row is not None:
            if self.db.unique_email and any(r["email"] == self.row.get("email") for r in rows):
                raise Exception('duplicate key value violates unique constraint "users_email_key"')
            stored = {"id": str(uuid.uuid4()), **self.row}
            rows.append(stored)
            return FakeResult(data=[dict(stored)])

        matched = [dict(r) for r in rows if all(f(r) for f in self.filters)]
        total = len(matched)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return FakeResult(data=matched, count=total if self.count_mode else None)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path: str, file: Any, file_options: Optional[Dict[str, str]] = None):
        if self.storage.fail_with is not None:
            raise self.storage.fail_with
        content = Path(file).read_bytes() if isinstance(file, (str, Path)) else file
        self.storage.objects[(self.name, path)] = {
            "content": content,
            "content_type": (file_options or {}).get("content-type"),
        }
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects: Dict[Any, Dict[str, Any]] = {}
        self.fail_with: Optional[BaseException] = None

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    def __init__(self, unique_email: bool = False):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Any] = []
        self.fail_with: Optional[BaseException] = None
        self.unique_email = unique_email
        self.storage = FakeStorage()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str = "users") -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


class RecordingStorage(LocalStorageAdapter):
    """Local adapter that records every store call and can be told to fail."""

    def __init__(self, public_root: str):
        super().__init__(public_root)
        self.stored: List[str] = []
        self.fail_after: Optional[int] = None

    async def store(self, file, destination_folder):
        if self.fail_after is not None and len(self.stored) >= self.fail_after:
            raise StorageException(detail="Disk full", filename=file.filename, backend="local")
        url = await super().store(file, destination_folder)
        self.stored.append(url)
        return url


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def connection(fake_supabase) -> SupabaseConnection:
    return SupabaseConnection("http://fake.supabase.co", "test-key", client_factory=lambda url, key: fake_supabase)


@pytest.fixture
def user_repo(connection) -> UserRepository:
    connection.connect()
    return UserRepository(connection, "users")


@pytest.fixture
def public_root(tmp_path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def storage(public_root) -> RecordingStorage:
    return RecordingStorage(str(public_root))


@pytest.fixture
def registration_service(user_repo, storage) -> RegistrationService:
    return RegistrationService(user_repo, storage, FileUploadValidator(), "uploads")


@pytest.fixture
def api(connection, user_repo, registration_service, fake_supabase, storage, public_root):
    """TestClient with repositories and storage swapped for the fakes."""
    from app import app
    from dependencies import get_registration_service, get_supabase_connection, get_user_repository

    app.dependency_overrides[get_supabase_connection] = lambda: connection
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_registration_service] = lambda: registration_service

    client = TestClient(app)
    try:
        yield SimpleNamespace(
            client=client,
            supabase=fake_supabase,
            storage=storage,
            public_root=public_root,
            connection=connection,
            service=registration_service,
        )
    finally:
        app.dependency_overrides.clear()


# =============================================================================
# PAYLOAD HELPERS
# =============================================================================


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n%test\n%%EOF\n"


def registration_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "firstName": "Ann",
        "lastName": "Lee",
        "email": "ann@x.com",
        "dob": "2000-01-01",
        "residential": {"street1": "1 Main", "street2": "Apt 2"},
        "permanent": {"street1": "", "street2": ""},
        "sameAsResidential": True,
        "documents": [
            {"fileName": "id", "fileType": "image"},
            {"fileName": "proof", "fileType": "pdf"},
        ],
    }
    payload.update(overrides)
    return payload


def default_files() -> List[Any]:
    return [
        ("files", ("id.png", PNG_BYTES, "image/png")),
        ("files", ("proof.pdf", PDF_BYTES, "application/pdf")),
    ]
