import re
from types import SimpleNamespace

import pytest

from adapters.storage_adapter import (
    LocalStorageAdapter,
    StoredFile,
    SupabaseStorageAdapter,
    create_storage_adapter,
    unique_filename,
)
from common.exceptions import StorageException
from tests.conftest import PDF_BYTES, PNG_BYTES


def test_unique_filename_prefixes_timestamp_and_strips_dirs():
    name = unique_filename("../../etc/id.png")
    assert re.fullmatch(r"\d+-id\.png", name)


@pytest.mark.asyncio
async def test_local_store_returns_relative_url(public_root):
    adapter = LocalStorageAdapter(str(public_root))

    url = await adapter.store(StoredFile("id.png", PNG_BYTES, "image/png"), "uploads")

    assert re.fullmatch(r"/uploads/\d+-id\.png", url)
    assert (public_root / url.lstrip("/")).read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_local_store_write_failure_raises_storage_exception(tmp_path):
    blocker = tmp_path / "public"
    blocker.write_text("not a directory")
    adapter = LocalStorageAdapter(str(blocker))

    with pytest.raises(StorageException) as exc_info:
        await adapter.store(StoredFile("id.png", PNG_BYTES), "uploads")

    assert exc_info.value.status_code == 500
    assert exc_info.value.error_code == "STORAGE_ERROR"


@pytest.mark.asyncio
async def test_supabase_store_uploads_and_removes_temp_copy(connection, fake_supabase, public_root):
    connection.connect()
    adapter = SupabaseStorageAdapter(connection, "user_uploads", str(public_root), temp_folder="uploads")

    url = await adapter.store(StoredFile("proof.pdf", PDF_BYTES, "application/pdf"), "user_uploads")

    assert url.startswith("https://fake.supabase.co/storage/v1/object/public/user_uploads/user_uploads/")
    assert url.endswith("-proof.pdf")
    [(bucket, path)] = fake_supabase.storage.objects.keys()
    assert bucket == "user_uploads"
    assert fake_supabase.storage.objects[(bucket, path)]["content"] == PDF_BYTES
    assert fake_supabase.storage.objects[(bucket, path)]["content_type"] == "application/pdf"
    assert list((public_root / "uploads").iterdir()) == []


@pytest.mark.asyncio
async def test_supabase_store_can_keep_temp_copy(connection, public_root):
    connection.connect()
    adapter = SupabaseStorageAdapter(connection, "user_uploads", str(public_root), delete_local=False)

    await adapter.store(StoredFile("id.png", PNG_BYTES, "image/png"), "user_uploads")

    assert len(list((public_root / "uploads").iterdir())) == 1


@pytest.mark.asyncio
async def test_supabase_upload_failure_keeps_temp_copy(connection, fake_supabase, public_root):
    connection.connect()
    fake_supabase.storage.fail_with = RuntimeError("bucket not found")
    adapter = SupabaseStorageAdapter(connection, "user_uploads", str(public_root))

    with pytest.raises(StorageException) as exc_info:
        await adapter.store(StoredFile("id.png", PNG_BYTES, "image/png"), "user_uploads")

    assert exc_info.value.context["error"] == "bucket not found"
    assert len(list((public_root / "uploads").iterdir())) == 1


def test_create_storage_adapter_picks_backend(connection, public_root):
    local = SimpleNamespace(is_remote_storage=lambda: False, public_root=str(public_root))
    assert isinstance(create_storage_adapter(local, connection), LocalStorageAdapter)

    remote = SimpleNamespace(
        is_remote_storage=lambda: True,
        public_root=str(public_root),
        supabase_storage_bucket="user_uploads",
        upload_folder="uploads",
        delete_local_after_upload=True,
    )
    adapter = create_storage_adapter(remote, connection)
    assert isinstance(adapter, SupabaseStorageAdapter)
    assert adapter.bucket == "user_uploads"
