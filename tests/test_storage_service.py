import pytest

from profile_rag.services.storage_service import FileStorageService
from profile_rag.utils.errors import StorageError


@pytest.mark.asyncio
async def test_store_read_delete(storage):
    path = await storage.store_file("p-1", "notes.txt", "héllo")
    assert path == "p-1/raw/notes.txt"
    assert (storage.base_dir / path).exists()

    assert await storage.read_file(path) == "héllo".encode("utf-8")
    assert await storage.read_file_as_text(path) == "héllo"

    await storage.delete_file(path)
    assert not (storage.base_dir / path).exists()
    # Missing files are not an error
    await storage.delete_file(path)


@pytest.mark.asyncio
async def test_filename_is_reduced_to_basename(storage):
    path = await storage.store_file("p-1", "../../etc/passwd", b"x")
    assert path == "p-1/raw/passwd"
    path = await storage.store_file("p-1", "C:\\Users\\me\\doc.md", b"x")
    assert path == "p-1/raw/doc.md"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "..", "dir/"])
async def test_unusable_filename(storage, name):
    with pytest.raises(StorageError):
        await storage.store_file("p-1", name, b"x")


@pytest.mark.asyncio
async def test_paths_cannot_escape_base_dir(storage):
    with pytest.raises(StorageError):
        await storage.read_file("../outside.txt")
    with pytest.raises(StorageError):
        await storage.store_file("../other", "a.txt", b"x")


@pytest.mark.asyncio
async def test_read_missing_file(storage):
    with pytest.raises(StorageError):
        await storage.read_file("p-1/raw/missing.txt")


def test_profile_raw_dir(tmp_path):
    storage = FileStorageService(base_dir=tmp_path)
    assert storage.get_profile_raw_dir("p-9") == tmp_path.resolve() / "p-9" / "raw"


@pytest.mark.asyncio
async def test_store_file_prefix(storage):
    first = await storage.store_file("p-1", "notes.txt", b"one", prefix="r1")
    second = await storage.store_file("p-1", "../notes.txt", b"two", prefix="r2")

    assert first == "p-1/raw/r1_notes.txt"
    assert second == "p-1/raw/r2_notes.txt"
    assert await storage.read_file(first) == b"one"
    assert await storage.read_file(second) == b"two"
