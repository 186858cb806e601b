"""Local disk storage for raw resource files."""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

from profile_rag.config import Settings, get_settings
from profile_rag.utils.errors import StorageError
from profile_rag.utils.logging import get_logger

logger = get_logger("storage_service")


class FileStorageService:
    """
    Store raw resource bytes on disk.

    Layout: `<base_dir>/<profile_id>/raw/[<prefix>_]<filename>`. Callers only ever see
    paths relative to `base_dir`.
    """

    def __init__(self, settings: Optional[Settings] = None, base_dir: Optional[Path] = None):
        settings = settings or get_settings()
        self.base_dir = Path(base_dir or settings.storage.base_dir).resolve()

    def get_profile_raw_dir(self, profile_id: str) -> Path:
        return self._resolve(Path(profile_id) / "raw")

    def _resolve(self, relative_path: Union[str, Path]) -> Path:
        """Resolve a relative path, refusing anything outside base_dir."""
        full_path = (self.base_dir / relative_path).resolve()
        if full_path != self.base_dir and self.base_dir not in full_path.parents:
            raise StorageError(
                "Path escapes the storage directory",
                details={"path": str(relative_path)},
            )
        return full_path

    async def store_file(
        self,
        profile_id: str,
        filename: str,
        content: Union[bytes, str],
        prefix: Optional[str] = None,
    ) -> str:
        """
        Write a file for a profile.

        Args:
            profile_id: Owning profile
            filename: Original name; only its basename is kept
            content: Raw bytes or text (written as UTF-8)
            prefix: Prepended to the stored name so equal filenames do not collide

        Returns:
            Path of the stored file relative to base_dir

        Raises:
            StorageError: If the name is unusable or the write fails
        """
        safe_name = os.path.basename(filename.replace("\\", "/")).strip()
        if safe_name in ("", ".", ".."):
            raise StorageError("Invalid filename", details={"filename": filename})
        if prefix:
            safe_name = f"{prefix}_{safe_name}"

        raw_dir = self.get_profile_raw_dir(profile_id)
        file_path = self._resolve(raw_dir / safe_name)
        data = content.encode("utf-8") if isinstance(content, str) else content

        def _write() -> None:
            raw_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(
                "Failed to store file",
                details={"profile_id": profile_id, "filename": safe_name, "error": str(e)},
            ) from e

        relative = file_path.relative_to(self.base_dir).as_posix()
        logger.info(f"Stored file: {relative} ({len(data)} bytes)")
        return relative

    async def read_file(self, relative_path: str) -> bytes:
        """Read a stored file's bytes."""
        full_path = self._resolve(relative_path)
        try:
            return await asyncio.to_thread(full_path.read_bytes)
        except OSError as e:
            raise StorageError(
                "Failed to read file",
                details={"path": relative_path, "error": str(e)},
            ) from e

    async def read_file_as_text(self, relative_path: str) -> str:
        """Read a stored file as UTF-8 text; undecodable bytes are replaced."""
        data = await self.read_file(relative_path)
        return data.decode("utf-8", errors="replace")

    async def delete_file(self, relative_path: str) -> None:
        """Delete a stored file. A missing file is not an error."""
        full_path = self._resolve(relative_path)
        try:
            await asyncio.to_thread(full_path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(
                "Failed to delete file",
                details={"path": relative_path, "error": str(e)},
            ) from e
        logger.info(f"Deleted file: {relative_path}")
