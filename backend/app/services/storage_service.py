"""
Document storage on local disk

Files live under settings.STORAGE_DIR:
  documents/<timestamp>_<index>_<name>     complaint attachments
  results/<timestamp>_result_<name>        admin result documents

Only the relative path is stored in the database, so the storage root can
move between machines without a data migration.
"""

import mimetypes
import re
import secrets
import time
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set

import aiofiles
import aiofiles.os

from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.logging_config import logger

DOCUMENTS_DIR = "documents"
RESULTS_DIR = "results"

# Aliases browsers send for the default extensions, on top of the registered type
MIME_ALIASES: Dict[str, Set[str]] = {
    "pdf": {"application/pdf", "application/x-pdf"},
    "jpg": {"image/jpeg", "image/jpg", "image/pjpeg"},
    "jpeg": {"image/jpeg", "image/jpg", "image/pjpeg"},
    "png": {"image/png", "image/x-png"},
}


def accepted_mime_types(ext: str) -> Set[str]:
    """
    Declared types accepted for an extension. Extensions added through
    ALLOWED_DOCUMENT_EXTENSIONS_STR accept their registered MIME type.
    """
    accepted = set(MIME_ALIASES.get(ext, ()))
    registered = mimetypes.types_map.get(f".{ext}")
    if registered:
        accepted.add(registered)
    return accepted


@dataclass
class IncomingFile:
    """An uploaded file, fully read into memory after the size check"""
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower().lstrip(".")


def validate_document(file: IncomingFile) -> List[str]:
    """Return every rule the file breaks; empty list when it is acceptable"""
    errors: List[str] = []
    allowed = settings.ALLOWED_DOCUMENT_EXTENSIONS

    ext = file.extension
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if ext not in allowed or content_type not in accepted_mime_types(ext):
        errors.append(f"The file must be a file of type: {', '.join(allowed)}.")

    if file.size > settings.MAX_DOCUMENT_SIZE_BYTES:
        errors.append(f"The file may not be greater than {settings.MAX_DOCUMENT_SIZE_KB} kilobytes.")
    elif file.size == 0:
        errors.append("The file must not be empty.")

    return errors


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client filename to a safe basename.

    Directory parts are dropped, accents folded, anything outside
    [A-Za-z0-9._-] becomes "_". Never returns an empty string.
    """
    name = filename.replace("\\", "/").split("/")[-1]
    name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not name:
        name = "file"
    if len(name) > 150:
        stem, dot, ext = name.rpartition(".")
        name = (stem[:140] + dot + ext) if dot else name[:150]
    return name


class LocalStorageService:
    """Writes, resolves and removes stored files below a root directory"""

    def __init__(self, root: Optional[Path] = None):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root or settings.STORAGE_DIR

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a stored file; refuses paths escaping the root"""
        root = self.root.resolve()
        full = (root / relative_path).resolve()
        if root != full and root not in full.parents:
            raise StorageError("Path escapes storage root", path=relative_path)
        return full

    def exists(self, relative_path: Optional[str]) -> bool:
        if not relative_path:
            return False
        try:
            return self.resolve(relative_path).is_file()
        except StorageError:
            return False

    def _unique_relative(self, directory: str, name: str) -> str:
        relative = f"{directory}/{name}"
        if not self.resolve(relative).exists():
            return relative
        stem, dot, ext = name.rpartition(".")
        suffix = secrets.token_hex(3)
        return f"{directory}/{stem}_{suffix}{dot}{ext}" if dot else f"{directory}/{name}_{suffix}"

    # Paths are assigned before the database rows are flushed and written
    # only afterwards, so a failed flush never leaves files behind.

    def document_path(self, file: IncomingFile, index: int) -> str:
        name = f"{int(time.time())}_{index}_{sanitize_filename(file.filename)}"
        return self._unique_relative(DOCUMENTS_DIR, name)

    def result_path(self, file: IncomingFile) -> str:
        name = f"{int(time.time())}_result_{sanitize_filename(file.filename)}"
        return self._unique_relative(RESULTS_DIR, name)

    async def write(self, relative_path: str, content: bytes) -> str:
        """Write content at a path from document_path/result_path"""
        full = self.resolve(relative_path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"[Storage] Failed to write {relative_path}: {e}")
            raise StorageError(f"Failed to write {relative_path}", path=relative_path) from e

        logger.info(f"[Storage] Stored {relative_path} ({len(content)} bytes)")
        return relative_path

    async def delete(self, relative_path: str) -> bool:
        """Remove a stored file; missing files are not an error"""
        try:
            await aiofiles.os.remove(self.resolve(relative_path))
            return True
        except FileNotFoundError:
            return False
        except (OSError, StorageError) as e:
            logger.warning(f"[Storage] Could not delete {relative_path}: {e}")
            return False

    async def delete_many(self, relative_paths: List[str]) -> None:
        for path in relative_paths:
            await self.delete(path)


storage_service = LocalStorageService()
