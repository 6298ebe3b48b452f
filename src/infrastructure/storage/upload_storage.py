from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"


@dataclass
class StoredFile:
    name: str
    path: str  # public path, /uploads/<name>
    size: int


def public_path(name: str) -> str:
    return f"{PUBLIC_PREFIX}{name}"


def name_from_public_path(path: str) -> str | None:
    """Return the bare file name for a /uploads/ path, None for anything else."""
    if not path or not path.startswith(PUBLIC_PREFIX):
        return None
    name = path[len(PUBLIC_PREFIX):]
    # refuse anything that could escape the content directory
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        return None
    return name


class UploadStorage(Protocol):
    def save(self, name: str, data: bytes) -> StoredFile: ...

    def delete(self, path: str) -> bool: ...

    def exists(self, path: str) -> bool: ...


class LocalUploadStorage:
    """Writes uploads into the content directory served under /uploads."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory or os.getenv("UPLOAD_DIR", "public/uploads"))
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, name: str, data: bytes) -> StoredFile:
        full_path = self.directory / name
        full_path.write_bytes(data)
        logger.debug("Stored upload %s (%d bytes)", full_path, len(data))
        return StoredFile(name=name, path=public_path(name), size=len(data))

    def delete(self, path: str) -> bool:
        """Remove a stored file. A missing file is not an error."""
        name = name_from_public_path(path)
        if name is None:
            return False
        full_path = self.directory / name
        if not full_path.exists():
            return False
        full_path.unlink()
        return True

    def exists(self, path: str) -> bool:
        name = name_from_public_path(path)
        return name is not None and (self.directory / name).is_file()


class InMemoryUploadStorage:
    """Keeps uploads in a dict; used where touching disk is unwanted."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    def save(self, name: str, data: bytes) -> StoredFile:
        self.files[name] = data
        return StoredFile(name=name, path=public_path(name), size=len(data))

    def delete(self, path: str) -> bool:
        name = name_from_public_path(path)
        return name is not None and self.files.pop(name, None) is not None

    def exists(self, path: str) -> bool:
        name = name_from_public_path(path)
        return name is not None and name in self.files
