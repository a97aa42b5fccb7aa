"""Async string key-value storage used to mirror the stores.

``read`` returns None for an absent key; both operations raise StorageError
on failure.
"""
import asyncio
import logging
import os
import re
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from menu.domain.errors import MenuError

logger = logging.getLogger(__name__)


class StorageError(MenuError):
    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class KeyValueStorage(ABC):
    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    """Process-local storage, handy for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(key, f"value must be str, got {type(value).__name__}")
        self.data[key] = value


class JsonFileStorage(KeyValueStorage):
    """One UTF-8 file per key inside ``directory``; writes go through a temp file + move."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key).strip("._") or "default"
        return self.directory / f"{safe}.json"

    def _read_sync(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(key, f"cannot read {path}: {e}") from e

    def _write_sync(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}_", suffix=".json")
        except OSError as e:
            raise StorageError(key, f"cannot write {path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
            shutil.move(tmp_path, path)
        except OSError as e:
            raise StorageError(key, f"cannot write {path}: {e}") from e
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning(f"Could not remove temp file {tmp_path}")

    async def read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)

    def __str__(self) -> str:
        return f"JsonFileStorage({self.directory})"

    __repr__ = __str__
