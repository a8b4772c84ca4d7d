"""
onboarding/db/json_store.py

Purpose: Whole-file JSON document storage

- One JSON object per file, rewritten in full on every save
- Creates the data directory (with parents) on demand
- Missing file reads as an empty document
- Writes go to a temp file and are swapped in with an atomic replace
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles
import aiofiles.os

from onboarding.core.config import settings
from onboarding.core.exceptions import StorageError
from onboarding.core.logging import get_logger

logger = get_logger(__name__)


class JsonDocumentStore:
    """Async reader/writer for a single JSON object stored on disk."""

    def __init__(self, path: Union[str, os.PathLike], indent: Optional[int] = None):
        self.path = Path(path)
        self.indent = settings.JSON_INDENT if indent is None else indent

    @property
    def directory(self) -> Path:
        return self.path.parent

    async def ensure_directory(self) -> None:
        """
        Creates the parent directory if needed.

        Raises:
            StorageError: If the directory cannot be created
        """
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            logger.error(
                f"Error creating data directory: {e}",
                extra={"path": str(self.directory)}
            )
            raise StorageError(
                f"Could not create data directory {self.directory}",
                details={"path": str(self.directory)}
            ) from e

    async def read(self) -> Dict[str, Any]:
        """
        Loads the stored document.

        Returns:
            The decoded JSON object, or an empty dict if the file does not exist

        Raises:
            StorageError: On any other I/O error, invalid JSON, or a
                top-level value that is not an object
        """
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            logger.debug("No document on disk yet", extra={"path": str(self.path)})
            return {}
        except OSError as e:
            logger.error(f"Error reading {self.path}: {e}", extra={"path": str(self.path)})
            raise StorageError(
                f"Could not read {self.path}",
                details={"path": str(self.path)}
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON in {self.path}: {e}", extra={"path": str(self.path)})
            raise StorageError(
                f"Malformed JSON in {self.path}",
                details={"path": str(self.path), "line": e.lineno, "column": e.colno}
            ) from e

        if not isinstance(data, dict):
            logger.error(
                f"Expected a JSON object in {self.path}, got {type(data).__name__}",
                extra={"path": str(self.path)}
            )
            raise StorageError(
                f"Expected a JSON object in {self.path}",
                details={"path": str(self.path), "type": type(data).__name__}
            )

        return data

    async def write(self, data: Dict[str, Any]) -> None:
        """
        Replaces the stored document with `data`.

        Raises:
            StorageError: If serialization or any file operation fails
        """
        try:
            payload = json.dumps(data, indent=self.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Error serializing document: {e}", extra={"path": str(self.path)})
            raise StorageError(
                f"Could not serialize document for {self.path}",
                details={"path": str(self.path)}
            ) from e

        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing {self.path}: {e}", extra={"path": str(self.path)})
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageError(
                f"Could not write {self.path}",
                details={"path": str(self.path)}
            ) from e

        logger.debug(
            f"Document saved ({len(data)} entries)",
            extra={"path": str(self.path)}
        )
