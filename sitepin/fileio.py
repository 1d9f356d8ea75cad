"""Async disk helpers that translate OSError into FileIOError."""

from __future__ import annotations

import contextlib
import logging
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from sitepin.errors import DirectoryError, FileIOError

logger = logging.getLogger(__name__)


async def ensure_directory(path: Path) -> None:
    """Create *path* and its parents; an existing directory is not an error."""
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as exc:
        logger.error("directory creation failed", extra={"path": str(path)}, exc_info=True)
        raise DirectoryError(f"cannot create directory {path}", path=str(path)) from exc
    logger.info("directory created or already exists", extra={"path": str(path)})


async def write_text(path: Path, text: str) -> None:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(text)
    except OSError as exc:
        logger.error("file write failed", extra={"path": str(path)}, exc_info=True)
        raise FileIOError(f"cannot write {path}", path=str(path)) from exc


async def read_text(path: Path) -> str:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()
    except OSError as exc:
        logger.error("file read failed", extra={"path": str(path)}, exc_info=True)
        raise FileIOError(f"cannot read {path}", path=str(path)) from exc


async def read_bytes(path: Path) -> bytes:
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as exc:
        logger.error("file read failed", extra={"path": str(path)}, exc_info=True)
        raise FileIOError(f"cannot read {path}", path=str(path)) from exc


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write *data* to a sibling temp file, then move it over *path*.

    Concurrent writers targeting the same path never interleave; the last
    replace wins.
    """
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.part")
    try:
        async with aiofiles.open(tmp, "wb") as f:
            await f.write(data)
        await aiofiles.os.replace(tmp, path)
    except OSError as exc:
        logger.error("file write failed", extra={"path": str(path)}, exc_info=True)
        raise FileIOError(f"cannot write {path}", path=str(path)) from exc
    finally:
        # gone already after a successful replace
        with contextlib.suppress(FileNotFoundError):
            await aiofiles.os.remove(tmp)
