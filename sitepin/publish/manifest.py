"""Upload manifest — enumerate local files and load them for upload."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import aiofiles.os

from sitepin.errors import FileIOError
from sitepin.fileio import read_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadFile:
    """A file ready for upload, named by its path inside the uploaded directory."""

    name: str
    path: Path
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


async def _walk(directory: Path) -> list[Path]:
    try:
        with await aiofiles.os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        logger.error("cannot list directory", extra={"path": str(directory)}, exc_info=True)
        raise FileIOError(f"cannot list {directory}", path=str(directory)) from exc

    paths: list[Path] = []
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            paths.extend(await _walk(Path(entry.path)))
        elif entry.is_file():
            paths.append(Path(entry.path))
    return paths


async def collect_file_paths(roots: list[Path]) -> list[Path]:
    """Depth-first walk of every root; returns absolute paths of regular files."""
    collected: list[Path] = []
    for root in roots:
        collected.extend(await _walk(root.absolute()))
    # a root listed twice (or nested in another) must not upload files twice
    return list(dict.fromkeys(collected))


async def materialize_files(paths: list[Path]) -> list[UploadFile]:
    """Read each path and name it relative to the common parent of all paths."""
    if not paths:
        return []
    base = Path(os.path.commonpath([str(path.parent) for path in paths]))
    files: list[UploadFile] = []
    for path in paths:
        files.append(
            UploadFile(
                name=path.relative_to(base).as_posix(),
                path=path,
                data=await read_bytes(path),
            )
        )
    return files
