"""Publish stage: upload a local directory tree and report its gateway URL."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sitepin.errors import UploadError

from .client import StorageClient
from .manifest import UploadFile, collect_file_paths, materialize_files

__all__ = [
    "PublishResult",
    "StorageClient",
    "UploadFile",
    "collect_file_paths",
    "gateway_url",
    "materialize_files",
    "publish_directory",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    cid: str
    url: str
    file_count: int


def gateway_url(cid: str, gateway_domain: str) -> str:
    return f"https://{cid}.{gateway_domain.strip('/')}/"


async def publish_directory(
    roots: list[Path],
    client: StorageClient,
    *,
    space: str,
    gateway_domain: str,
) -> PublishResult:
    """Authenticate, select the space, and upload every file under *roots*."""
    await client.login()
    await client.set_current_space(space)

    paths = await collect_file_paths(roots)
    logger.info("found %d files", len(paths), extra={"roots": [str(r) for r in roots]})
    if not paths:
        raise UploadError("no files found to upload", roots=[str(r) for r in roots])

    files = await materialize_files(paths)
    logger.info(
        "uploading %d files",
        len(files),
        extra={"bytes": sum(f.size for f in files)},
    )

    cid = await client.upload_directory(files)
    url = gateway_url(cid, gateway_domain)
    logger.info("uploaded directory with CID: %s", url, extra={"cid": cid})
    return PublishResult(cid=cid, url=url, file_count=len(files))
