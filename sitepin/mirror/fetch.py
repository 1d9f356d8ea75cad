"""HTTP fetches for the page markup and its assets."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from sitepin.errors import EmptyResponseError, FetchError
from sitepin.fileio import write_bytes_atomic

from .models import ResolvedAsset

logger = logging.getLogger(__name__)


def build_http_client(
    *,
    user_agent: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": user_agent},
        timeout=timeout,
        transport=transport,
    )


async def fetch_markup(client: httpx.AsyncClient, url: str) -> str:
    """GET the page at *url* and return its text; an empty body is an error."""
    logger.info("downloading page", extra={"url": url})
    try:
        resp = await client.get(url)
        resp.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("page download failed", extra={"url": url}, exc_info=True)
        raise FetchError(f"cannot download {url}: {exc}", url=url) from exc

    if not resp.content:
        logger.error("page download returned an empty body", extra={"url": url})
        raise EmptyResponseError(f"empty response from {url}", url=url)
    return resp.text


async def fetch_asset(
    client: httpx.AsyncClient,
    asset: ResolvedAsset,
    destination: Path,
    semaphore: asyncio.Semaphore,
) -> int:
    """Download one asset to *destination*. Returns the number of bytes written."""
    async with semaphore:
        try:
            resp = await client.get(asset.absolute_url)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "asset download failed",
                extra={"url": asset.absolute_url, "path": str(destination)},
                exc_info=True,
            )
            raise FetchError(
                f"cannot download {asset.absolute_url}: {exc}",
                url=asset.absolute_url,
                path=str(destination),
            ) from exc

        await write_bytes_atomic(destination, resp.content)

    logger.info("asset downloaded", extra={"url": asset.absolute_url, "path": str(destination)})
    return len(resp.content)
