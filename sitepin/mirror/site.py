"""Mirror stage — fetch one page, localize its assets, persist the bundle."""

from __future__ import annotations

import asyncio
import logging

import httpx
from bs4 import BeautifulSoup

from sitepin.fileio import ensure_directory, read_text, write_text

from .assets import apply_updates, discover_assets, find_collisions, resolve_asset
from .fetch import build_http_client, fetch_asset, fetch_markup
from .models import MirrorResult, PendingUpdate, ResolvedAsset, Workspace

logger = logging.getLogger(__name__)


class SiteMirror:
    """Mirrors a single page and its directly referenced assets into a workspace."""

    def __init__(
        self,
        origin_url: str,
        workspace: Workspace,
        *,
        concurrency: int = 8,
        timeout: float = 30.0,
        user_agent: str = "sitepin/0.1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._origin_url = origin_url.rstrip("/")
        self._workspace = workspace
        self._concurrency = concurrency
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    async def run(self) -> MirrorResult:
        """Run every mirror step; the first fatal error propagates."""
        workspace = self._workspace
        logger.info(
            "mirror started",
            extra={"origin_url": self._origin_url, "workspace": str(workspace.root)},
        )

        await ensure_directory(workspace.root)
        await ensure_directory(workspace.assets_dir)

        async with build_http_client(
            user_agent=self._user_agent,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            html = await fetch_markup(client, self._origin_url)
            await write_text(workspace.markup_path, html)
            logger.info("page saved", extra={"path": str(workspace.markup_path)})

            soup = BeautifulSoup(await read_text(workspace.markup_path), "html.parser")
            found, skipped = discover_assets(soup)
            updates = [
                PendingUpdate(element=element, asset=resolve_asset(ref, self._origin_url))
                for element, ref in found
            ]
            assets = [update.asset for update in updates]

            collisions = find_collisions(assets)
            if collisions:
                logger.warning(
                    "assets share a filename, last download wins",
                    extra={"filenames": collisions},
                )

            await self._download_all(client, assets)

        rewritten = apply_updates(updates)
        await write_text(workspace.markup_path, str(soup))
        logger.info(
            "mirror completed",
            extra={"assets": len(assets), "rewritten": rewritten, "skipped": len(skipped)},
        )
        return MirrorResult(
            origin_url=self._origin_url,
            workspace=workspace,
            assets=assets,
            skipped=skipped,
            collisions=collisions,
        )

    async def _download_all(
        self, client: httpx.AsyncClient, assets: list[ResolvedAsset]
    ) -> None:
        """Fetch every asset, at most ``concurrency`` at a time.

        The first failure cancels whatever is still in flight and is re-raised.
        """
        if not assets:
            return
        semaphore = asyncio.Semaphore(self._concurrency)
        tasks = [
            asyncio.create_task(
                fetch_asset(client, asset, self._workspace.asset_path(asset.filename), semaphore)
            )
            for asset in assets
        ]
        logger.debug(
            "asset downloads scheduled",
            extra={"count": len(tasks), "concurrency": self._concurrency},
        )
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
