"""Run orchestrator — mirror the page, then publish the workspace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import httpx

from sitepin.config import Settings
from sitepin.errors import Failure, PipelineError
from sitepin.mirror import MirrorResult, SiteMirror, Workspace
from sitepin.publish import PublishResult, StorageClient, publish_directory

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Terminal state of one pipeline run."""

    SUCCEEDED = "succeeded"
    MIRROR_FAILED = "mirror_failed"
    PUBLISH_FAILED = "publish_failed"
    CONFIG_FAILED = "config_failed"
    CRASHED = "crashed"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    RunStatus.SUCCEEDED: 0,
    RunStatus.MIRROR_FAILED: 1,
    RunStatus.PUBLISH_FAILED: 2,
    RunStatus.CONFIG_FAILED: 3,
    RunStatus.CRASHED: 4,
}


@dataclass
class RunResult:
    status: RunStatus
    mirror: MirrorResult | None = None
    publish: PublishResult | None = None
    failure: Failure | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCEEDED


async def run_pipeline(
    settings: Settings,
    *,
    http_transport: httpx.AsyncBaseTransport | None = None,
    storage_transport: httpx.AsyncBaseTransport | None = None,
) -> RunResult:
    """Mirror ``settings.website`` into the workspace, then upload it.

    Pipeline errors are caught here, logged, and reported through the
    returned status; publish never starts when the mirror fails.
    """
    workspace = Workspace(settings.workspace_dir)
    mirror = SiteMirror(
        settings.website,
        workspace,
        concurrency=settings.asset_concurrency,
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
        transport=http_transport,
    )
    try:
        mirrored = await mirror.run()
    except PipelineError as exc:
        logger.error(
            "mirror stage failed: %s",
            exc,
            extra={"kind": exc.kind.value, **exc.context},
        )
        return RunResult(status=RunStatus.MIRROR_FAILED, failure=exc.to_failure())

    try:
        async with StorageClient(
            settings.storage_api_url,
            account=settings.storage_account,
            secret=settings.storage_secret,
            timeout=settings.request_timeout,
            user_agent=settings.user_agent,
            transport=storage_transport,
        ) as client:
            published = await publish_directory(
                settings.roots,
                client,
                space=settings.storage_space,
                gateway_domain=settings.gateway_domain,
            )
    except PipelineError as exc:
        logger.error(
            "publish stage failed, workspace kept at %s: %s",
            workspace.root,
            exc,
            extra={"kind": exc.kind.value, **exc.context},
        )
        return RunResult(
            status=RunStatus.PUBLISH_FAILED,
            mirror=mirrored,
            failure=exc.to_failure(),
        )

    logger.info("upload completed successfully", extra={"url": published.url})
    return RunResult(status=RunStatus.SUCCEEDED, mirror=mirrored, publish=published)
