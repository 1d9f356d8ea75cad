"""Storage client for an IPFS (Kubo-compatible) HTTP RPC API."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote

import httpx

from sitepin.errors import AuthError, PipelineError, UploadError

from .manifest import UploadFile

logger = logging.getLogger(__name__)

DIRECTORY_CONTENT_TYPE = "application/x-directory"
FILE_CONTENT_TYPE = "application/octet-stream"

_ADD_PARAMS = {
    "wrap-with-directory": "true",
    "cid-version": "1",
    "pin": "true",
}


def _error_message(resp: httpx.Response) -> str:
    """Pull the ``Message`` field out of an RPC error body, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("Message", ""))
    return ""


def space_path(space: str) -> str:
    """MFS directory backing a logical space name."""
    return "/" + space.strip("/")


def build_multipart(files: list[UploadFile]) -> list[tuple[str, tuple[str, bytes, str]]]:
    """Lay out files as ``add`` multipart parts.

    Every parent directory gets its own part and precedes its children, so
    each directory's entries arrive contiguously. Names are percent-encoded
    because the server decodes them and would otherwise strip the directory.
    """
    entries: dict[str, UploadFile | None] = {}
    for upload in files:
        parts = PurePosixPath(upload.name).parts
        for depth in range(1, len(parts)):
            entries.setdefault("/".join(parts[:depth]), None)
        entries[upload.name] = upload

    multipart: list[tuple[str, tuple[str, bytes, str]]] = []
    for name in sorted(entries, key=lambda n: PurePosixPath(n).parts):
        upload = entries[name]
        encoded = quote(name, safe="")
        if upload is None:
            multipart.append(("file", (encoded, b"", DIRECTORY_CONTENT_TYPE)))
        else:
            multipart.append(("file", (encoded, upload.data, FILE_CONTENT_TYPE)))
    return multipart


def parse_root_cid(body: str) -> str | None:
    """Return the hash of the wrapping directory from an ``add`` response.

    The response is newline-delimited JSON, one object per added entry; the
    wrapping directory is the entry with an empty name.
    """
    root: str | None = None
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        entry: dict[str, Any] = json.loads(line)
        if entry.get("Name", None) == "" and entry.get("Hash"):
            root = entry["Hash"]
    return root


class StorageClient:
    """Authenticated session against a content-addressed storage node.

    Use as an async context manager::

        async with StorageClient(url, account="me", secret="s") as client:
            await client.login()
            await client.set_current_space("sites")
            cid = await client.upload_directory(files)
    """

    def __init__(
        self,
        api_url: str,
        *,
        account: str,
        secret: str = "",
        timeout: float = 30.0,
        user_agent: str = "sitepin/0.1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._account = account
        self._secret = secret
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._space: str | None = None

    async def __aenter__(self) -> StorageClient:
        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            auth=httpx.BasicAuth(self._account, self._secret),
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def current_space(self) -> str | None:
        return self._space

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("StorageClient must be used inside 'async with'")
        return self._client

    async def _call(
        self,
        endpoint: str,
        error_cls: type[PipelineError],
        action: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """POST an RPC endpoint, turning transport errors and error statuses into *error_cls*."""
        try:
            resp = await self._http().post(endpoint, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s failed", action, extra={"endpoint": endpoint}, exc_info=True)
            raise error_cls(f"{action} failed: {exc}", endpoint=endpoint) from exc

        if resp.is_error:
            detail = _error_message(resp)
            logger.error(
                "%s rejected",
                action,
                extra={"endpoint": endpoint, "status": resp.status_code, "detail": detail},
            )
            raise error_cls(
                f"{action} rejected ({resp.status_code}): {detail}",
                endpoint=endpoint,
                status=resp.status_code,
            )
        return resp

    async def login(self) -> str:
        """Verify the credentials against the node. Returns the node's peer ID."""
        resp = await self._call("id", AuthError, "login")
        try:
            peer_id = str(resp.json().get("ID", ""))
        except (ValueError, AttributeError) as exc:
            raise AuthError("login returned an unreadable identity", endpoint="id") from exc
        logger.info(
            "storage session established",
            extra={"account": self._account, "peer_id": peer_id},
        )
        return peer_id

    async def set_current_space(self, space: str) -> None:
        """Select the logical space uploads are filed under; it must already exist."""
        path = space_path(space)
        resp = await self._call("files/stat", AuthError, "space selection", params={"arg": path})
        try:
            kind = resp.json().get("Type")
        except (ValueError, AttributeError) as exc:
            raise AuthError("space lookup returned an unreadable body", space=path) from exc
        if kind != "directory":
            logger.error("space is not a directory", extra={"space": path, "type": kind})
            raise AuthError(f"space {path} is not a directory", space=path)
        self._space = path
        logger.info("space selected", extra={"space": path})

    async def upload_directory(self, files: list[UploadFile]) -> str:
        """Upload *files* as one directory, file it under the space, return its CID."""
        if self._space is None:
            raise UploadError("no space selected before upload")
        if not files:
            raise UploadError("nothing to upload")

        resp = await self._call(
            "add",
            UploadError,
            "directory upload",
            params=_ADD_PARAMS,
            files=build_multipart(files),
        )
        try:
            cid = parse_root_cid(resp.text)
        except ValueError as exc:
            raise UploadError("upload response is not valid JSON", endpoint="add") from exc
        if not cid:
            logger.error("upload response has no directory entry", extra={"body": resp.text[:200]})
            raise UploadError("upload response has no directory entry", endpoint="add")

        await self._link_into_space(cid)
        return cid

    async def _link_into_space(self, cid: str) -> None:
        destination = f"{self._space}/{cid}"
        try:
            existing = await self._http().post("files/stat", params={"arg": destination})
        except httpx.HTTPError as exc:
            logger.error("space lookup failed", extra={"path": destination}, exc_info=True)
            raise UploadError(f"cannot look up {destination}: {exc}", path=destination) from exc
        if existing.is_success:
            logger.info("upload already filed in space", extra={"path": destination})
            return

        await self._call(
            "files/cp",
            UploadError,
            "filing upload in space",
            params=[("arg", f"/ipfs/{cid}"), ("arg", destination)],
        )
        logger.info("upload filed in space", extra={"path": destination})
