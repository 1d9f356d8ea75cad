"""Fake HTTP transports for the page origin and the storage node."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx


ORIGIN = "https://example.com"

PAGE = """<!DOCTYPE html>
<html>
<head>
<link rel="stylesheet" href="/css/site.css">
<script src="https://cdn.example.net/lib/app.js"></script>
<script>console.log("inline");</script>
</head>
<body>
<img src="/img/logo.png" alt="logo">
<img alt="no source">
</body>
</html>
"""

ASSET_BODIES = {
    "https://example.com/css/site.css": b"body { color: red; }",
    "https://cdn.example.net/lib/app.js": b"console.log('app');",
    "https://example.com/img/logo.png": b"\x89PNG\r\n\x1a\nfake",
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def site_handler(
    page: str = PAGE,
    assets: dict[str, bytes] | None = None,
    failing: set[str] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    bodies = ASSET_BODIES if assets is None else assets
    failing = failing or set()

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in failing or url.rstrip("/") in failing:
            return httpx.Response(500, text="boom")
        if url.rstrip("/") == ORIGIN:
            return httpx.Response(200, text=page, headers={"Content-Type": "text/html"})
        if url in bodies:
            return httpx.Response(200, content=bodies[url])
        return httpx.Response(404)

    return handler


def storage_handler(
    *,
    cid: str = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
    space_exists: bool = True,
    already_filed: bool = False,
    login_status: int = 200,
    add_status: int = 200,
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/api/v0/", 1)[-1]
        args = request.url.params.get_list("arg")
        if endpoint == "id":
            if login_status != 200:
                return httpx.Response(login_status, json={"Message": "unauthorized", "Type": "error"})
            return httpx.Response(200, json={"ID": "12D3KooWPeer"})
        if endpoint == "files/stat":
            if args == ["/sites"] and space_exists:
                return httpx.Response(200, json={"Hash": "bafyspace", "Type": "directory"})
            if args == [f"/sites/{cid}"] and already_filed:
                return httpx.Response(200, json={"Hash": cid, "Type": "directory"})
            return httpx.Response(500, json={"Message": "file does not exist", "Type": "error"})
        if endpoint == "add":
            if add_status != 200:
                return httpx.Response(add_status, json={"Message": "add failed", "Type": "error"})
            lines = [
                {"Name": "index.html", "Hash": "bafyindex", "Size": "10"},
                {"Name": "", "Hash": cid, "Size": "100"},
            ]
            return httpx.Response(200, text="\n".join(json.dumps(line) for line in lines))
        if endpoint == "files/cp":
            return httpx.Response(200, text="")
        return httpx.Response(404)

    return handler
