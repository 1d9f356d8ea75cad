"""Asset discovery, URL resolution and reference rewriting."""

from __future__ import annotations

import logging
import posixpath
import re
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup, Tag

from sitepin.errors import ErrorKind, Failure, FetchError

from .models import AssetKind, AssetReference, PendingUpdate, ResolvedAsset

logger = logging.getLogger(__name__)

_ABSOLUTE_PREFIXES = ("http://", "https://")
_FALLBACK_FILENAME = "index"
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")


def _unfetchable_scheme(url: str) -> str | None:
    """Scheme of *url* when it is one no GET can fetch (``data:``, ``javascript:``...)."""
    match = _SCHEME_RE.match(url)
    if match is None:
        return None
    scheme = match.group(1).lower()
    return None if scheme in ("http", "https") else scheme


def discover_assets(
    soup: BeautifulSoup,
) -> tuple[list[tuple[Tag, AssetReference]], list[Failure]]:
    """Select every img/link/script element in document order.

    Returns ``(found, skipped)``: elements carrying a fetchable URL attribute
    paired with their reference, and a non-fatal failure for every element
    without one. Skipped elements are left untouched.
    """
    selector = ", ".join(kind.value for kind in AssetKind)
    found: list[tuple[Tag, AssetReference]] = []
    skipped: list[Failure] = []

    for index, element in enumerate(soup.select(selector)):
        kind = AssetKind(element.name)
        value = element.get(kind.attribute)
        url = value.strip() if isinstance(value, str) else ""
        context = {"element": kind.value, "index": index, "attribute": kind.attribute}
        if not url:
            logger.warning(
                "element has no %s attribute, skipping",
                kind.attribute,
                extra={"element": kind.value, "index": index},
            )
            skipped.append(
                Failure(
                    kind=ErrorKind.MISSING_ATTRIBUTE,
                    message=f"<{kind.value}> at index {index} has no {kind.attribute} attribute",
                    context=context,
                    fatal=False,
                )
            )
            continue
        scheme = _unfetchable_scheme(url)
        if scheme is not None:
            logger.warning(
                "element uses a %s: URL, leaving it inline",
                scheme,
                extra={"element": kind.value, "index": index},
            )
            skipped.append(
                Failure(
                    kind=ErrorKind.UNSUPPORTED_SCHEME,
                    message=f"<{kind.value}> at index {index} has a {scheme}: URL",
                    context={**context, "scheme": scheme},
                    fatal=False,
                )
            )
            continue
        found.append(
            (element, AssetReference(kind=kind, attribute=kind.attribute, original_url=url))
        )

    logger.debug("assets discovered", extra={"found": len(found), "skipped": len(skipped)})
    return found, skipped


def resolve_url(original_url: str, origin_url: str) -> str:
    """Absolute URLs pass through; anything else is prefixed with the origin."""
    if original_url.lower().startswith(_ABSOLUTE_PREFIXES):
        return original_url
    if original_url.startswith("//"):
        scheme = urlparse(origin_url).scheme or "https"
        return f"{scheme}:{original_url}"
    return f"{origin_url.rstrip('/')}/{original_url.lstrip('/')}"


def local_filename(url: str) -> str:
    """Basename of the URL path, percent-decoded."""
    name = posixpath.basename(unquote(urlparse(url).path))
    if name in ("", ".", ".."):
        return _FALLBACK_FILENAME
    return name


def resolve_asset(reference: AssetReference, origin_url: str) -> ResolvedAsset:
    """Raises FetchError when the reference is not a parseable URL."""
    try:
        return ResolvedAsset(
            reference=reference,
            absolute_url=resolve_url(reference.original_url, origin_url),
            filename=local_filename(reference.original_url),
        )
    except ValueError as exc:
        logger.error(
            "asset URL is malformed",
            extra={"url": reference.original_url, "element": reference.kind.value},
        )
        raise FetchError(
            f"malformed asset URL {reference.original_url!r}: {exc}",
            url=reference.original_url,
        ) from exc


def find_collisions(assets: list[ResolvedAsset]) -> list[str]:
    """Filenames claimed by more than one distinct URL."""
    urls_by_name: dict[str, set[str]] = {}
    for asset in assets:
        urls_by_name.setdefault(asset.filename, set()).add(asset.absolute_url)
    return sorted(name for name, urls in urls_by_name.items() if len(urls) > 1)


def apply_updates(updates: list[PendingUpdate]) -> int:
    """Point every pending element at its local copy. Returns the rewrite count."""
    for update in updates:
        update.element[update.asset.reference.attribute] = update.asset.local_path
    return len(updates)
