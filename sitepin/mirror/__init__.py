"""Mirror stage: download one page and localize its assets."""

from __future__ import annotations

from .assets import discover_assets, local_filename, resolve_asset, resolve_url
from .models import (
    AssetKind,
    AssetReference,
    MirrorResult,
    ResolvedAsset,
    Workspace,
)
from .site import SiteMirror

__all__ = [
    "AssetKind",
    "AssetReference",
    "MirrorResult",
    "ResolvedAsset",
    "SiteMirror",
    "Workspace",
    "discover_assets",
    "local_filename",
    "resolve_asset",
    "resolve_url",
]
