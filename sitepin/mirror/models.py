"""Data models for the mirror stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from bs4 import Tag

from sitepin.errors import Failure

MARKUP_FILENAME = "index.html"
ASSETS_DIRNAME = "assets"


class AssetKind(str, Enum):
    """Element kinds whose URL attribute is localized."""

    IMAGE = "img"
    LINK = "link"
    SCRIPT = "script"

    @property
    def attribute(self) -> str:
        return "href" if self is AssetKind.LINK else "src"


@dataclass(frozen=True)
class AssetReference:
    """A URL-bearing attribute read from one element of the page."""

    kind: AssetKind
    attribute: str
    original_url: str


@dataclass(frozen=True)
class ResolvedAsset:
    """An asset reference with its fetch URL and local filename decided."""

    reference: AssetReference
    absolute_url: str
    filename: str

    @property
    def local_path(self) -> str:
        return f"/{ASSETS_DIRNAME}/{self.filename}"


@dataclass
class PendingUpdate:
    """An attribute rewrite to apply once every download has finished."""

    element: Tag
    asset: ResolvedAsset


@dataclass(frozen=True)
class Workspace:
    """Local folder holding the rewritten page and its assets for one run."""

    root: Path

    @property
    def markup_path(self) -> Path:
        return self.root / MARKUP_FILENAME

    @property
    def assets_dir(self) -> Path:
        return self.root / ASSETS_DIRNAME

    def asset_path(self, filename: str) -> Path:
        return self.assets_dir / filename


@dataclass
class MirrorResult:
    """Outcome of a successful mirror run."""

    origin_url: str
    workspace: Workspace
    assets: list[ResolvedAsset] = field(default_factory=list)
    skipped: list[Failure] = field(default_factory=list)
    collisions: list[str] = field(default_factory=list)
