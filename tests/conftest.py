"""Fixtures — workspace and settings."""

from pathlib import Path

import pytest

from fakes import ORIGIN
from sitepin.config import Settings
from sitepin.mirror import Workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(tmp_path / "site")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        website=ORIGIN,
        storage_account="me@example.com",
        storage_space="sites",
        workspace_dir=tmp_path / "site",
        _env_file=None,
    )  # type: ignore[call-arg]
