"""Shared fixtures for the pyseafile tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
import yaml

from pyseafile.api import AuthClient, LibraryRecord

SERVER = "https://seafile.example.com"


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Session file holding a token for SERVER."""
    config_file = tmp_path / ".seafile"
    config_file.write_text(yaml.safe_dump({"server": SERVER, "token": "test_token"}))
    return config_file


@pytest.fixture
def auth_client(config_file: Path) -> AuthClient:
    """Create an authenticated AuthClient for testing."""
    client = AuthClient(config_path=config_file)
    client.load_session()
    return client


@pytest.fixture
def http_client() -> Iterator[httpx.Client]:
    """Plain client bound to SERVER, as handed to the resources."""
    with httpx.Client(
        base_url=SERVER, headers={"Authorization": "Token test_token"}
    ) as client:
        yield client


@pytest.fixture
def docs_library() -> LibraryRecord:
    return LibraryRecord(
        id="L1", name="Docs", size=100, mtime=1700000000, encrypted=False
    )


@pytest.fixture
def photos_library() -> LibraryRecord:
    return LibraryRecord(
        id="L2", name="Photos", size=2048, mtime=1700000500, encrypted=True
    )


def api_url(path: str, **params: str) -> httpx.URL:
    """Build the full URL of an api2 endpoint."""
    return httpx.URL(SERVER + path, params=params or None)
