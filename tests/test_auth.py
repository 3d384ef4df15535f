"""Tests for the authentication module."""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from unittest.mock import patch
from urllib.parse import parse_qs

import httpx
import pytest
import yaml
from conftest import SERVER
from pytest_httpx import HTTPXMock

from pyseafile.api import (
    AuthClient,
    AuthError,
    ConfigError,
    ErrorKind,
    Session,
    TokenError,
    describe_status,
)
from pyseafile.api.auth import (
    AUTH_TOKEN_ENDPOINT,
    CONFIG_FILE_MODE,
    DEFAULT_CONFIG_NAME,
    DEFAULT_SERVER,
)

TOKEN_URL = SERVER + AUTH_TOKEN_ENDPOINT


class TestSession:
    """Tests for the Session model."""

    def test_create_without_token(self) -> None:
        session = Session(server=SERVER)
        assert session.token == ""
        assert session.authenticated is False

    def test_create_with_token(self) -> None:
        session = Session.model_validate({"server": SERVER, "token": "abc"})
        assert session.token == "abc"
        assert session.authenticated is True


class TestDescribeStatus:
    """Tests for status code diagnostics."""

    @pytest.mark.parametrize(
        ("code", "message"),
        [
            (400, "Bad request."),
            (403, "Forbidden."),
            (405, "Method not allowed. Are you using HTTPS?"),
            (429, "Too many requests."),
            (500, "Internal server error."),
        ],
    )
    def test_known_codes(self, code: int, message: str) -> None:
        assert describe_status(code) == message

    def test_unknown_code(self) -> None:
        assert describe_status(418) == "418"


class TestAuthClientConfig:
    """Tests for AuthClient configuration handling."""

    def test_default_config_path(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test default config path resolution."""
        monkeypatch.delenv("SEAFILE_CONFIG", raising=False)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        with patch("pyseafile.api.auth.Path.home", return_value=tmp_path):
            client = AuthClient()
            assert client.config_path == tmp_path / DEFAULT_CONFIG_NAME

    def test_xdg_config_path(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An existing XDG config is used when ~/.seafile is missing."""
        xdg_config = tmp_path / "xdg" / "seafile" / "seafile.conf"
        xdg_config.parent.mkdir(parents=True)
        xdg_config.write_text("")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        monkeypatch.delenv("SEAFILE_CONFIG", raising=False)

        with patch("pyseafile.api.auth.Path.home", return_value=tmp_path / "home"):
            client = AuthClient()

        assert client.config_path == xdg_config

    def test_env_config_path(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test config path from environment variable."""
        env_path = tmp_path / "env_config"
        monkeypatch.setenv("SEAFILE_CONFIG", str(env_path))
        client = AuthClient()
        assert client.config_path == env_path

    def test_server_defaults(self, tmp_path: Path) -> None:
        client = AuthClient(config_path=tmp_path / ".seafile")
        assert client.session is None
        assert client.server == DEFAULT_SERVER
        assert client.token == ""

    def test_load_session_file_not_exists(self, tmp_path: Path) -> None:
        client = AuthClient(config_path=tmp_path / "nonexistent")
        assert client.load_session() is None
        assert client.session is None

    def test_load_session_success(self, config_file: Path) -> None:
        client = AuthClient(config_path=config_file)
        session = client.load_session()

        assert session is not None
        assert session.server == SERVER
        assert session.token == "test_token"
        assert client.session == session

    def test_load_session_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / ".seafile"
        config_file.write_text("")

        client = AuthClient(config_path=config_file)
        assert client.load_session() is None

    def test_load_session_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / ".seafile"
        config_file.write_text("invalid: yaml: content:")

        client = AuthClient(config_path=config_file)
        with pytest.raises(ConfigError, match="Failed to parse config") as exc_info:
            client.load_session()
        assert exc_info.value.kind == ErrorKind.CONFIG

    def test_load_session_missing_server(self, tmp_path: Path) -> None:
        config_file = tmp_path / ".seafile"
        config_file.write_text(yaml.safe_dump({"token": "abc"}))

        client = AuthClient(config_path=config_file)
        with pytest.raises(ConfigError, match="Invalid config"):
            client.load_session()

    def test_load_session_for_other_server(self, config_file: Path) -> None:
        """A token saved for another server is not picked up."""
        client = AuthClient("https://other.example.com", config_path=config_file)
        session = client.load_session()

        assert session is not None
        assert session.server == "https://other.example.com"
        assert session.token == ""

    def test_save_session_success(self, tmp_path: Path) -> None:
        config_file = tmp_path / "nested" / ".seafile"
        session = Session(server=SERVER, token="abc")

        client = AuthClient(config_path=config_file)
        client.save_session(session)

        saved = yaml.safe_load(config_file.read_text())
        assert saved == {"server": SERVER, "token": "abc"}
        assert stat.S_IMODE(config_file.stat().st_mode) == CONFIG_FILE_MODE
        assert client.session == session

    def test_save_session_nothing_to_save(self, tmp_path: Path) -> None:
        client = AuthClient(config_path=tmp_path / ".seafile")
        with pytest.raises(ConfigError, match="No session to save"):
            client.save_session()


class TestAcquireToken:
    """Tests for token acquisition."""

    def test_acquire_token_success(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json={"token": "tok123"})

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        token = client.acquire_token("me@example.com", "s3cret&more")

        assert token == "tok123"
        assert client.session == Session(server=SERVER, token="tok123")

        request = httpx_mock.get_request()
        assert request is not None
        form = parse_qs(request.content.decode())
        assert form == {"username": ["me@example.com"], "password": ["s3cret&more"]}
        assert "Authorization" not in request.headers

    def test_acquire_token_trailing_slash_server(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json={"token": "tok"})

        client = AuthClient(SERVER + "/", config_path=tmp_path / ".seafile")

        assert client.acquire_token("me", "pw") == "tok"

    @pytest.mark.parametrize(
        ("status_code", "diagnostic"),
        [(400, "Bad request."), (403, "Forbidden."), (429, "Too many requests.")],
    )
    def test_acquire_token_rejected(
        self,
        tmp_path: Path,
        httpx_mock: HTTPXMock,
        caplog: pytest.LogCaptureFixture,
        status_code: int,
        diagnostic: str,
    ) -> None:
        """Rejections are logged with a diagnostic and raised with the status."""
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", status_code=status_code, text="nope"
        )

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with caplog.at_level(logging.ERROR, logger="pyseafile.api.auth"):
            with pytest.raises(TokenError, match=str(status_code)) as exc_info:
                client.acquire_token("me", "wrong")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.kind == ErrorKind.AUTH
        assert diagnostic in caplog.text
        assert client.token == ""

    def test_acquire_token_server_error(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=TOKEN_URL, method="POST", status_code=500)

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(TokenError, match="Internal server error"):
            client.acquire_token("me", "pw")

    def test_acquire_token_network_error(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(TokenError, match="HTTP error") as exc_info:
            client.acquire_token("me", "pw")

        assert exc_info.value.status_code is None

    def test_acquire_token_malformed_response(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json={"detail": "?"})

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(TokenError, match="Malformed"):
            client.acquire_token("me", "pw")

    def test_acquire_token_empty(
        self, tmp_path: Path, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json={"token": ""})

        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(TokenError, match="empty token"):
            client.acquire_token("me", "pw")


class TestEnsureAuthenticated:
    """Tests for ensure_authenticated method."""

    def test_loads_session_from_config(self, config_file: Path) -> None:
        client = AuthClient(config_path=config_file)
        session = client.ensure_authenticated()
        assert session.token == "test_token"

    def test_not_authenticated(self, tmp_path: Path) -> None:
        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(AuthError, match="Not authenticated"):
            client.ensure_authenticated()


class TestHttpClient:
    """Tests for HTTP client creation."""

    def test_get_http_client(self, auth_client: AuthClient) -> None:
        http_client = auth_client.get_http_client()

        assert isinstance(http_client, httpx.Client)
        assert http_client.headers["Authorization"] == "Token test_token"
        assert str(http_client.base_url).rstrip("/") == SERVER
        http_client.close()

    def test_get_http_client_sends_token(
        self, auth_client: AuthClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(url=SERVER + "/api2/repos/", json=[])

        with auth_client.get_http_client() as http_client:
            http_client.get("/api2/repos/")

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Token test_token"

    def test_get_http_client_closes_previous(self, auth_client: AuthClient) -> None:
        first = auth_client.get_http_client()
        second = auth_client.get_http_client()

        assert first.is_closed
        assert not second.is_closed
        assert auth_client._http_client is second
        auth_client.close()

    def test_get_http_client_not_authenticated(self, tmp_path: Path) -> None:
        client = AuthClient(SERVER, config_path=tmp_path / ".seafile")
        with pytest.raises(AuthError):
            client.get_http_client()


class TestContextManager:
    """Tests for context manager functionality."""

    def test_context_manager(self, tmp_path: Path) -> None:
        with AuthClient(config_path=tmp_path / ".seafile") as client:
            assert isinstance(client, AuthClient)

    def test_context_manager_closes_http_client(self, auth_client: AuthClient) -> None:
        auth_client.get_http_client()
        assert auth_client._http_client is not None

        auth_client.__exit__(None, None, None)

        assert auth_client._http_client is None

    def test_from_config(self, config_file: Path) -> None:
        client = AuthClient.from_config(config_file)
        assert client.session is not None
        assert client.session.token == "test_token"
