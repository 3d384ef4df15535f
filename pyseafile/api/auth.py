"""Authentication client for the Seafile api2 interface.

Authentication Flow:
1. Client posts username and password to ``/api2/auth-token/``
2. Server answers with a long-lived API token
3. Every later request carries ``Authorization: Token <token>``

The server address and the token are persisted together in a small YAML
file so a host application does not have to log in on every start.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import yaml

from .errors import ErrorKind, SeafileError, describe_status
from .models import Session

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

# Public instance used when no server is configured
DEFAULT_SERVER = "https://seacloud.cc"

AUTH_TOKEN_ENDPOINT = "/api2/auth-token/"

# Default config locations
DEFAULT_CONFIG_NAME = ".seafile"
XDG_CONFIG_NAME = "seafile/seafile.conf"

# File permissions (owner read/write only)
CONFIG_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600

# HTTP client settings
DEFAULT_TIMEOUT = 30.0


class AuthError(SeafileError):
    """Base exception for authentication errors."""

    kind = ErrorKind.AUTH


class TokenError(AuthError):
    """Raised when the server refuses to hand out a token."""

    pass


class ConfigError(AuthError):
    """Raised when configuration loading/saving fails."""

    kind = ErrorKind.CONFIG


def _get_default_config_path() -> Path:
    """Determine the default configuration file path.

    Checks in order:
    1. SEAFILE_CONFIG environment variable
    2. ~/.seafile (home directory)
    3. ~/.config/seafile/seafile.conf (XDG config)

    Returns:
        Path to the configuration file.
    """
    env_config = os.environ.get("SEAFILE_CONFIG")
    if env_config:
        return Path(env_config).expanduser()

    home_config = Path.home() / DEFAULT_CONFIG_NAME
    if home_config.exists():
        return home_config

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        xdg_config = Path(xdg_config_home) / XDG_CONFIG_NAME
    else:
        xdg_config = Path.home() / ".config" / XDG_CONFIG_NAME

    if xdg_config.exists():
        return xdg_config

    return home_config


def _log_request(request: httpx.Request) -> None:
    logger.debug("%s %s", request.method, request.url)


def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug(
        "%s %s -> %d %s",
        request.method,
        request.url,
        response.status_code,
        response.headers.get("Content-Length", "-"),
    )


class AuthClient:
    """Authentication client for a Seafile server.

    Owns the session (server address and token) of one identity.

    Example:
        >>> client = AuthClient("https://cloud.example.com")
        >>> client.acquire_token("me@example.com", "secret")
        >>> client.save_session()
        >>> http_client = client.get_http_client()

    Attributes:
        config_path: Path to the configuration file.
        session: Current session, None until loaded or logged in.
    """

    def __init__(
        self,
        server: str | None = None,
        config_path: str | Path | None = None,
    ) -> None:
        """Initialize the authentication client.

        Args:
            server: Server base URL. If None, the persisted server is used.
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            self.config_path = _get_default_config_path()
        else:
            self.config_path = Path(config_path).expanduser()

        self.session: Session | None = Session(server=server) if server else None
        self._http_client: httpx.Client | None = None

    @property
    def server(self) -> str:
        if self.session is not None:
            return self.session.server
        return DEFAULT_SERVER

    @property
    def token(self) -> str:
        return self.session.token if self.session is not None else ""

    def load_session(self) -> Session | None:
        """Load the session from the configuration file.

        A server passed to the constructor wins over the persisted one.

        Returns:
            Session if config exists and is valid, None otherwise.

        Raises:
            ConfigError: If config file exists but cannot be parsed.
        """
        if not self.config_path.exists():
            return None

        try:
            data = yaml.safe_load(self.config_path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load config: {e}") from e

        if not data:
            return None

        try:
            loaded = Session.model_validate(data)
        except ValueError as e:
            raise ConfigError(f"Invalid config file: {e}") from e

        if self.session is not None and self.session.server != loaded.server:
            # Token belongs to another server
            return self.session

        self.session = loaded
        return self.session

    def save_session(self, session: Session | None = None) -> None:
        """Save the session to the configuration file.

        Args:
            session: Session to save. If None, saves the current session.

        Raises:
            ConfigError: If the session cannot be saved.
        """
        session = session or self.session
        if session is None:
            raise ConfigError("No session to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            content = yaml.safe_dump(
                {"server": session.server, "token": session.token},
                default_flow_style=False,
            )
            self.config_path.write_text(content)

            self.config_path.chmod(CONFIG_FILE_MODE)

            self.session = session

        except OSError as e:
            raise ConfigError(f"Failed to save config: {e}") from e

    def acquire_token(self, username: str, password: str) -> str:
        """Exchange username and password for an API token.

        The call is not retried; it is safe for the caller to retry.

        Args:
            username: Account name, usually the e-mail address.
            password: Account password.

        Returns:
            The API token.

        Raises:
            TokenError: If the server refuses or cannot be reached.
        """
        server = self.server.rstrip("/")
        url = server + AUTH_TOKEN_ENDPOINT
        logger.debug("Sending auth request: %s", url)

        try:
            with httpx.Client(
                timeout=DEFAULT_TIMEOUT,
                event_hooks={"request": [_log_request], "response": [_log_response]},
            ) as client:
                response = client.post(
                    url, data={"username": username, "password": password}
                )
        except httpx.HTTPError as e:
            logger.error("Auth request to %s failed: %s", url, e)
            raise TokenError(f"HTTP error while requesting token: {e}") from e

        if response.status_code != 200:
            diagnostic = describe_status(response.status_code)
            logger.error(
                "Auth request rejected: %s (%s)", diagnostic, response.text
            )
            raise TokenError(
                f"Token request failed: {response.status_code} - {diagnostic}",
                status_code=response.status_code,
            )

        try:
            token = str(response.json()["token"]).strip()
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Malformed auth response: %s", response.text)
            raise TokenError(f"Malformed token response: {e}") from e

        if not token:
            raise TokenError("Received empty token")

        self.session = Session(server=self.server, token=token)
        return token

    def ensure_authenticated(self) -> Session:
        """Ensure the client holds a session with a token.

        Loads the session from config if none is held.

        Returns:
            The authenticated session.

        Raises:
            AuthError: If no token is available.
        """
        if self.session is None or not self.session.authenticated:
            self.load_session()

        if self.session is None or not self.session.authenticated:
            raise AuthError(
                "Not authenticated. Acquire a token with acquire_token() first."
            )

        return self.session

    def get_http_client(self) -> httpx.Client:
        """Get an authenticated HTTP client for API calls.

        The client is bound to the server and sends the token with every
        request. Requests and responses are logged at DEBUG level. A client
        handed out earlier is closed.

        Returns:
            Configured httpx.Client.

        Raises:
            AuthError: If not authenticated.
        """
        session = self.ensure_authenticated()
        self.close()

        self._http_client = httpx.Client(
            base_url=session.server,
            timeout=DEFAULT_TIMEOUT,
            headers={
                "Authorization": f"Token {session.token}",
                "Accept": "application/json",
            },
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )
        return self._http_client

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> Self:
        """Create an AuthClient and load the persisted session.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            AuthClient with the session loaded (if available).
        """
        client = cls(config_path=config_path)
        client.load_session()
        return client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit - close HTTP client if open."""
        self.close()
