import logging
import threading

from mission_remote.errors import ConfigurationError
from mission_remote.models import Credentials, Endpoint, Host

log = logging.getLogger(__name__)


class Session:
    """Endpoint, credentials and the server-issued token for one server.

    The token is absent until the server first answers 409, is replaced
    every time a 409 recurs, and never expires on the client side.
    """

    def __init__(self, endpoint: Endpoint, credentials: Credentials, token: str | None = None):
        if endpoint is None or credentials is None:
            raise ConfigurationError("A session needs both an endpoint and credentials")
        self.endpoint = endpoint
        self.credentials = credentials
        self._token = token
        self._authenticated = False
        self._lock = threading.Lock()

    @classmethod
    def from_host(cls, host: Host, password: str | None) -> "Session":
        missing = [
            name
            for name, value in (
                ("server", host.server),
                ("port", host.port),
                ("username", host.username),
                ("password", password),
            )
            if value is None or value == ""
        ]
        if missing:
            raise ConfigurationError(
                f"Host '{host.name}' is missing: {', '.join(missing)}"
            )
        return cls(
            Endpoint.from_host(host),
            Credentials(username=host.username, password=password),
        )

    @property
    def token(self) -> str | None:
        with self._lock:
            return self._token

    @property
    def authenticated(self) -> bool:
        with self._lock:
            return self._authenticated

    def update(self, token: str | None) -> None:
        with self._lock:
            self._token = token
            self._authenticated = False
        log.info("Session token for %s refreshed", self.endpoint.host)

    def mark_authenticated(self) -> None:
        with self._lock:
            self._authenticated = True

    def __repr__(self) -> str:
        return f"Session(url={self.endpoint.url!r}, has_token={self.token is not None})"
