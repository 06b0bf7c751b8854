"""
Authentication strategy.

Each provider accepts a closed set of schemes. The strategy checks the
configured scheme against that set before anything reaches the provider
client, then hands the credentials over.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from forgekit.adapter.errors import UnsupportedAuthScheme
from forgekit.logger import get_logger

if TYPE_CHECKING:
    from forgekit.adapter.http import RestClient

log = get_logger("auth")


class AuthScheme(Enum):
    HTTP_PASSWORD = "http_password"
    HTTP_TOKEN = "http_token"


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Credentials:
    """
    Credentials as read from the adapter's ``authentication`` config block.

    Attributes:
        scheme: Configured scheme, None when missing or unrecognized
        secret: Password or token
        username: Login, needed for password auth
        raw_scheme: Scheme string as configured, kept for error messages
    """
    scheme: AuthScheme | None
    secret: str
    username: str | None = None
    raw_scheme: str = ""

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Credentials":
        auth = config.get("authentication") or {}
        raw_scheme = str(auth.get("http-auth-type") or "")
        try:
            scheme = AuthScheme(raw_scheme)
        except ValueError:
            scheme = None
        return cls(
            scheme=scheme,
            secret=str(auth.get("password-or-token") or ""),
            username=auth.get("username"),
            raw_scheme=raw_scheme,
        )


class AuthStrategy:
    """Validates and applies credentials for one provider."""

    def __init__(self, provider: str, accepted: tuple[AuthScheme, ...]):
        self.provider = provider
        self.accepted = accepted
        self.state = AuthState.UNAUTHENTICATED
        self.scheme: AuthScheme | None = None

    def validate(self, credentials: Credentials) -> AuthScheme:
        if credentials.scheme not in self.accepted:
            raise UnsupportedAuthScheme(
                self.provider,
                credentials.raw_scheme,
                tuple(scheme.value for scheme in self.accepted),
            )
        return credentials.scheme

    def authenticate(self, client: "RestClient", credentials: Credentials) -> bool:
        """
        Apply credentials to the client.

        Raises:
            UnsupportedAuthScheme: Before touching the client, when the scheme
                is not one this provider accepts
        """
        scheme = self.validate(credentials)
        client.authenticate(scheme, credentials.secret, credentials.username)
        self.scheme = scheme
        self.state = AuthState.AUTHENTICATED
        log.info("Authenticated", provider=self.provider, scheme=scheme.value)
        return True
