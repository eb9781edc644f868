from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from types import MappingProxyType

from previewrouter.constants import TTL
from previewrouter.exceptions import BadConfigurationError
from previewrouter.types import Headers


class Stage(StrEnum):
    """Deployment stage the router runs in."""

    PRODUCTION = 'production'
    PREVIEW = 'preview'
    DEVELOPMENT = 'development'

    @classmethod
    def parse(cls, value: str | None) -> 'Stage':
        """Parse a stage name case-insensitively.

        Raises:
            BadConfigurationError: If the value is not a known stage.
        """
        try:
            return cls((value or '').strip().lower())
        except ValueError as e:
            raise BadConfigurationError(f'Unknown deployment stage {value!r}') from e

    @property
    def is_production(self) -> bool:
        return self is Stage.PRODUCTION


@dataclass(frozen=True)
class HttpRequest:
    """Incoming HTTP request as seen by the router.

    Attributes:
        method (str):
            HTTP method, e.g. 'GET'.
        url (str):
            Absolute request URL including scheme, host, path and query.
        headers (Headers):
            Request headers. Names are lower-cased on construction.

    Example:
        >>> req = HttpRequest('GET', 'https://preview-abc.example.app/api', {'X-Rewrited': '1'})
        >>> req.header('x-rewrited')
        '1'
    """

    method: str
    url: str
    headers: Headers = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {name.lower(): value for name, value in self.headers.items()}
        object.__setattr__(self, 'headers', MappingProxyType(normalized))

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)


# fmt: off
@dataclass(frozen=True)
class SignedHostnameToken:
    hostname: str           # Origin hostname to restore on the production side
    expires_at: datetime    # Absolute UTC expiry, after which the token is rejected

    def expired(self, now: datetime) -> bool:
        return self.expires_at <= now
# fmt: on


@dataclass(frozen=True)
class RouterConfig:
    """Process-wide, read-only router configuration.

    Built once before the first request and passed by reference into the
    encoder and decoder.

    Attributes:
        stage (Stage):
            Deployment stage; selects the inbound or outbound procedure.
        production_hostname (str):
            Stable public hostname every redirect points at.
        signing_key (str):
            Shared HMAC key for hostname tokens. Hidden from repr.
        token_ttl (timedelta):
            Lifetime of issued tokens. Defaults to one hour.

    Raises:
        BadConfigurationError:
            If the hostname or signing key is empty, or the TTL is not positive.
    """

    stage: Stage
    production_hostname: str
    signing_key: str = field(repr=False)
    token_ttl: timedelta = timedelta(seconds=TTL.ONE_HOUR)

    def __post_init__(self) -> None:
        if not self.production_hostname:
            raise BadConfigurationError('Production hostname must be a non-empty string')
        if not self.signing_key:
            raise BadConfigurationError('Signing key must be a non-empty string')
        if self.token_ttl <= timedelta(0):
            raise BadConfigurationError(f'Token TTL must be positive (given value: {self.token_ttl})')


@dataclass(frozen=True)
class Continue:
    """Forward the request unmodified to the platform's default routing."""


@dataclass(frozen=True)
class Redirect:
    """Answer the client with a redirect to `url`; no backend is invoked."""

    url: str
    status_code: int = 302


@dataclass(frozen=True)
class Dispatch:
    """Internally route the request to `url` with a replacement header set."""

    url: str
    headers: Headers


type RoutingDecision = Continue | Redirect | Dispatch
