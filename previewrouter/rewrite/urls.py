"""URL and header rewriting helpers for the rewrite protocol.

Functions:
    request_hostname(url: str) -> str
        Hostname of an absolute URL (lower-cased, no port).
    with_hostname(url: str, hostname: str, path: str | None = None) -> str
        Swap the hostname (and optionally the path) of a URL, keeping scheme, port and query.
    rewrite_path(token: str, path: str) -> str
        Build '/-/<token>/<path>' from a wire token and an original path.
    parse_rewrite_path(path: str) -> tuple[str, str] | None
        Split '/-/<token>/<rest...>' into (token, '/<rest...>').
    dispatch_headers(headers, original_url, hostname) -> dict[str, str]
        Header set for an internal dispatch to `hostname`.
"""

from urllib.parse import urlsplit, urlunsplit

from previewrouter.constants import REWRITE_PATH_PREFIX, REWRITTEN_MARKER, Header
from previewrouter.types import Headers


def request_hostname(url: str) -> str:
    """Hostname of an absolute URL, lower-cased and without its port."""
    return urlsplit(url).hostname or ''


def with_hostname(url: str, hostname: str, path: str | None = None) -> str:
    """Return `url` addressed to `hostname`

    The scheme, port and query string are kept byte-for-byte; credentials
    and fragments are dropped.

    Example:
        >>> with_hostname('https://a.example.app:8443/x?y=1', 'b.example.app', path='/z')
        'https://b.example.app:8443/z?y=1'
    """
    parts = urlsplit(url)
    host = f'[{hostname}]' if ':' in hostname else hostname
    netloc = host if parts.port is None else f'{host}:{parts.port}'
    return urlunsplit((parts.scheme, netloc, parts.path if path is None else path, parts.query, ''))


def rewrite_path(token: str, path: str) -> str:
    """Embed a wire token in front of an original path

    Example:
        >>> rewrite_path('eyJ.sig', '/api/hello')
        '/-/eyJ.sig/api/hello'
    """
    return f'{REWRITE_PATH_PREFIX}{token}/{path.removeprefix("/")}'


def parse_rewrite_path(path: str) -> tuple[str, str] | None:
    """Split a token-bearing path into its token and the remaining path

    Returns:
        tuple[str, str] | None:
            (token, '/<rest>') for paths under the reserved prefix,
            None for every other path. The token may be empty.

    Example:
        >>> parse_rewrite_path('/-/eyJ.sig/api/hello')
        ('eyJ.sig', '/api/hello')
        >>> parse_rewrite_path('/-/eyJ.sig') is None
        False
        >>> parse_rewrite_path('/other/path') is None
        True
    """
    if not path.startswith(REWRITE_PATH_PREFIX):
        return None
    token, _, rest = path.removeprefix(REWRITE_PATH_PREFIX).partition('/')
    return token, f'/{rest}'


def dispatch_headers(headers: Headers, original_url: str, hostname: str) -> dict[str, str]:
    """Copy request headers and mark them for an internal dispatch to `hostname`"""
    rewritten = {name.lower(): value for name, value in headers.items()}
    rewritten[Header.ORIGINAL_URL] = original_url
    rewritten[Header.REWRITTEN] = REWRITTEN_MARKER
    rewritten[Header.HOST] = hostname
    rewritten[Header.FORWARDED_HOST] = hostname
    return rewritten
