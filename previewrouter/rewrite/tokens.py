"""Signed hostname tokens

A token is a compact HS256 JWS over the claims `{"hostname", "exp"}`:

    <header>.<payload>.<signature>

Every token issued by this module carries the same header segment
(`{"alg":"HS256","typ":"JWT"}`), so the header is dropped from the wire
form embedded in URL paths and re-attached before verification:

    <payload>.<signature>

The header elision only shortens URLs. The signature still covers the full
header + payload, so hostname and expiry cannot be altered independently.

Classes:
    HostnameTokenCodec:
        Issue and verify signed hostname tokens for one signing key.

Functions:
    codec_for(signing_key: str) -> HostnameTokenCodec:
        Process-wide codec instance for a signing key.

Example:
    >>> from datetime import datetime, timedelta, UTC
    >>> codec = HostnameTokenCodec('s3cr3t')
    >>> token = codec.issue('preview-abc.example.app', datetime.now(UTC) + timedelta(hours=1))
    >>> codec.verify(token).hostname
    'preview-abc.example.app'
"""

import functools
from datetime import datetime, UTC

from beartype import beartype
from jose import jwt, JWTError
from jose.utils import base64url_decode, base64url_encode

from previewrouter.constants import TOKEN_ALGORITHM
from previewrouter.exceptions import (
    BadConfigurationError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
)
from previewrouter.models import SignedHostnameToken


def _require_canonical_segments(token: str) -> None:
    """Reject wire tokens whose segments are not canonical base64url

    Base64 decoding ignores the unused low bits of the last character, so
    several spellings decode to the same bytes. Only the spelling produced by
    `base64url_encode` is accepted.
    """
    segments = token.split('.')
    if len(segments) != 2:
        raise MalformedTokenError(f'Token must have 2 segments, got {len(segments)}')
    for segment in segments:
        try:
            encoded = segment.encode('ascii')
            canonical = base64url_encode(base64url_decode(encoded))
        except ValueError as e:
            raise MalformedTokenError('Token segment is not base64url') from e
        if canonical != encoded:
            raise MalformedTokenError('Token segment is not canonical base64url')


class HostnameTokenCodec:
    """Issue and verify signed hostname tokens

    Attributes:
        header_segment (str):
            The constant, base64url-encoded JWS header shared by every token.

    Methods:
        issue(hostname: str, expires_at: datetime) -> str:
            Sign a token and return its wire form (header elided).

        issue_full(hostname: str, expires_at: datetime) -> str:
            Sign a token and return the full three-part compact JWS.

        verify(token: str, now: datetime | None = None) -> SignedHostnameToken:
            Verify a wire-form token and return its claims.

    Args:
        signing_key (str):
            Shared HMAC key. Must be non-empty.

    Raises:
        BadConfigurationError:
            If the signing key is empty.
    """

    def __init__(self, signing_key: str):
        if not signing_key:
            raise BadConfigurationError('Refusing to sign hostname tokens with an empty key')
        self._key = signing_key
        self.header_segment = jwt.encode({}, self._key, algorithm=TOKEN_ALGORITHM).split('.')[0]

    @beartype
    def issue_full(self, hostname: str, expires_at: datetime) -> str:
        """Sign a hostname token and return the compact '<header>.<payload>.<signature>' JWS

        Args:
            hostname (str):
                Origin hostname to embed. Must be non-empty.
            expires_at (datetime):
                Absolute, timezone-aware expiry.

        Raises:
            ValueError:
                If the hostname is empty.
        """
        if not hostname:
            raise ValueError('Hostname must be a non-empty string')
        claims = {'hostname': hostname, 'exp': int(expires_at.timestamp())}
        return jwt.encode(claims, self._key, algorithm=TOKEN_ALGORITHM)

    @beartype
    def issue(self, hostname: str, expires_at: datetime) -> str:
        """Sign a hostname token and return it without its header segment

        Returns:
            str: '<payload>.<signature>'
        """
        return self.issue_full(hostname, expires_at).split('.', 1)[1]

    @beartype
    def verify(self, token: str, now: datetime | None = None) -> SignedHostnameToken:
        """Verify a hostname token against the signing key and the clock

        Steps:
            - Require two canonical base64url segments.
            - Re-attach the constant header to the wire token.
            - Decode the claims without trusting them (structure check).
            - Verify the HS256 signature.
            - Check the hostname claim and the expiry against `now`.

        Args:
            token (str):
                Wire form '<payload>.<signature>'.
            now (datetime | None):
                Verification time. Defaults to the current UTC time.

        Returns:
            SignedHostnameToken: The verified hostname and expiry.

        Raises:
            MalformedTokenError:
                Wrong segment count, non-canonical or undecodable segments, or bad claim types.
            InvalidSignatureError:
                Signature does not match the signing key.
            ExpiredTokenError:
                Expiry is not in the future.
        """
        now = now or datetime.now(UTC)
        _require_canonical_segments(token)
        compact = f'{self.header_segment}.{token}'

        try:
            unverified = jwt.get_unverified_claims(compact)
        except JWTError as e:
            raise MalformedTokenError(str(e)) from e

        hostname = unverified.get('hostname')
        exp = unverified.get('exp')
        if not isinstance(hostname, str) or not hostname:
            raise MalformedTokenError("Token is missing a non-empty 'hostname' claim")
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            raise MalformedTokenError("Token is missing a numeric 'exp' claim")

        # Expiry is checked below against the injected clock
        try:
            jwt.decode(compact, self._key, algorithms=[TOKEN_ALGORITHM], options={'verify_exp': False})
        except JWTError as e:
            raise InvalidSignatureError(str(e)) from e

        try:
            expires_at = datetime.fromtimestamp(exp, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedTokenError(f"Token 'exp' claim out of range: {exp!r}") from e

        signed = SignedHostnameToken(hostname=hostname, expires_at=expires_at)
        if signed.expired(now):
            raise ExpiredTokenError(f'Token expired at {signed.expires_at.isoformat()}')
        return signed


@functools.lru_cache(maxsize=4)
def codec_for(signing_key: str) -> HostnameTokenCodec:
    """Return a shared codec for `signing_key` (one per process and key)."""
    return HostnameTokenCodec(signing_key)
