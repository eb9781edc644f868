"""Outbound encoder: preview hostname -> production hostname redirect."""

import logging
from datetime import datetime, UTC
from urllib.parse import urlsplit

from previewrouter.models import HttpRequest, Redirect, RouterConfig
from previewrouter.rewrite.tokens import codec_for
from previewrouter.rewrite.urls import request_hostname, rewrite_path, with_hostname


logger = logging.getLogger(__name__)


def encode_redirect(request: HttpRequest, config: RouterConfig, now: datetime | None = None) -> Redirect:
    """Redirect a preview request to the production hostname

    The preview hostname travels in the path as a signed, time-bounded token:

        https://preview-abc.example.app/api/hello?foo=bar
        -> https://stable.example.app/-/<token>/api/hello?foo=bar

    Args:
        request (HttpRequest):
            Request that arrived on a preview hostname.
        config (RouterConfig):
            Router configuration (production hostname, signing key, TTL).
        now (datetime | None):
            Issuance time. Defaults to the current UTC time.

    Returns:
        Redirect: 302 redirect to the production hostname.

    Raises:
        BadConfigurationError:
            If the signing key is unusable. Not a per-request condition.
    """
    now = now or datetime.now(UTC)
    hostname = request_hostname(request.url)
    expires_at = now + config.token_ttl

    token = codec_for(config.signing_key).issue(hostname, expires_at)
    location = with_hostname(request.url, config.production_hostname, path=rewrite_path(token, urlsplit(request.url).path))

    logger.debug('Issued hostname token.', extra={'hostname': hostname, 'expiresAt': expires_at.isoformat()})
    return Redirect(url=location)
