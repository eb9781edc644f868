"""Inbound decoder: production hostname -> preview hostname dispatch."""

import logging
from datetime import datetime, UTC
from urllib.parse import urlsplit

from previewrouter.constants import PASS_THROUGH, TOKEN_REJECTED
from previewrouter.exceptions import TokenError
from previewrouter.models import Continue, Dispatch, HttpRequest, RouterConfig
from previewrouter.rewrite.tokens import codec_for
from previewrouter.rewrite.urls import dispatch_headers, parse_rewrite_path, with_hostname


logger = logging.getLogger(__name__)


def decode_rewrite(request: HttpRequest, config: RouterConfig, now: datetime | None = None) -> Continue | Dispatch:
    """Dispatch a token-bearing production request to its preview hostname

    This decoder follows this procedure:
    - Step 1: Ignore paths outside the reserved '/-/' prefix
    - Step 2: Split the path into token and remaining path
    - Step 3: Verify signature and expiry of the token
    - Step 4: Build the target URL on the decoded hostname
    - Step 5: Mark the request headers as rewritten

    Every verification failure falls through to Continue: a forged,
    expired or unrelated '/-/...' path is routed like any other request.

    Args:
        request (HttpRequest):
            Request that arrived on the production hostname.
        config (RouterConfig):
            Router configuration (signing key).
        now (datetime | None):
            Verification time. Defaults to the current UTC time.

    Returns:
        Continue | Dispatch:
            Dispatch to the preview deployment, or Continue when the path
            carries no valid token.

    Example:
        >>> decode_rewrite(HttpRequest('GET', 'https://stable.example.app/other/path'), config)
        Continue()
    """
    now = now or datetime.now(UTC)

    # 1- Ignore paths outside the reserved prefix
    parsed = parse_rewrite_path(urlsplit(request.url).path)
    if parsed is None:
        logger.debug('Path is not part of the rewrite protocol.', extra={'event': PASS_THROUGH})
        return Continue()

    # 2- Split the path into token and remaining path
    token, rest = parsed
    if not token:
        logger.info('Rewrite path carries no token. Passing request through.', extra={'event': TOKEN_REJECTED, 'reason': 'empty token'})
        return Continue()

    # 3- Verify signature and expiry of the token
    try:
        signed = codec_for(config.signing_key).verify(token, now=now)
    except TokenError as error:
        logger.info(
            'Rejected hostname token. Passing request through.',
            extra={'event': TOKEN_REJECTED, 'reason': str(error), 'error': error.__class__.__name__},
        )
        return Continue()

    # 4- Build the target URL on the decoded hostname
    target_url = with_hostname(request.url, signed.hostname, path=rest)

    # 5- Mark the request headers as rewritten
    headers = dispatch_headers(request.headers, request.url, signed.hostname)
    return Dispatch(url=target_url, headers=headers)
