"""Environment dispatcher: pick the inbound or outbound procedure."""

import logging
from datetime import datetime

from previewrouter.constants import ALREADY_REWRITTEN, REWRITTEN_MARKER, Header
from previewrouter.models import Continue, HttpRequest, RouterConfig, RoutingDecision
from previewrouter.rewrite.inbound import decode_rewrite
from previewrouter.rewrite.outbound import encode_redirect


logger = logging.getLogger(__name__)


def route(request: HttpRequest, config: RouterConfig, now: datetime | None = None) -> RoutingDecision:
    """Route one request according to the deployment stage

    - production: decode '/-/<token>/...' paths (inbound decoder)
    - any other stage, request already rewritten: pass through
    - any other stage: redirect to production (outbound encoder)

    NOTE: the `x-rewrited` marker is read from the same header set a client
          controls, so a client sending it skips the preview redirect.

    Args:
        request (HttpRequest):
            Incoming request.
        config (RouterConfig):
            Process-wide router configuration.
        now (datetime | None):
            Current time used for signing/verification. Defaults to UTC now.

    Returns:
        RoutingDecision: Continue, Redirect or Dispatch.
    """
    if config.stage.is_production:
        return decode_rewrite(request, config, now=now)

    if request.header(Header.REWRITTEN) == REWRITTEN_MARKER:
        logger.debug('Request was already rewritten. Passing request through.', extra={'event': ALREADY_REWRITTEN})
        return Continue()

    return encode_redirect(request, config, now=now)
