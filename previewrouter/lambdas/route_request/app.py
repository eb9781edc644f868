import json
import logging
import functools

from previewrouter.constants import PASS_THROUGH, REWRITE_DISPATCH, REWRITE_REDIRECT
from previewrouter.models import Dispatch, Redirect, RouterConfig
from previewrouter.rewrite import route
from previewrouter.types import LambdaContext, LambdaEvent, LambdaResponse
from previewrouter.utils import build_router_config, request_from_event
from previewrouter.utils.helpers import guarantee_500_response


logger = logging.getLogger(__name__)


LAMBDA_NAME = 'route_request'


@functools.cache
def router_config() -> RouterConfig:
    """Build the router configuration once per Lambda execution environment."""
    return build_router_config(LAMBDA_NAME)


def response_continue() -> LambdaResponse:
    return {'action': 'continue'}


def response_302(*, location: str, status_code: int = 302) -> LambdaResponse:
    return {
        'action': 'redirect',
        'statusCode': status_code,
        'headers': {
            'Location': location,
            'Cache-Control': 'no-store',
        },
        'body': json.dumps({}),  # no body needed for redirects
    }


def response_dispatch(*, url: str, headers: dict[str, str]) -> LambdaResponse:
    return {
        'action': 'dispatch',
        'url': url,
        'headers': dict(headers),
    }


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Route an incoming API Gateway request between preview and production

    This Lambda handler follows this procedure:
    - Step 1: Load the process-wide router configuration (cached)
    - Step 2: Build the request model from the API Gateway event
    - Step 3: Route the request (redirect, dispatch or pass through)
    - Step 4: Serialize the routing decision for the platform

    Routing responses:
        continue:
            action: continue (forward the request unmodified)
        302: Redirect a preview request to the production hostname
            headers:
                Location: https://<production host>/-/<token>/<path>?<query>
        dispatch:
            action: dispatch
            url: internal target URL on the preview hostname
            headers: replacement request headers (x-rewrited, host, ...)
        500: Internal server error
            message: router is misconfigured (stage, AppConfig, signing key)

    Args:
        event (dict):
            API Gateway proxy event (REST v1 or HTTP API v2).
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict: Routing directive; redirects are valid API Gateway responses.

    Example:
        >>> event = {'path': '/api/hello', 'headers': {'Host': 'preview-abc.example.app'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
    """
    # 1- Load the process-wide router configuration
    config = router_config()

    # 2- Build the request model from the API Gateway event
    request = request_from_event(event)

    # 3- Route the request
    decision = route(request, config)

    # 4- Serialize the routing decision
    if isinstance(decision, Redirect):
        logger.info(
            'Redirecting preview request to production hostname. Responding with %s.',
            decision.status_code,
            extra={'event': REWRITE_REDIRECT, 'stage': str(config.stage)},
        )
        return response_302(location=decision.url, status_code=decision.status_code)

    if isinstance(decision, Dispatch):
        logger.info(
            'Dispatching request to preview deployment.',
            extra={'event': REWRITE_DISPATCH, 'targetUrl': decision.url},
        )
        return response_dispatch(url=decision.url, headers=dict(decision.headers))

    logger.debug('Passing request through.', extra={'event': PASS_THROUGH, 'stage': str(config.stage)})
    return response_continue()
