"""Helper utilities for AWS lambda functions.

Functions:
    request_from_event() -> HttpRequest
        Build the router's request model from an API Gateway proxy event
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(func) -> Callable
        Decorator: Turn unhandled handler errors into a 500 response

Example:
    Typical usage inside a Lambda handler:

        >>> from previewrouter.utils.helpers import request_from_event
        >>> event = {
        ...     "httpMethod": "GET",
        ...     "path": "/api/hello",
        ...     "headers": {"Host": "preview-abc.example.app"},
        ...     "queryStringParameters": {"foo": "bar"},
        ... }
        >>> request_from_event(event).url
        'https://preview-abc.example.app/api/hello?foo=bar'
"""

import os
import json
import logging
import functools
from typing import Any
from collections.abc import Callable
from urllib.parse import urlencode, urlunsplit

from previewrouter.constants import Header, UNKNOWN_INTERNAL_SERVER_ERROR
from previewrouter.exceptions import MissingEnvironmentVariableError
from previewrouter.models import HttpRequest
from previewrouter.types import LambdaEvent
from previewrouter.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def _query_string(event: LambdaEvent) -> str:
    # HTTP API (v2) events carry the raw query string; REST (v1) events only the parsed form
    if 'rawQueryString' in event:
        return event['rawQueryString'] or ''
    if event.get('multiValueQueryStringParameters'):
        return urlencode(event['multiValueQueryStringParameters'], doseq=True)
    return urlencode(event.get('queryStringParameters') or {})


def _headers(event: LambdaEvent) -> dict[str, str]:
    # REST (v1) events repeat headers under multiValueHeaders; HTTP API (v2) events move cookies to event['cookies']
    headers = {name.lower(): value for name, value in (event.get('headers') or {}).items()}
    for name, values in (event.get('multiValueHeaders') or {}).items():
        if values:
            separator = '; ' if name.lower() == Header.COOKIE else ', '
            headers[name.lower()] = separator.join(values)
    if event.get('cookies'):
        headers[Header.COOKIE] = '; '.join(event['cookies'])
    return headers


def request_from_event(event: LambdaEvent) -> HttpRequest:
    """Build an HttpRequest from an API Gateway proxy event

    Works with both REST API (payload v1) and HTTP API (payload v2) events.
    Repeated REST headers are joined and HTTP API cookies are restored as a
    `cookie` header. The host comes from the `Host` header, falling back to the request
    context's domain name; the scheme from `X-Forwarded-Proto` (https by default).

    Args:
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        HttpRequest: method, absolute URL and lower-cased headers
    """
    headers = _headers(event)
    request_context = event.get('requestContext', {})

    host = headers.get(Header.HOST) or request_context.get('domainName') or 'localhost'
    scheme = headers.get(Header.FORWARDED_PROTO, 'https').split(',')[0].strip()
    path = event.get('rawPath') or event.get('path') or '/'
    method = event.get('httpMethod') or request_context.get('http', {}).get('method', 'GET')

    url = urlunsplit((scheme, host, path, _query_string(event), ''))
    return HttpRequest(method=method, url=url, headers=headers)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('DEPLOYMENT_STAGE')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'DEPLOYMENT_STAGE'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(func: Callable) -> Callable:
    """Decorator: respond with 500 when a lambda handler raises

    Configuration and infrastructure failures are fatal for the invocation;
    they must surface as a plain 500 instead of a Lambda runtime error.
    When running locally, the original exception is reraised for debugging.
    """

    @functools.wraps(func)
    def wrapper(event: LambdaEvent, context: Any) -> dict:
        try:
            return func(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled error in lambda handler. Responding with 500.', extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR})
            return {
                'statusCode': 500,
                'body': json.dumps({'message': 'Internal Server Error', 'error_code': UNKNOWN_INTERNAL_SERVER_ERROR}),
            }

    return wrapper
