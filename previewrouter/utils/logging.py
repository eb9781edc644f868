"""JSON logging for the route_request lambda

`initialize_logging()` runs from `lambdas/route_request/__init__.py`, before
the handler module logs anything. Every record becomes one JSON line; fields
passed through `extra` are copied to the top level and exceptions are
rendered under `exception`.

Routing outcomes carry an `event` code:
    REWRITE_REDIRECT    preview request answered with a 302 to production
    REWRITE_DISPATCH    token verified, request dispatched to the preview host
    PASS_THROUGH        request forwarded unmodified
    TOKEN_REJECTED      token failed verification (`reason`, `error`)
    ALREADY_REWRITTEN   `x-rewrited` marker suppressed a redirect

Example line:
{
    "timestamp": "2025-10-15T12:00:00.000Z",
    "level": "INFO",
    "logger": "previewrouter.rewrite.inbound",
    "message": "Rejected hostname token. Passing request through.",
    "event": "TOKEN_REJECTED",
    "reason": "Token expired at 2025-10-15T11:00:00+00:00",
    "error": "ExpiredTokenError"
}

Tokens and the signing key are never passed as `extra` fields.
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from previewrouter.constants import ENV


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes LogRecord extras"""

    STANDARD_ATTRS = frozenset(
        {
            'args',
            'asctime',
            'created',
            'exc_info',
            'exc_text',
            'filename',
            'funcName',
            'levelname',
            'levelno',
            'lineno',
            'module',
            'msecs',
            'msg',
            'name',
            'pathname',
            'process',
            'processName',
            'relativeCreated',
            'stack_info',
            'thread',
            'threadName',
            'taskName',
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        # fmt: off
        timestamp = datetime.fromtimestamp(record.created, tz=UTC) \
                            .isoformat(timespec="milliseconds") \
                            .replace("+00:00", "Z")
        # fmt: on

        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        # Attach `extra` fields
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                log[key] = value

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        return json.dumps(log, default=str)


def initialize_logging() -> None:
    log_level = os.getenv(ENV.App.LOG_LEVEL, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'json': {
                    '()': JsonFormatter,
                }
            },
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {
                'level': log_level,
                'handlers': ['stdout'],
            },
        }
    )
