from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Signed hostname token lifetime (1 hour in seconds)
    ONE_HOUR = 3_600  # 60 * 60


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'
        DEPLOYMENT_STAGE = 'DEPLOYMENT_STAGE'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'

    class Signing(StrEnum):
        # Secrets Manager name holding JSON: {"signing_key": "..."}
        SECRET = 'SIGNING_KEY_SECRET'  # noqa: S105
        # Plain signing key, only honoured when running locally
        KEY = 'SIGNING_KEY'

    class LocalStack(StrEnum):
        ENDPOINT = 'LOCALSTACK_ENDPOINT'  # usually http://localstack:4566


class Header(StrEnum):
    """Request headers with a meaning in the rewrite protocol (lower-cased)."""

    REWRITTEN = 'x-rewrited'
    ORIGINAL_URL = 'x-original-url'
    FORWARDED_HOST = 'x-forwarded-host'
    FORWARDED_PROTO = 'x-forwarded-proto'
    HOST = 'host'
    COOKIE = 'cookie'


# Marker value of the re-entrancy header
REWRITTEN_MARKER = '1'

# Reserved path prefix carrying a signed hostname token: /-/<token>/<path...>
REWRITE_PATH_PREFIX = '/-/'

# JWS algorithm used to sign hostname tokens
TOKEN_ALGORITHM = 'HS256'

# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'

# Structured log events
REWRITE_REDIRECT = 'REWRITE_REDIRECT'
REWRITE_DISPATCH = 'REWRITE_DISPATCH'
PASS_THROUGH = 'PASS_THROUGH'
TOKEN_REJECTED = 'TOKEN_REJECTED'
ALREADY_REWRITTEN = 'ALREADY_REWRITTEN'
