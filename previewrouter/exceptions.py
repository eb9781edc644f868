class PreviewRouterError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:preview_router_error'


class ConfigurationError(PreviewRouterError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError, KeyError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'


class InfrastructureError(PreviewRouterError):
    """Base exception for all infrastructure (AWS) errors."""

    error_code = 'infra:infrastructure_error'


class AppConfigError(InfrastructureError):
    """Raised when AppConfig responds with erroneous data."""

    error_code = 'infra:appconfig_error'


class SecretsError(InfrastructureError):
    """Raised when Secrets Manager responds with erroneous data."""

    error_code = 'infra:secrets_error'


class TokenError(PreviewRouterError):
    """Base exception for signed hostname token verification failures.

    Never propagated to clients: the inbound decoder treats every
    TokenError as "not a rewrite request" and lets the request through.
    """

    error_code = 'token:token_error'


class MalformedTokenError(TokenError):
    """Raised when a token cannot be decoded (segments, encoding, claims)."""

    error_code = 'token:malformed_token_error'


class InvalidSignatureError(TokenError):
    """Raised when a token's signature does not match the signing key."""

    error_code = 'token:invalid_signature_error'


class ExpiredTokenError(TokenError):
    """Raised when a token's expiry lies in the past."""

    error_code = 'token:expired_token_error'
