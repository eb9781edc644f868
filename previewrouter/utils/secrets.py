"""Signing key resolution

The shared HMAC key for hostname tokens lives in AWS Secrets Manager under
the name given by `SIGNING_KEY_SECRET`, as a JSON payload:

    {"signing_key": "..."}

When running locally (SAM / APP_ENV=local), a plain `SIGNING_KEY`
environment variable takes precedence; otherwise Secrets Manager is queried
(through LocalStack in local mode).

There is no fallback key. An empty or missing key is a configuration error
and must stop the process before the first request is routed.

Functions:
    load_signing_key(secrets_client: BaseClient | None = None) -> str
        Resolve the signing key.
"""

import os
import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from previewrouter.constants import ENV
from previewrouter.exceptions import BadConfigurationError, SecretsError
from previewrouter.types import SecretsManagerClient
from previewrouter.utils.helpers import require_environment
from previewrouter.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def load_signing_key(secrets_client: SecretsManagerClient | None = None) -> str:
    """Resolve the hostname token signing key

    Args:
        secrets_client (BaseClient | None):
            Optional boto3 Secrets Manager client to reuse (useful in tests).

    Returns:
        str: Non-empty signing key.

    Raises:
        MissingEnvironmentVariableError:
            If SIGNING_KEY_SECRET is needed but not set.
        SecretsError:
            If the secret payload is not a JSON object.
        BadConfigurationError:
            If the resolved key is missing or empty.
        botocore.exceptions.BotoCoreError / ClientError:
            On AWS Secrets Manager API failures.
    """
    if running_locally() and os.environ.get(ENV.Signing.KEY):
        logger.debug('Using signing key from local environment.')
        return os.environ[ENV.Signing.KEY]

    return _resolve_secret(secrets_client)


@require_environment(ENV.Signing.SECRET)
def _resolve_secret(secrets_client: SecretsManagerClient | None) -> str:
    secret_name = os.environ[ENV.Signing.SECRET]
    # fmt: off
    secrets_client_kwargs = {
        'endpoint_url': os.environ.get(ENV.LocalStack.ENDPOINT, 'http://localhost:4566'),
    } if running_locally() else {}
    # fmt: on
    sm = secrets_client or boto3.client('secretsmanager', **secrets_client_kwargs)

    try:
        raw = sm.get_secret_value(SecretId=secret_name).get('SecretString')
        payload = json.loads(raw or '{}')
    except (BotoCoreError, ClientError):
        raise
    except json.JSONDecodeError as e:
        raise SecretsError('Invalid JSON in signing key secret payload') from e

    if not isinstance(payload, dict):
        raise SecretsError('Signing key secret payload must be a JSON object')

    signing_key = payload.get('signing_key')
    if not isinstance(signing_key, str) or not signing_key:
        raise BadConfigurationError('Signing key secret must contain a non-empty "signing_key" field')

    logger.debug('Resolved signing key from Secrets Manager.', extra={'secretName': secret_name})
    return signing_key
