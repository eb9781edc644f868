"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to access
configuration data stored in **AWS AppConfig**. Each environment (`APP_ENV`) has
a dedicated AppConfig *Environment* within the shared AppConfig *Application*
identified by `APP_NAME`. Configuration data is stored as a JSON document under
a configuration profile (typically `router-config`) and deployed to the
corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "configs": {
            "route_request": {
                "production_hostname": "stable.example.app",
                "token_ttl_seconds": 3600
            }
        }
    }

The deployment stage is not part of AppConfig: every deployment (production
or preview) declares its own stage through `DEPLOYMENT_STAGE`. The signing key
is resolved separately from Secrets Manager (see `utils/secrets.py`).

Typical usage inside a Lambda handler:
    >>> from previewrouter.utils.config import build_router_config
    >>> config = build_router_config('route_request')
    >>> config.production_hostname
    'stable.example.app'
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from datetime import timedelta
from collections.abc import Callable

import boto3

from previewrouter.constants import ENV, TTL
from previewrouter.exceptions import AppConfigError, BadConfigurationError
from previewrouter.models import RouterConfig, Stage
from previewrouter.types import AppConfig, AppConfigDataClient, LambdaConfiguration
from previewrouter.utils.helpers import require_environment
from previewrouter.utils.runtime import running_locally
from previewrouter.utils.secrets import load_signing_key


logger = logging.getLogger(__name__)


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


@require_environment(ENV.App.DEPLOYMENT_STAGE)
def deployment_stage() -> Stage:
    """Return the deployment stage declared by 'DEPLOYMENT_STAGE'

    No default stage is assumed.

    Raises:
        MissingEnvironmentVariableError: If DEPLOYMENT_STAGE is not set.
        BadConfigurationError: If DEPLOYMENT_STAGE is not a known stage.
    """
    return Stage.parse(os.environ[ENV.App.DEPLOYMENT_STAGE])


def _lambda_section(document: AppConfig, lambda_name: str) -> LambdaConfiguration:
    try:
        section = document['configs'][lambda_name]
    except (KeyError, TypeError) as e:
        raise AppConfigError(f'AppConfig document has no section for {lambda_name!r}') from e
    if not isinstance(section, dict):
        raise AppConfigError(f'AppConfig section for {lambda_name!r} must be a JSON object')
    return section


def _sam_load_local_appconfig(func: Callable) -> Callable:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM.

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local
          AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     : Base URL of the local AppConfig Agent (e.g., http://appconfig-agent:2772).
        APPCONFIG_PROFILE_NAME  : Optional profile name (default: "router-config").
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise BadConfigurationError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal', 'appconfig-agent'}:
            raise BadConfigurationError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise BadConfigurationError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(lambda_name: str) -> LambdaConfiguration:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(lambda_name)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'router-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            config = json.load(r)

        data = _lambda_section(config, lambda_name)
        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
        return data

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(lambda_name: str) -> LambdaConfiguration:
    """Load configuration for a given Lambda from AWS AppConfig.

    Fetches the AppConfig JSON once and returns the section relevant
    to the requested Lambda function (e.g., 'route_request').

    Environment variables required:
        APPCONFIG_APP_ID       : AppConfig Application ID
        APPCONFIG_ENV_ID       : AppConfig Environment ID
        APPCONFIG_PROFILE_ID   : AppConfig Configuration Profile ID

    Raises:
        MissingEnvironmentVariableError: If an AppConfig identifier is not set.
        AppConfigError: If the document is not JSON or lacks the lambda's section.
        botocore.exceptions.BotoCoreError / ClientError: On AppConfig API failures.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig: AppConfigDataClient = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    try:
        config: AppConfig = json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AppConfigError('AppConfig returned a non-JSON document') from e

    data = _lambda_section(config, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
    return data


def build_router_config(lambda_name: str) -> RouterConfig:
    """Assemble the process-wide RouterConfig

    Steps:
        - Read the deployment stage from `DEPLOYMENT_STAGE`.
        - Load the lambda's AppConfig section (production hostname, token TTL).
        - Resolve the signing key from Secrets Manager (or SIGNING_KEY locally).

    Args:
        lambda_name (str):
            AppConfig section name, e.g. 'route_request'.

    Returns:
        RouterConfig: Immutable router configuration.

    Raises:
        ConfigurationError: On a missing/invalid stage, hostname, TTL or signing key.
        InfrastructureError: On malformed AppConfig or Secrets Manager payloads.
    """
    stage = deployment_stage()
    app_config = load_config(lambda_name)

    production_hostname = app_config.get('production_hostname')
    if not isinstance(production_hostname, str):
        raise BadConfigurationError(f"'production_hostname' must be a string (given value: {production_hostname!r})")

    ttl_seconds = app_config.get('token_ttl_seconds', TTL.ONE_HOUR)
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        raise BadConfigurationError(f"'token_ttl_seconds' must be an integer (given value: {ttl_seconds!r})")

    config = RouterConfig(
        stage=stage,
        production_hostname=production_hostname.strip().lower(),
        signing_key=load_signing_key(),
        token_ttl=timedelta(seconds=ttl_seconds),
    )
    logger.debug(
        'Built router configuration.',
        extra={'stage': str(stage), 'productionHostname': config.production_hostname, 'tokenTtlSeconds': ttl_seconds},
    )
    return config
