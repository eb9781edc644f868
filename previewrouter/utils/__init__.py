from previewrouter.utils.config import app_env, app_name, deployment_stage, load_config, build_router_config
from previewrouter.utils.helpers import request_from_event, require_environment, guarantee_500_response
from previewrouter.utils.secrets import load_signing_key
from previewrouter.utils.logging import initialize_logging


__all__ = [
    'app_env',
    'app_name',
    'deployment_stage',
    'load_config',
    'build_router_config',
    'request_from_event',
    'require_environment',
    'guarantee_500_response',
    'load_signing_key',
    'initialize_logging',
]
