"""Signed-hostname rewrite middleware for preview and production deployments."""

from previewrouter.models import Continue, Dispatch, HttpRequest, Redirect, RouterConfig, Stage
from previewrouter.rewrite import route


__all__ = [
    'route',
    'Continue',
    'Dispatch',
    'Redirect',
    'HttpRequest',
    'RouterConfig',
    'Stage',
]
