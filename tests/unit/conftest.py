from datetime import datetime, timedelta, UTC

import pytest

from previewrouter.models import HttpRequest, RouterConfig, Stage


PRODUCTION_HOSTNAME = 'stable.example.app'
PREVIEW_HOSTNAME = 'preview-abc.example.app'


@pytest.fixture
def signing_key() -> str:
    return 'unit-test-signing-key'


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def production_config(signing_key: str) -> RouterConfig:
    return RouterConfig(
        stage=Stage.PRODUCTION,
        production_hostname=PRODUCTION_HOSTNAME,
        signing_key=signing_key,
        token_ttl=timedelta(hours=1),
    )


@pytest.fixture
def preview_config(signing_key: str) -> RouterConfig:
    return RouterConfig(
        stage=Stage.PREVIEW,
        production_hostname=PRODUCTION_HOSTNAME,
        signing_key=signing_key,
        token_ttl=timedelta(hours=1),
    )


@pytest.fixture
def preview_request() -> HttpRequest:
    return HttpRequest(
        method='GET',
        url=f'https://{PREVIEW_HOSTNAME}/api/hello?foo=bar',
        headers={'Host': PREVIEW_HOSTNAME, 'Accept': 'application/json'},
    )
