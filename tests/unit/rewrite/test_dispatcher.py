"""Unit tests for the rewrite protocol (dispatcher, outbound encoder, inbound decoder).

Test coverage includes:

1. Outbound encoder (preview stage)
   - Preview requests are redirected to the production hostname with a token.
   - Query strings and ports are preserved.

2. Re-entrancy guard (preview stage)
   - Requests carrying `x-rewrited: 1` are never redirected again.

3. Inbound decoder (production stage)
   - Valid tokens dispatch to the preview hostname with rewritten headers.
   - Expired, forged, empty and malformed tokens fall through to Continue.
   - Paths outside '/-/' fall through to Continue.

4. Round trip
   - A redirect issued by a preview deployment is dispatched back to it.
"""

from datetime import timedelta
from urllib.parse import urlsplit

import pytest
from freezegun import freeze_time

from previewrouter.models import Continue, Dispatch, HttpRequest, Redirect
from previewrouter.rewrite import HostnameTokenCodec, decode_rewrite, encode_redirect, route


def _token_of(url: str) -> str:
    return urlsplit(url).path.split('/')[2]


def _production_request(path: str, headers: dict | None = None) -> HttpRequest:
    return HttpRequest(
        method='GET',
        url=f'https://stable.example.app{path}',
        headers=headers or {'Host': 'stable.example.app', 'Accept': 'text/html'},
    )


@pytest.fixture
def valid_token(signing_key, now) -> str:
    return HostnameTokenCodec(signing_key).issue('preview-abc.example.app', now + timedelta(hours=1))


# -------------------------------
# 1. Outbound encoder
# -------------------------------


def test_route_redirects_preview_request(preview_request, preview_config, signing_key, now):
    """Scenario 1: preview request -> redirect to /-/<token>/api/hello?foo=bar on production."""
    decision = route(preview_request, preview_config, now=now)

    assert isinstance(decision, Redirect)
    assert decision.status_code == 302

    parts = urlsplit(decision.url)
    assert parts.scheme == 'https'
    assert parts.netloc == 'stable.example.app'
    assert parts.path == f'/-/{_token_of(decision.url)}/api/hello'
    assert parts.query == 'foo=bar'

    signed = HostnameTokenCodec(signing_key).verify(_token_of(decision.url), now=now)
    assert signed.hostname == 'preview-abc.example.app'
    assert signed.expires_at == now + timedelta(hours=1)


def test_encode_redirect_uses_configured_ttl(preview_request, preview_config, signing_key, now):
    config = preview_config.__class__(
        stage=preview_config.stage,
        production_hostname=preview_config.production_hostname,
        signing_key=signing_key,
        token_ttl=timedelta(minutes=5),
    )

    decision = encode_redirect(preview_request, config, now=now)

    signed = HostnameTokenCodec(signing_key).verify(_token_of(decision.url), now=now)
    assert signed.expires_at == now + timedelta(minutes=5)


@pytest.mark.parametrize(
    'url, expected_path, expected_query',
    [
        ('https://preview-abc.example.app/', '/', ''),
        ('https://preview-abc.example.app', '/', ''),
        ('https://preview-abc.example.app/a/b/c.html?x=1&x=2&y=%20', '/a/b/c.html', 'x=1&x=2&y=%20'),
        ('https://preview-abc.example.app/-/looks/like/a/token', '/-/looks/like/a/token', ''),
    ],
)
def test_encode_redirect_preserves_path_and_query(preview_config, now, url, expected_path, expected_query):
    decision = encode_redirect(HttpRequest('GET', url), preview_config, now=now)
    token = _token_of(decision.url)

    parts = urlsplit(decision.url)
    assert parts.path == f'/-/{token}{expected_path}'
    assert parts.query == expected_query


def test_encode_redirect_keeps_port(preview_config, signing_key, now):
    decision = encode_redirect(HttpRequest('GET', 'http://preview-abc.example.app:3000/x'), preview_config, now=now)

    assert urlsplit(decision.url).netloc == 'stable.example.app:3000'
    assert HostnameTokenCodec(signing_key).verify(_token_of(decision.url), now=now).hostname == 'preview-abc.example.app'


@freeze_time('2025-10-15 12:00:00')
def test_encode_redirect_defaults_to_current_time(preview_request, preview_config, signing_key):
    decision = encode_redirect(preview_request, preview_config)
    signed = HostnameTokenCodec(signing_key).verify(_token_of(decision.url))

    assert signed.expires_at.isoformat() == '2025-10-15T13:00:00+00:00'


# -------------------------------
# 2. Re-entrancy guard
# -------------------------------


@pytest.mark.parametrize(
    'path',
    ['/api/hello?foo=bar', '/', '/-/anything/x'],
)
@pytest.mark.parametrize('header_name', ['x-rewrited', 'X-Rewrited'])
def test_route_skips_already_rewritten_request(preview_config, now, path, header_name):
    request = HttpRequest('GET', f'https://preview-abc.example.app{path}', {header_name: '1'})

    assert route(request, preview_config, now=now) == Continue()


@pytest.mark.parametrize('value', ['0', 'true', '', 'yes'])
def test_route_redirects_when_marker_is_not_one(preview_config, now, value):
    request = HttpRequest('GET', 'https://preview-abc.example.app/', {'x-rewrited': value})

    assert isinstance(route(request, preview_config, now=now), Redirect)


# -------------------------------
# 3. Inbound decoder
# -------------------------------


def test_route_dispatches_valid_token(production_config, valid_token, now):
    """Scenario 2: production request with a valid token -> dispatch to the preview hostname."""
    request = _production_request(f'/-/{valid_token}/api/hello?foo=bar')

    decision = route(request, production_config, now=now + timedelta(minutes=1))

    assert isinstance(decision, Dispatch)
    assert decision.url == 'https://preview-abc.example.app/api/hello?foo=bar'
    assert decision.headers['host'] == 'preview-abc.example.app'
    assert decision.headers['x-forwarded-host'] == 'preview-abc.example.app'
    assert decision.headers['x-rewrited'] == '1'
    assert decision.headers['x-original-url'] == request.url
    assert decision.headers['accept'] == 'text/html'


@pytest.mark.parametrize(
    'rest, expected_path',
    [
        ('', '/'),
        ('/', '/'),
        ('/a//b/', '/a//b/'),
        ('/index.html', '/index.html'),
    ],
)
def test_decode_rewrite_strips_token_from_path(production_config, valid_token, now, rest, expected_path):
    decision = decode_rewrite(_production_request(f'/-/{valid_token}{rest}'), production_config, now=now)

    assert isinstance(decision, Dispatch)
    assert urlsplit(decision.url).path == expected_path


def test_route_passes_expired_token_through(production_config, valid_token, now):
    """Scenario 3: expired token -> Continue."""
    request = _production_request(f'/-/{valid_token}/x')

    assert route(request, production_config, now=now + timedelta(hours=1, seconds=1)) == Continue()


@pytest.mark.parametrize('path', ['/other/path', '/', '/api/-/x', '/-', '/favicon.ico'])
def test_route_passes_non_protocol_paths_through(production_config, now, path):
    """Scenario 4: paths outside '/-/' -> Continue."""
    assert route(_production_request(path), production_config, now=now) == Continue()


@pytest.mark.parametrize(
    'path',
    [
        '/-//api/hello',
        '/-/',
        '/-/not-a-token/x',
        '/-/a.b/x',
        '/-/static-assets/logo.png',
    ],
)
def test_route_passes_malformed_token_through(production_config, now, path):
    assert route(_production_request(path), production_config, now=now) == Continue()


def test_route_passes_forged_token_through(production_config, now):
    """Tokens signed with another key never reach an attacker-chosen host."""
    forged = HostnameTokenCodec('attacker-key').issue('169.254.169.254', now + timedelta(hours=1))

    assert route(_production_request(f'/-/{forged}/latest/meta-data'), production_config, now=now) == Continue()


def test_route_ignores_marker_in_production(production_config, valid_token, now):
    """The re-entrancy marker only matters outside production."""
    request = _production_request(f'/-/{valid_token}/x', headers={'x-rewrited': '1'})

    assert isinstance(route(request, production_config, now=now), Dispatch)


# -------------------------------
# 4. Round trip
# -------------------------------


@pytest.mark.parametrize(
    'hostname',
    ['preview-abc.example.app', 'feature-login-git-main.example.app', 'pr-1234.preview.example.app'],
)
def test_round_trip(preview_config, production_config, now, hostname):
    """Preview redirect followed by production dispatch lands on the original URL."""
    original = HttpRequest('GET', f'https://{hostname}/api/hello?foo=bar', {'Host': hostname})

    redirect = route(original, preview_config, now=now)
    followed = HttpRequest('GET', redirect.url, {'Host': 'stable.example.app'})
    dispatch = route(followed, production_config, now=now + timedelta(seconds=2))

    assert isinstance(dispatch, Dispatch)
    assert dispatch.url == original.url
    assert dispatch.headers['host'] == hostname

    # The dispatched request re-enters the preview deployment without another redirect
    reentered = HttpRequest('GET', dispatch.url, dispatch.headers)
    assert route(reentered, preview_config, now=now + timedelta(seconds=2)) == Continue()
