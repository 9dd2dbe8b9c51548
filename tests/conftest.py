import os
import sys

import pytest

# Ensure project root is on sys.path so 'liked_spot' imports without installing
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support.fakes import FakeSpotify, make_pages


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Known credentials and no config.json from the developer's checkout."""
    from liked_spot import config_manager

    monkeypatch.setattr(config_manager, 'CONFIG_FILE', str(tmp_path / 'config.json'))
    monkeypatch.setenv('SPOTIFY_CLIENT_ID', 'test-client-id')
    monkeypatch.setenv('SPOTIFY_CLIENT_SECRET', 'test-client-secret')
    monkeypatch.setenv('BASE_URL', 'http://localhost:5000')
    monkeypatch.delenv('SPOTIFY_REDIRECT_URI', raising=False)
    yield


@pytest.fixture
def fake_spotify():
    return FakeSpotify(pages=make_pages(50, 50, 20))


@pytest.fixture
def app(monkeypatch, fake_spotify):
    from liked_spot.app import create_app
    from liked_spot.spotify_client import SpotifyClient

    monkeypatch.setattr(SpotifyClient, 'for_token',
                        classmethod(lambda cls, token, timeout=10: cls(fake_spotify)))
    application = create_app()
    application.config['TESTING'] = True
    application.extensions['progress'].clear()
    application.extensions['libraries'].clear()
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in_client(client):
    from liked_spot.session import SESSION_ID_KEY, TOKEN_KEY

    with client.session_transaction() as sess:
        sess[SESSION_ID_KEY] = 'sess-1'
        sess[TOKEN_KEY] = {'access_token': 'access', 'refresh_token': 'refresh',
                           'expires_in': 3600}
    return client
