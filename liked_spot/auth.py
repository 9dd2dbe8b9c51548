"""
Spotify authorization-code flow: consent URL and the one-shot code exchange.
The client secret stays on the server; browsers only ever see the token pair.
"""

import logging
import secrets

import requests
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from . import config_manager
from .errors import ConfigurationError, InvalidRequest, UpstreamAuthError
from .models import TokenPair

log = logging.getLogger(__name__)

SCOPE = (
    'user-library-read '
    'playlist-modify-public '
    'playlist-modify-private '
    'user-read-private'
)


def new_state():
    return secrets.token_urlsafe(16)


def build_oauth(state=None):
    """SpotifyOAuth bound to the configured app; tokens are never cached to disk."""
    client_id, client_secret = config_manager.get_spotify_credentials()
    if not client_id or not client_secret:
        raise ConfigurationError('Missing Spotify credentials')
    return SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=config_manager.get_redirect_uri(),
        scope=SCOPE,
        state=state,
        cache_handler=MemoryCacheHandler(),
        requests_timeout=config_manager.get_requests_timeout(),
        open_browser=False,
    )


def authorize_url(state):
    """Get the Spotify consent URL for this app."""
    return build_oauth(state).get_authorize_url(state=state)


def exchange_code(code):
    """Exchange an authorization code for a TokenPair. No retry, no caching."""
    if not code:
        raise InvalidRequest('No authorization code provided')
    oauth = build_oauth()
    try:
        token_info = oauth.get_access_token(code, as_dict=True, check_cache=False)
    except SpotifyOauthError as e:
        log.error(f'Token exchange failed: {e.error} {e.error_description}')
        raise UpstreamAuthError('Failed to exchange code for tokens') from e
    except requests.RequestException as e:
        log.error(f'Token exchange failed: {e}')
        raise UpstreamAuthError('Failed to exchange code for tokens') from e
    return TokenPair.from_token_info(token_info)
