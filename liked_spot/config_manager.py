"""
Configuration manager for Liked Spot.
Reads Spotify credentials and server settings from the environment (.env)
with a local config.json as fallback.
"""

import os
import json

from dotenv import load_dotenv

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

load_dotenv(os.path.join(_PROJECT_ROOT, '.env'))


# Prefer environment variables for secrets. This keeps keys out of git history.
ENV_MAP = {
    'spotify_client_id': 'SPOTIFY_CLIENT_ID',
    'spotify_client_secret': 'SPOTIFY_CLIENT_SECRET',
    'spotify_redirect_uri': 'SPOTIFY_REDIRECT_URI',
    'base_url': 'BASE_URL',
    'secret_key': 'FLASK_SECRET_KEY',
    'requests_timeout': 'SPOTIFY_REQUESTS_TIMEOUT',
}

DEFAULT_BASE_URL = 'http://127.0.0.1:5000'
DEFAULT_REQUESTS_TIMEOUT = 10

CONFIG_FILE = os.path.join(_PROJECT_ROOT, 'config.json')


def load_config():
    """Load configuration from config.json."""
    if os.path.exists(CONFIG_FILE):
        try:
            with open(CONFIG_FILE, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def get_config_value(key, default=None):
    """Get a single config value."""
    env_key = ENV_MAP.get(key)
    if env_key and os.environ.get(env_key):
        return os.environ.get(env_key)
    return load_config().get(key, default)


def is_configured():
    """Check if the Spotify client credentials are present."""
    return bool(get_config_value('spotify_client_id')
                and get_config_value('spotify_client_secret'))


def get_base_url():
    return (get_config_value('base_url') or DEFAULT_BASE_URL).rstrip('/')


def get_redirect_uri():
    """Redirect URI registered with Spotify; defaults to {BASE_URL}/callback."""
    return get_config_value('spotify_redirect_uri') or f'{get_base_url()}/callback'


def get_requests_timeout():
    value = get_config_value('requests_timeout', DEFAULT_REQUESTS_TIMEOUT)
    try:
        return float(value)
    except (TypeError, ValueError):
        return DEFAULT_REQUESTS_TIMEOUT


def get_spotify_credentials():
    """Return (client_id, client_secret); either may be None."""
    return (get_config_value('spotify_client_id'),
            get_config_value('spotify_client_secret'))
