"""
Per-browser session context.

The token pair lives in the signed Flask session cookie. A SessionContext is
created after a successful code exchange and destroyed on logout; routes that
talk to Spotify get one explicitly instead of reading the cookie themselves.
"""

import uuid

from .errors import NotAuthenticated
from .models import TokenPair
from .spotify_client import SpotifyClient

TOKEN_KEY = 'spotify_token'
SESSION_ID_KEY = 'session_id'
STATE_KEY = 'oauth_state'


class SessionContext:
    def __init__(self, session_id, tokens, requests_timeout=10):
        self.session_id = session_id
        self.tokens = tokens
        self.requests_timeout = requests_timeout
        self._client = None

    @classmethod
    def create(cls, store, tokens, requests_timeout=10):
        """Persist ``tokens`` into ``store`` (a Flask session) and return the context."""
        store[SESSION_ID_KEY] = uuid.uuid4().hex
        store[TOKEN_KEY] = tokens.to_dict()
        return cls(store[SESSION_ID_KEY], tokens, requests_timeout)

    @classmethod
    def load(cls, store, requests_timeout=10):
        """Return the context stored in ``store`` or None."""
        data = store.get(TOKEN_KEY)
        if not data or not data.get('access_token'):
            return None
        tokens = TokenPair.from_token_info(data)
        return cls(store.get(SESSION_ID_KEY, ''), tokens, requests_timeout)

    @classmethod
    def require(cls, store, requests_timeout=10):
        ctx = cls.load(store, requests_timeout)
        if ctx is None:
            raise NotAuthenticated('Not authenticated')
        return ctx

    @staticmethod
    def destroy(store):
        store.pop(TOKEN_KEY, None)
        store.pop(SESSION_ID_KEY, None)
        store.pop(STATE_KEY, None)

    @property
    def client(self):
        if self._client is None:
            self._client = SpotifyClient.for_token(
                self.tokens.access_token, self.requests_timeout)
        return self._client
