"""
Spotify API client wrapper.
Handles the current-user lookup, the saved-tracks fetch and playlist writes
for one authenticated session.
"""

import logging

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from .errors import UpstreamError
from .models import LibrarySnapshot, UserProfile, track_from_saved_item

log = logging.getLogger(__name__)

# Largest page the saved-tracks endpoint serves.
SAVED_TRACKS_PAGE_SIZE = 50

SPOTIFY_ERRORS = (SpotifyException, requests.RequestException)


def describe_error(exc):
    if isinstance(exc, SpotifyException):
        return f'HTTP {exc.http_status}: {exc.msg}'
    return str(exc)


class SpotifyClient:
    def __init__(self, sp):
        self.sp = sp

    @classmethod
    def for_token(cls, access_token, requests_timeout=10):
        """Build a client bound to a bearer token. Retries are disabled."""
        sp = spotipy.Spotify(
            auth=access_token,
            requests_timeout=requests_timeout,
            retries=0,
            status_retries=0,
        )
        return cls(sp)

    def current_user(self):
        """Get the current user's profile."""
        try:
            u = self.sp.current_user()
        except SPOTIFY_ERRORS as e:
            log.error(f'Fetching current user failed: {describe_error(e)}')
            raise UpstreamError('Could not load your Spotify profile') from e
        return UserProfile.from_api(u or {})

    def fetch_library(self, on_progress=None):
        """
        Fetch every saved track, following ``next`` until Spotify reports none.

        A failed page ends the loop; whatever was fetched before it is kept and
        the snapshot is flagged incomplete. ``on_progress(fetched, total)`` is
        called after every page.
        """
        tracks = []
        pages = 0
        try:
            results = self.sp.current_user_saved_tracks(
                limit=SAVED_TRACKS_PAGE_SIZE)
            while results:
                pages += 1
                for item in results.get('items') or []:
                    track = track_from_saved_item(item)
                    if track is not None:
                        tracks.append(track)
                if on_progress:
                    on_progress(len(tracks), results.get('total') or len(tracks))
                if not results.get('next'):
                    break
                results = self.sp.next(results)
        except SPOTIFY_ERRORS as e:
            error = describe_error(e)
            log.warning(f'Saved tracks fetch stopped after {pages} page(s), '
                        f'{len(tracks)} tracks kept: {error}')
            return LibrarySnapshot(tuple(tracks), complete=False,
                                   pages_fetched=pages, error=error)

        log.info(f'Fetched {len(tracks)} saved tracks in {pages} page(s)')
        return LibrarySnapshot(tuple(tracks), complete=True, pages_fetched=pages)

    def create_playlist(self, user_id, name, description):
        """Create a new private playlist owned by ``user_id``."""
        try:
            playlist = self.sp.user_playlist_create(
                user_id, name, public=False, description=description)
        except SPOTIFY_ERRORS as e:
            log.error(f'Create playlist failed: {describe_error(e)}')
            raise UpstreamError('Failed to create playlist') from e
        return playlist

    def add_items(self, playlist_id, uris):
        """Add one batch (at most 100 URIs) to a playlist."""
        return self.sp.playlist_add_items(playlist_id, uris)
