"""
Create a playlist from a selection and fill it in batches.

Spotify accepts at most 100 items per add-items request. Batches go out one
after another in selection order; a failed batch is recorded and the next
one is still sent. Nothing is rolled back.
"""

import logging
from dataclasses import dataclass, field

from .errors import InvalidRequest
from .selection import restrict_to_library, selected_uris
from .spotify_client import SPOTIFY_ERRORS, describe_error

log = logging.getLogger(__name__)

MAX_ITEMS_PER_REQUEST = 100
MAX_NAME_LENGTH = 100

STATUS_SUCCESS = 'success'
STATUS_PARTIAL = 'partial'
STATUS_FAILURE = 'failure'


@dataclass(frozen=True)
class BatchOutcome:
    index: int
    size: int
    ok: bool
    error: str | None = None


@dataclass
class WriteResult:
    playlist_id: str
    playlist_url: str
    batches: list = field(default_factory=list)

    @property
    def tracks_added(self):
        return sum(b.size for b in self.batches if b.ok)

    @property
    def status(self):
        if all(b.ok for b in self.batches):
            return STATUS_SUCCESS
        if any(b.ok for b in self.batches):
            return STATUS_PARTIAL
        return STATUS_FAILURE

    def to_dict(self):
        return {
            'status': self.status,
            'playlist_id': self.playlist_id,
            'playlist_url': self.playlist_url,
            'tracks_added': self.tracks_added,
            'batches': [
                {'index': b.index, 'size': b.size, 'ok': b.ok, 'error': b.error}
                for b in self.batches
            ],
        }


def partition(uris, size=MAX_ITEMS_PER_REQUEST):
    """Split ``uris`` into consecutive chunks of at most ``size``."""
    return [uris[i:i + size] for i in range(0, len(uris), size)]


def playlist_description(count):
    return f'Created with Liked Spot from {count} liked songs'


def validate_draft(draft):
    name = (draft.name or '').strip()
    if not name:
        raise InvalidRequest('Playlist name is required')
    if not draft.track_ids:
        raise InvalidRequest('Select at least one song')
    return name[:MAX_NAME_LENGTH]


def create_playlist(client, user_id, draft, library):
    """
    Validate ``draft`` and create it as a private playlist.

    Returns ``(result, uris)`` where ``uris`` are the selected tracks' URIs in
    library order. Validation happens before any request; a failed create
    call raises UpstreamError.
    """
    name = validate_draft(draft)
    track_ids = restrict_to_library(draft.track_ids, library)
    uris = selected_uris(library, track_ids)
    if not uris:
        raise InvalidRequest('None of the selected songs are in your library')

    playlist = client.create_playlist(
        user_id, name, playlist_description(len(track_ids)))
    result = WriteResult(
        playlist_id=playlist['id'],
        playlist_url=(playlist.get('external_urls') or {}).get('spotify', ''),
    )
    return result, uris


def write_batches(client, result, uris, on_progress=None):
    """Add ``uris`` to ``result.playlist_id`` one batch at a time, recording each outcome."""
    batches = partition(uris)
    for index, batch in enumerate(batches):
        try:
            client.add_items(result.playlist_id, batch)
            outcome = BatchOutcome(index, len(batch), True)
        except SPOTIFY_ERRORS as e:
            log.warning(f'Batch {index + 1}/{len(batches)} for playlist '
                        f'{result.playlist_id} failed: {describe_error(e)}')
            outcome = BatchOutcome(index, len(batch), False, describe_error(e))
        result.batches.append(outcome)
        if on_progress:
            on_progress((index + 1) / len(batches))

    log.info(f'Playlist {result.playlist_id}: {result.tracks_added}/{len(uris)} '
             f'tracks added in {len(batches)} batch(es), status {result.status}')
    return result


def write_playlist(client, user_id, draft, library, on_progress=None):
    """Create ``draft`` and fill it. ``on_progress(fraction)`` follows the batches."""
    result, uris = create_playlist(client, user_id, draft, library)
    return write_batches(client, result, uris, on_progress)
