"""
Plain data types passed between the Spotify client, the selection helpers
and the playlist writer.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_token_info(cls, token_info):
        return cls(
            access_token=token_info.get('access_token', ''),
            refresh_token=token_info.get('refresh_token', ''),
            expires_in=int(token_info.get('expires_in') or 0),
        )

    def to_dict(self):
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expires_in': self.expires_in,
        }


@dataclass(frozen=True)
class UserProfile:
    id: str
    display_name: str
    image_url: str | None = None

    @classmethod
    def from_api(cls, u):
        images = u.get('images') or []
        return cls(
            id=u.get('id', ''),
            display_name=u.get('display_name') or u.get('id', ''),
            image_url=images[0].get('url') if images else None,
        )

    def to_dict(self):
        return {'id': self.id, 'display_name': self.display_name,
                'image': self.image_url}


@dataclass(frozen=True)
class Track:
    id: str
    title: str
    artist_names: tuple = ()
    album_name: str = ''
    album_art_url: str | None = None
    added_at: str = ''
    uri: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.title,
            'artists': list(self.artist_names),
            'album': self.album_name,
            'album_art': self.album_art_url,
            'added_at': self.added_at,
            'uri': self.uri,
        }


def track_from_saved_item(item):
    """Project a saved-tracks item ({added_at, track}) into a Track.

    Returns None when the item carries no track object or the track has no id
    (local files), since selection and playlist writes key on the id.
    """
    if not item:
        return None
    t = item.get('track')
    if not t or not t.get('id'):
        return None
    album = t.get('album') or {}
    album_images = album.get('images') or []
    artists = t.get('artists') or []
    return Track(
        id=t['id'],
        title=t.get('name') or '',
        artist_names=tuple(a.get('name') or '' for a in artists if a),
        album_name=album.get('name') or '',
        album_art_url=album_images[0].get('url') if album_images else None,
        added_at=item.get('added_at') or '',
        uri=t.get('uri') or '',
    )


@dataclass(frozen=True)
class LibrarySnapshot:
    """Saved tracks in the order the API paged them out.

    ``complete`` is False when a page request failed and the loop stopped
    early; ``tracks`` then holds everything fetched before the failure.
    """
    tracks: tuple = ()
    complete: bool = True
    pages_fetched: int = 0
    error: str | None = None

    def __len__(self):
        return len(self.tracks)

    def __iter__(self):
        return iter(self.tracks)

    def ids(self):
        return {t.id for t in self.tracks}


@dataclass
class PlaylistDraft:
    name: str
    track_ids: frozenset = field(default_factory=frozenset)
