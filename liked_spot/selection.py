"""
Client-side search and selection over a fetched library.
All functions are pure: they never mutate their inputs and never touch the network.
"""


def _matches(track, needle):
    if needle in track.title.lower():
        return True
    if any(needle in name.lower() for name in track.artist_names):
        return True
    return needle in track.album_name.lower()


def filter_tracks(library, query):
    """Tracks whose title, any artist or album contains ``query`` (case-insensitive).

    The result keeps library order. An empty query returns every track.
    """
    tracks = list(library)
    needle = (query or '').lower()
    if not needle:
        return tracks
    return [t for t in tracks if _matches(t, needle)]


def toggle_selection(selection, track_id):
    """Return a new selection with ``track_id`` added if absent, removed if present."""
    if track_id in selection:
        return frozenset(selection - {track_id})
    return frozenset(selection | {track_id})


def select_all_filtered(filtered):
    """Replace the selection with every id in the filtered view."""
    return frozenset(t.id for t in filtered)


def clear_selection():
    return frozenset()


def restrict_to_library(selection, library):
    """Drop ids that are not part of the current library."""
    return frozenset(selection) & library.ids()


def selected_uris(library, selection):
    """URIs of the selected tracks, in library order, skipping tracks without one."""
    return [t.uri for t in library if t.id in selection and t.uri]


def library_stats(library, filtered, selection):
    return {
        'total': len(library),
        'filtered': len(filtered),
        'selected': len(selection),
    }
