import logging

import pytest
import requests

from liked_spot.errors import UpstreamError
from liked_spot.spotify_client import SAVED_TRACKS_PAGE_SIZE, SpotifyClient
from tests.support.fakes import FakeSpotify, make_item, make_pages


@pytest.mark.unit
def test_three_pages_concatenate_in_order():
    sp = FakeSpotify(pages=make_pages(50, 50, 20))
    snapshot = SpotifyClient(sp).fetch_library()

    assert len(snapshot) == 120
    assert [t.id for t in snapshot] == [f't{i}' for i in range(120)]
    assert snapshot.complete is True
    assert snapshot.pages_fetched == 3
    assert sp.calls[0] == ('saved_tracks', SAVED_TRACKS_PAGE_SIZE)
    assert SAVED_TRACKS_PAGE_SIZE == 50


@pytest.mark.unit
def test_single_page_stops_without_next_call():
    sp = FakeSpotify(pages=make_pages(12))
    snapshot = SpotifyClient(sp).fetch_library()
    assert len(snapshot) == 12
    assert [c[0] for c in sp.calls] == ['saved_tracks']


@pytest.mark.unit
def test_empty_library():
    sp = FakeSpotify(pages=[{'items': [], 'total': 0, 'next': None}])
    snapshot = SpotifyClient(sp).fetch_library()
    assert len(snapshot) == 0
    assert snapshot.complete is True


@pytest.mark.unit
def test_failed_page_keeps_earlier_results_and_flags_partial(caplog):
    sp = FakeSpotify(pages=make_pages(50, 50, 20), fail_page=1)
    with caplog.at_level(logging.WARNING, logger='liked_spot.spotify_client'):
        snapshot = SpotifyClient(sp).fetch_library()

    assert len(snapshot) == 50
    assert snapshot.complete is False
    assert snapshot.pages_fetched == 1
    assert '502' in snapshot.error
    assert any('stopped after 1 page' in r.message for r in caplog.records)


@pytest.mark.unit
def test_transport_error_on_first_page_is_partial():
    class Broken(FakeSpotify):
        def current_user_saved_tracks(self, limit=20, offset=0, market=None):
            raise requests.ConnectionError('connection reset')

    snapshot = SpotifyClient(Broken()).fetch_library()
    assert len(snapshot) == 0
    assert snapshot.complete is False


@pytest.mark.unit
def test_items_without_track_are_skipped():
    page = {'items': [make_item(0), {'added_at': 'x', 'track': None}, make_item(1)],
            'total': 3, 'next': None}
    snapshot = SpotifyClient(FakeSpotify(pages=[page])).fetch_library()
    assert [t.id for t in snapshot] == ['t0', 't1']


@pytest.mark.unit
def test_progress_reports_each_page():
    seen = []
    SpotifyClient(FakeSpotify(pages=make_pages(50, 50, 20))).fetch_library(
        on_progress=lambda fetched, total: seen.append((fetched, total)))
    assert seen == [(50, 120), (100, 120), (120, 120)]


@pytest.mark.unit
def test_current_user_profile():
    user = SpotifyClient(FakeSpotify()).current_user()
    assert user.id == 'user-1'
    assert user.display_name == 'Test User'
    assert user.image_url == 'https://img/me.jpg'


@pytest.mark.unit
def test_current_user_failure_raises_upstream_error():
    with pytest.raises(UpstreamError):
        SpotifyClient(FakeSpotify(fail_user=True)).current_user()


@pytest.mark.unit
def test_create_playlist_is_private():
    sp = FakeSpotify()
    playlist = SpotifyClient(sp).create_playlist('user-1', 'Mix', 'desc')
    assert playlist['id'] == 'pl-1'
    assert sp.created == [{'user': 'user-1', 'name': 'Mix', 'public': False,
                           'description': 'desc'}]


@pytest.mark.unit
def test_create_playlist_failure_raises_upstream_error():
    with pytest.raises(UpstreamError):
        SpotifyClient(FakeSpotify(fail_create=True)).create_playlist('u', 'n', 'd')


@pytest.mark.unit
def test_local_files_are_left_out_of_the_snapshot():
    local = make_item(9, id=None, uri='spotify:local:a:b:c:1')
    page = {'items': [make_item(0), local, dict(local), make_item(1)],
            'total': 4, 'next': None}
    snapshot = SpotifyClient(FakeSpotify(pages=[page])).fetch_library()
    assert [t.id for t in snapshot] == ['t0', 't1']
    assert all(t.uri.startswith('spotify:track:') for t in snapshot)
