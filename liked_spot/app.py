"""
Liked Spot — Flask Backend
Serves the pages and the JSON API for turning liked songs into playlists.

Flow:
- /api/auth/login → Spotify consent → /callback exchanges the code server-side
  and stores the token pair in the session cookie.
- /api/library runs fetch-user → fetch-library and keeps the snapshot in
  process memory for this session.
- /api/playlists runs create-playlist → write-batches from the selection.
- /api/progress returns the latest stage report so pages can show progress.
"""

import os
import logging
from flask import Flask, request, jsonify, session, render_template
from werkzeug.exceptions import HTTPException

from . import auth, config_manager
from .errors import LikedSpotError, InvalidRequest, PartialResultWarning
from .models import PlaylistDraft
from .pipeline import (TaskPipeline, SessionStore, DONE, FETCH_USER, FETCH_LIBRARY,
                       CREATE_PLAYLIST, WRITE_BATCHES)
from .playlist_writer import create_playlist, validate_draft, write_batches
from .selection import filter_tracks, library_stats
from .session import SessionContext, STATE_KEY

logging.basicConfig(level=logging.INFO)
log = logging.getLogger(__name__)

AUTH_FAILED_REDIRECT_SECONDS = 3
AUTH_OK_REDIRECT_SECONDS = 1

app = Flask(__name__, static_folder='static', static_url_path='')
app.secret_key = config_manager.get_config_value('secret_key') or os.urandom(24)

# Per-session state kept in memory only: latest pipeline report and the last
# fetched {user, library}.
app.extensions['progress'] = SessionStore()
app.extensions['libraries'] = SessionStore()


def _progress():
    return app.extensions['progress']


def _libraries():
    return app.extensions['libraries']


def _context():
    return SessionContext.require(session, config_manager.get_requests_timeout())


@app.errorhandler(LikedSpotError)
def handle_liked_spot_error(e):
    return jsonify({'error': e.message}), e.status_code


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    log.error(f'Unhandled error on {request.path}: {e!r}')
    return jsonify({'error': 'Internal server error'}), 500


@app.route('/')
def index():
    return app.send_static_file('index.html')


@app.route('/auth')
def auth_page():
    return app.send_static_file('auth.html')


@app.route('/dashboard')
def dashboard_page():
    return app.send_static_file('dashboard.html')


@app.route('/api/status')
def api_status():
    """Check if app is configured and user is authenticated."""
    ctx = SessionContext.load(session, config_manager.get_requests_timeout())
    user = None
    if ctx:
        cached = _libraries().get(ctx.session_id)
        if cached:
            user = cached['user']
        else:
            try:
                user = ctx.client.current_user()
            except LikedSpotError as e:
                log.warning(f'Auth check failed: {e.message}')
    return jsonify({
        'configured': config_manager.is_configured(),
        'authenticated': ctx is not None,
        'user': user.to_dict() if user else None,
    })


@app.route('/api/auth/login')
def api_login():
    """Get Spotify authorization URL."""
    state = auth.new_state()
    url = auth.authorize_url(state)
    session[STATE_KEY] = state
    return jsonify({'auth_url': url})


def _callback_page(message, ok):
    delay = AUTH_OK_REDIRECT_SECONDS if ok else AUTH_FAILED_REDIRECT_SECONDS
    target = '/dashboard' if ok else '/auth'
    return render_template('callback.html', message=message, delay=delay,
                           target=target, ok=ok), 200 if ok else 400


@app.route('/callback')
def callback():
    """Handle Spotify OAuth callback."""
    code = request.args.get('code')
    error = request.args.get('error')
    expected_state = session.pop(STATE_KEY, None)
    if error:
        log.warning(f'Spotify authorization denied: {error}')
        return _callback_page('Authentication failed. Please try again.', False)
    if not code:
        return _callback_page('No authorization code received.', False)
    if expected_state and request.args.get('state') != expected_state:
        log.warning('OAuth state mismatch on callback')
        return _callback_page('Authentication failed. Please try again.', False)
    try:
        tokens = auth.exchange_code(code)
    except LikedSpotError as e:
        log.error(f'OAuth callback error: {e.message}')
        return _callback_page('Authentication failed. Please try again.', False)
    previous = SessionContext.load(session)
    if previous:
        _libraries().discard(previous.session_id)
        _progress().discard(previous.session_id)
    SessionContext.create(session, tokens, config_manager.get_requests_timeout())
    return _callback_page('Success! Redirecting to dashboard...', True)


@app.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """Destroy the session context and anything kept for it."""
    ctx = SessionContext.load(session)
    if ctx:
        _libraries().discard(ctx.session_id)
        _progress().discard(ctx.session_id)
    SessionContext.destroy(session)
    return jsonify({'success': True})


def _load_library(ctx, pipeline):
    user = pipeline.run_stage(FETCH_USER, lambda report: ctx.client.current_user())

    def fetch(report):
        return ctx.client.fetch_library(
            on_progress=lambda fetched, total: report(fetched / total if total else 1.0))

    snapshot = pipeline.run_stage(FETCH_LIBRARY, fetch)
    if not snapshot.complete:
        pipeline.update(FETCH_LIBRARY, detail=snapshot.error)
    cached = {'user': user, 'library': snapshot}
    _libraries().put(ctx.session_id, cached)
    return cached


@app.route('/api/library')
def api_library():
    """Fetch the saved-tracks library; ``q`` filters the returned view."""
    ctx = _context()
    refresh = request.args.get('refresh', '1').lower() in ('1', 'true')
    cached = None if refresh else _libraries().get(ctx.session_id)
    if cached is None:
        pipeline = TaskPipeline('load-library', [FETCH_USER, FETCH_LIBRARY],
                                _progress().publisher(ctx.session_id))
        cached = _load_library(ctx, pipeline)

    library = cached['library']
    filtered = filter_tracks(library, request.args.get('q', ''))
    payload = {
        'user': cached['user'].to_dict(),
        'tracks': [t.to_dict() for t in filtered],
        'stats': library_stats(library, filtered, frozenset()),
        'partial': not library.complete,
        'warning': None,
    }
    if not library.complete:
        warning = PartialResultWarning(
            f'Only {len(library)} liked songs could be loaded; the library is incomplete.')
        log.warning(f'{warning} ({library.error})')
        payload['warning'] = str(warning)
    return jsonify(payload)


@app.route('/api/playlists', methods=['POST'])
def api_create_playlist():
    """Create a private playlist from the selected track ids."""
    ctx = _context()
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise InvalidRequest('Expected a JSON object')
    name = data.get('name') or ''
    if not isinstance(name, str):
        raise InvalidRequest('name must be a string')
    track_ids = data.get('track_ids') or []
    if not isinstance(track_ids, list) or not all(isinstance(i, str) for i in track_ids):
        raise InvalidRequest('track_ids must be a list of strings')
    draft = PlaylistDraft(name=name, track_ids=frozenset(track_ids))
    validate_draft(draft)

    pipeline = TaskPipeline('create-playlist',
                            [FETCH_USER, FETCH_LIBRARY, CREATE_PLAYLIST, WRITE_BATCHES],
                            _progress().publisher(ctx.session_id))
    cached = _libraries().get(ctx.session_id)
    if cached is None:
        cached = _load_library(ctx, pipeline)
    else:
        pipeline.update(FETCH_USER, status=DONE, progress=1.0)
        pipeline.update(FETCH_LIBRARY, status=DONE, progress=1.0)

    result, uris = pipeline.run_stage(
        CREATE_PLAYLIST,
        lambda report: create_playlist(ctx.client, cached['user'].id, draft,
                                       cached['library']))
    pipeline.run_stage(
        WRITE_BATCHES,
        lambda report: write_batches(ctx.client, result, uris, on_progress=report))

    body = result.to_dict()
    body['success'] = result.status != 'failure'
    body['name'] = draft.name.strip()
    return jsonify(body), 200 if body['success'] else 502


@app.route('/api/progress')
def api_progress():
    ctx = _context()
    return jsonify({'progress': _progress().get(ctx.session_id)})


def create_app():
    """Application factory for external runners."""
    return app
