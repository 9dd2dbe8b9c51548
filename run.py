import webbrowser
from threading import Timer

from liked_spot.app import app
from liked_spot.config_manager import get_base_url


def open_browser():
    """Opens the browser after a 1.5s delay to allow the server to start."""
    webbrowser.open_new(get_base_url())


if __name__ == '__main__':
    print('Starting Liked Spot...')

    # 1. Schedule the browser to open in 1.5 seconds
    Timer(1.5, open_browser).start()

    # 2. Start the server (This blocks execution until you press Ctrl+C)
    app.run(host='127.0.0.1', port=5000, debug=True)
