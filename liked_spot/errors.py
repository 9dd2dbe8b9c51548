"""
Error types shared by the Spotify client, the playlist writer and the routes.
Each carries the HTTP status the Flask layer answers with.
"""


class LikedSpotError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ConfigurationError(LikedSpotError):
    """Spotify client credentials are not configured."""
    status_code = 500


class InvalidRequest(LikedSpotError):
    """A required input (code, playlist name, selection) is missing."""
    status_code = 400


class NotAuthenticated(LikedSpotError):
    status_code = 401


class UpstreamAuthError(LikedSpotError):
    """The token endpoint rejected the authorization code."""
    status_code = 502


class UpstreamError(LikedSpotError):
    """A Spotify Web API call failed."""
    status_code = 502


class PartialResultWarning(UserWarning):
    """The library fetch stopped early; the snapshot is incomplete."""
