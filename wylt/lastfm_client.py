import logging
import time

import pylast

from wylt.state import Track
from wylt.targets import (
    AuthError, InvalidTrackError, NetworkError, RateLimitError,
    UnknownSubmissionError, submission_delay,
)

log = logging.getLogger("lastfm")

# Last.fm error codes
_AUTH_CODES = ("4", "9", "14")   # 4=Auth failed, 9=Invalid session, 14=Token expired
_RATE_LIMIT_CODES = ("29",)      # 29=Rate limit exceeded
_INVALID_CODES = ("6",)          # 6=Invalid parameters


def _raise_for(e: pylast.WSError):
    code = str(getattr(e, "status", None) or "")
    msg = str(e)
    if code in _AUTH_CODES:
        raise AuthError(msg) from e
    if code in _RATE_LIMIT_CODES:
        raise RateLimitError(msg) from e
    if code in _INVALID_CODES:
        raise InvalidTrackError(msg) from e
    raise UnknownSubmissionError(f"Last.fm API error {code}: {msg}") from e


class LastFMTarget:
    """Thin wrapper over pylast for update-now-playing + scrobbling."""

    def __init__(self, api_key: str, api_secret: str, session_key: str | None = None,
                 username: str | None = None, password_md5: str | None = None,
                 network: pylast.LastFMNetwork | None = None):
        self.name = "lastfm"
        if network is not None:
            self.network = network
        elif session_key:
            log.info("Using Last.fm session key auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                session_key=session_key,
            )
        elif username and password_md5:
            log.info("Using Last.fm username + MD5 password auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                username=username,
                password_hash=password_md5,
            )
        else:
            raise ValueError("Missing Last.fm credentials")

    def _check(self, track: Track):
        if not track.title or not track.artist:
            raise InvalidTrackError(f"track is missing a title or an artist: {track}")

    def submit_playing_now(self, track: Track):
        self._check(track)
        try:
            self.network.update_now_playing(artist=track.artist, title=track.title, album=track.album)
        except pylast.WSError as e:
            _raise_for(e)
        except pylast.PyLastError as e:
            raise NetworkError(str(e)) from e

    def submit_listen(self, track: Track):
        """Scrobble the track, timestamped with the submission time (unix seconds)."""
        self._check(track)
        try:
            self.network.scrobble(
                artist=track.artist, title=track.title, album=track.album, timestamp=int(time.time())
            )
        except pylast.WSError as e:
            _raise_for(e)
        except pylast.PyLastError as e:
            raise NetworkError(str(e)) from e

    def get_submission_time(self, duration: int) -> int:
        return submission_delay(duration)
