"""
ListenBrainz target: POST /1/submit-listens with a user token.

Payload:
  {"listen_type": "playing_now" | "single",
   "payload": [{"listened_at": <unix seconds, "single" only>,
                "track_metadata": {"track_name", "artist_name", "release_name"}}]}
"""

from __future__ import annotations

import logging
import time

import requests

from wylt.state import Track
from wylt.targets import (
    AuthError, InvalidTrackError, NetworkError, RateLimitError,
    UnknownSubmissionError, submission_delay,
)

log = logging.getLogger("listenbrainz")

DEFAULT_API_URL = "https://api.listenbrainz.org"
PLAYING_NOW = "playing_now"
SINGLE = "single"


def build_payload(track: Track, listen_type: str, listened_at: int | None = None) -> dict:
    if listen_type not in (PLAYING_NOW, SINGLE):
        raise ValueError(f"unrecognized listen type: {listen_type!r}")
    if not track.title or not track.artist:
        raise InvalidTrackError(f"track is missing a title or an artist: {track}")

    listen = {
        "track_metadata": {
            "track_name": track.title,
            "artist_name": track.artist,
            "release_name": track.album or "",
        }
    }
    if listen_type == SINGLE:
        listen = {"listened_at": int(listened_at if listened_at is not None else time.time()), **listen}
    return {"listen_type": listen_type, "payload": [listen]}


class ListenBrainzTarget:
    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, timeout: int = 10):
        if not token:
            raise ValueError("Missing ListenBrainz token")
        self.token = token.strip()
        self.url = f"{api_url.rstrip('/')}/1/submit-listens"
        self.timeout = timeout
        self.name = "listenbrainz"

    def _submit(self, body: dict) -> requests.Response:
        headers = {"Authorization": f"Token {self.token}"}
        try:
            resp = requests.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

        if resp.status_code == 401:
            raise AuthError(f"ListenBrainz rejected the token: {resp.text}")
        if resp.status_code == 429:
            raise RateLimitError(f"ListenBrainz rate limit exceeded: {resp.text}")
        if resp.status_code == 400:
            raise InvalidTrackError(f"ListenBrainz rejected the listen: {resp.text}")
        if resp.status_code >= 400:
            raise UnknownSubmissionError(f"ListenBrainz API error {resp.status_code}: {resp.text}")
        log.debug("%s accepted: %s", body["listen_type"], resp.status_code)
        return resp

    def submit_playing_now(self, track: Track) -> requests.Response:
        return self._submit(build_payload(track, PLAYING_NOW))

    def submit_listen(self, track: Track) -> requests.Response:
        # listened_at is the submission time
        return self._submit(build_payload(track, SINGLE, int(time.time())))

    def get_submission_time(self, duration: int) -> int:
        return submission_delay(duration)
