"""
Target contract shared by every scrobbling service.

A target accepts "now playing" and "listen" submissions and says how long
after playback start a listen counts.
"""

from __future__ import annotations

from typing import Any, Protocol

from wylt.state import Track

# Listens count after half the track or 4 minutes, whichever is lower.
MAX_SUBMISSION_DELAY = 240


# Errors targets raise so callers can branch
class SubmissionError(Exception): ...
class AuthError(SubmissionError): ...
class RateLimitError(SubmissionError): ...
class NetworkError(SubmissionError): ...
class InvalidTrackError(SubmissionError): ...
class UnknownSubmissionError(SubmissionError): ...


def submission_delay(duration: int) -> int:
    """Seconds after playback start at which a listen is earned."""
    if duration is None or duration < 0:
        raise ValueError(f"invalid track duration: {duration!r}")
    return min(int(duration) // 2, MAX_SUBMISSION_DELAY)


class Target(Protocol):
    name: str

    def submit_playing_now(self, track: Track) -> Any: ...

    def submit_listen(self, track: Track) -> Any: ...

    def get_submission_time(self, duration: int) -> float: ...
