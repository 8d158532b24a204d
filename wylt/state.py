from __future__ import annotations

import math
from dataclasses import dataclass

# -------------------------
# Playback states, as reported by the players
# -------------------------
PLAYING = "play"
PAUSED = "pause"
STOPPED = "stop"


# -------------------------
# Identity for a track
# -------------------------
@dataclass(frozen=True)
class Track:
    """A track, compared by (title, artist, album)."""
    title: str | None
    artist: str | None
    album: str | None = None

    def __str__(self) -> str:
        s = f"{self.artist or '?'} - {self.title or '?'}"
        return f"{s} [{self.album}]" if self.album else s


@dataclass(frozen=True)
class PlaybackStatus:
    track: Track | None
    duration: int | None  # seconds, None when unknown or malformed
    elapsed: int | None   # seconds
    state: str | None     # PLAYING, PAUSED or STOPPED

    @property
    def is_playing(self) -> bool:
        return self.state == PLAYING and self.track is not None


def to_seconds(value) -> int | None:
    """Parse a player-reported number of seconds ("213.4", 213, ...), floored.

    Returns None for anything that is not a finite, non-negative number.
    """
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(f) or math.isinf(f) or f < 0:
        return None
    return int(math.floor(f))


def stopped() -> PlaybackStatus:
    return PlaybackStatus(track=None, duration=None, elapsed=None, state=STOPPED)
