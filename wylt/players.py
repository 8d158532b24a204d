"""
Player contract shared by every player implementation.

A player yields PlaybackStatus observations on a status stream and
PlayerError values on an error stream (see Player.subscribe), and answers
point queries with now_playing().
"""

from __future__ import annotations

import queue
import threading
from typing import Iterator, Protocol

from wylt.state import STOPPED, PlaybackStatus, Track

_CLOSED = object()


class PlayerError(Exception):
    """Transient player failure. The subscription keeps going."""


class PlayerConnectionError(PlayerError):
    """Terminal player failure. Both streams are closed right after it."""


class Stream:
    """Unbounded, closable, thread-safe stream. Iterating blocks until close()."""

    def __init__(self):
        self._q: queue.Queue = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    def put(self, item) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._q.put(item)
            return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._q.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator:
        while True:
            item = self._q.get()
            if item is _CLOSED:
                # leave the marker for any other consumer
                self._q.put(_CLOSED)
                return
            yield item


class Player(Protocol):
    name: str

    def subscribe(self) -> tuple[Stream, Stream]:
        """Start watching the player: returns (status stream, error stream)."""
        ...

    def now_playing(self) -> Track | None:
        """Track currently playing, None when paused, stopped or empty.

        Raises PlayerError when the player cannot be queried.
        """
        ...

    def close(self) -> None:
        ...


class TransitionFilter:
    """Lets through only the transitions a scheduler acts on.

    Play started, track changed and stopped pass; pause/resume of the
    same track and repeated stops are dropped.
    """

    def __init__(self):
        self._last: PlaybackStatus | None = None

    def accept(self, status: PlaybackStatus) -> bool:
        last = self._last
        if status.is_playing:
            if last is not None and last.is_playing and last.track == status.track:
                return False
        elif status.state == STOPPED:
            if last is not None and last.state == STOPPED:
                return False
        else:
            return False
        self._last = status
        return True
