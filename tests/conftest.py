"""Shared test fixtures for wylt."""

import threading

import pytest

from wylt.players import PlayerError, Stream
from wylt.state import PLAYING, STOPPED, PlaybackStatus, Track


class FakePlayer:
    """Player whose current track and status stream are driven by the test."""

    def __init__(self, name="fake"):
        self.name = name
        self.current: Track | None = None
        self.fail_queries = False
        self.subscriptions: list[tuple[Stream, Stream]] = []
        self.closed = False

    def subscribe(self):
        streams = (Stream(), Stream())
        self.subscriptions.append(streams)
        return streams

    def now_playing(self):
        if self.fail_queries:
            raise PlayerError(f"{self.name}: unreachable")
        return self.current

    def close(self):
        self.closed = True
        for statuses, errors in self.subscriptions:
            statuses.close()
            errors.close()


class RecordingTarget:
    """Target that records submissions; submission delay is fixed in seconds."""

    def __init__(self, name="recording", delay=0.05):
        self.name = name
        self.delay = delay
        self.calls: list[tuple[str, Track]] = []
        self.fail_with: Exception | None = None
        self._cond = threading.Condition()

    def _record(self, kind, track):
        with self._cond:
            self.calls.append((kind, track))
            self._cond.notify_all()
        if self.fail_with is not None:
            raise self.fail_with

    def submit_playing_now(self, track):
        self._record("playing_now", track)

    def submit_listen(self, track):
        self._record("listen", track)

    def get_submission_time(self, duration):
        if duration < 0:
            raise ValueError(f"invalid track duration: {duration!r}")
        return self.delay

    def playing_now(self):
        return [t for kind, t in self.calls if kind == "playing_now"]

    def listens(self):
        return [t for kind, t in self.calls if kind == "listen"]

    def wait_for(self, predicate, timeout=2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(predicate, timeout)


def playing(track, duration=200, elapsed=0):
    return PlaybackStatus(track=track, duration=duration, elapsed=elapsed, state=PLAYING)


def stop():
    return PlaybackStatus(track=None, duration=None, elapsed=None, state=STOPPED)


@pytest.fixture
def track_a():
    return Track(title="Teardrop", artist="Massive Attack", album="Mezzanine")


@pytest.fixture
def track_b():
    return Track(title="Angel", artist="Massive Attack", album="Mezzanine")


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def target():
    return RecordingTarget()
