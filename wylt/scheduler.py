"""
Listen-submission scheduler for one (player, target) pair.

Turns the player's status stream into "now playing" and "listen"
submissions:

- a new playing track sends "now playing" at once and arms a timer for
  target.get_submission_time(duration);
- the same track again (pause/resume, duplicate notifications) is ignored;
- a different track, or anything that is not playing, cancels the armed
  timer, so the previous track's listen is forfeited;
- when the timer fires (and its "now playing" has gone out), the listen is
  submitted only if the player still reports the same track as playing.

Submission failures are logged and handed to the error sink, never retried.
"""

from __future__ import annotations

import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable

from wylt.players import Player, PlayerError
from wylt.state import PlaybackStatus, Track
from wylt.targets import SubmissionError, Target

log = logging.getLogger("wylt.scheduler")

ErrorSink = Callable[[Exception], None]


def _log_error(e: Exception):
    log.error("%s: %s", type(e).__name__, e)


class SubmissionTimer:
    """Runs callback once after delay seconds, unless cancelled first.

    cancel() and the fire path decide under the same lock: after cancel()
    returns True the callback never runs, and once the callback has
    started cancel() returns False.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self._callback = callback
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._fired = False
        self._thread = threading.Thread(target=self._run, name="submission-timer", daemon=True)

    def start(self) -> SubmissionTimer:
        self._thread.start()
        return self

    def _run(self):
        if self._cancelled.wait(self.delay):
            return
        with self._lock:
            if self._cancelled.is_set():
                return
            self._fired = True
        self._callback()

    def cancel(self) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._cancelled.set()
            return True

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def join(self, timeout: float | None = None):
        self._thread.join(timeout)


class Scheduler:
    def __init__(self, player: Player, target: Target, on_error: ErrorSink | None = None):
        self.player = player
        self.target = target
        self.on_error = on_error or _log_error
        # Idle when None, otherwise the track the live timer belongs to
        self.track: Track | None = None
        self._timer: SubmissionTimer | None = None
        # one worker keeps "now playing" submissions ordered and off the status loop
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"{player.name}->{target.name}"
        )

    @property
    def armed(self) -> bool:
        return self.track is not None

    def handle(self, status: PlaybackStatus):
        """Advance the state machine by one observation."""
        if not status.is_playing:
            if self.track is not None:
                log.info("[%s] Playback %s; dropping pending listen for %s",
                         self.player.name, status.state, self.track)
            self._disarm()
            return

        if status.track == self.track:
            log.debug("[%s] Still playing %s; nothing to do", self.player.name, status.track)
            return

        self._disarm()
        track = status.track
        self.track = track
        log.info("[%s] Playing now: %s", self.player.name, track)
        future = self._executor.submit(self._submit, self.target.submit_playing_now, track, "Now playing")
        future.add_done_callback(self._check)
        self._arm(track, status.duration, future)

    def _arm(self, track: Track, duration: int | None, announced: Future):
        if duration is None:
            log.info("[%s] No duration for %s; no listen will be submitted", self.player.name, track)
            return
        try:
            delay = self.target.get_submission_time(duration)
        except ValueError as e:
            self.on_error(e)
            return
        self._timer = SubmissionTimer(delay, functools.partial(self._fire, track, announced)).start()
        log.debug("[%s] Listen for %s due on %s in %ss", self.player.name, track, self.target.name, delay)

    def _disarm(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.track = None

    def _fire(self, track: Track, announced: Future):
        # the listen never reaches the target ahead of its "now playing"
        wait([announced])
        try:
            current = self.player.now_playing()
            if current != track:
                log.debug("[%s] %s is no longer playing (now %s); listen skipped",
                          self.player.name, track, current)
                return
            self._submit(self.target.submit_listen, track, "Listen")
        except PlayerError as e:
            self.on_error(e)
        except Exception as e:
            log.exception("[%s] Listen for %s failed on %s", self.player.name, track, self.target.name)
            self.on_error(e)

    def _submit(self, submit: Callable[[Track], object], track: Track, kind: str):
        try:
            submit(track)
        except SubmissionError as e:
            log.warning("%s failed on %s for %s: %s", kind, self.target.name, track, e)
            self.on_error(e)
        else:
            log.info("%s submitted to %s: %s", kind, self.target.name, track)

    def _check(self, future: Future):
        if not future.cancelled() and future.exception() is not None:
            self.on_error(future.exception())

    def run(self, statuses: Iterable[PlaybackStatus]):
        """Consume statuses until the stream ends."""
        try:
            for status in statuses:
                self.handle(status)
        finally:
            self.close()

    def close(self):
        self._disarm()
        self._executor.shutdown(wait=False)
