from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

from wylt.players import Player, PlayerConnectionError, Stream
from wylt.scheduler import ErrorSink, Scheduler
from wylt.targets import AuthError, Target

log = logging.getLogger("wylt.driver")

Alert = Callable[..., None]


class Driver:
    """Runs one Scheduler per (player, target) pair, each on its own thread.

    Player errors are logged with the pair they came from; a closed
    stream takes down only its own pair.
    """

    def __init__(self, players: Sequence[Player], targets: Sequence[Target], alert: Alert | None = None):
        self.players = list(players)
        self.targets = list(targets)
        self.alert = alert
        self.schedulers: list[Scheduler] = []
        self._threads: list[threading.Thread] = []
        self._stopped = threading.Event()

    def error_sink(self, player: Player, target: Target) -> ErrorSink:
        def sink(e: Exception):
            log.warning("[%s -> %s] %s: %s", player.name, target.name, type(e).__name__, e)
            if self.alert and isinstance(e, (AuthError, PlayerConnectionError)):
                self.alert("ERROR", f"{type(e).__name__} on {player.name} -> {target.name}", str(e))
        return sink

    def start(self):
        for player in self.players:
            for target in self.targets:
                statuses, errors = player.subscribe()
                sink = self.error_sink(player, target)
                scheduler = Scheduler(player, target, on_error=sink)
                self.schedulers.append(scheduler)
                pair = f"{player.name}->{target.name}"
                self._spawn(scheduler.run, (statuses,), pair)
                self._spawn(self._watch_errors, (player, target, errors, sink), f"{pair}-errors")
                log.info("Watching %s for %s", player.name, target.name)

    def _spawn(self, fn, args, name):
        t = threading.Thread(target=fn, args=args, name=name, daemon=True)
        t.start()
        self._threads.append(t)

    def _watch_errors(self, player: Player, target: Target, errors: Stream, sink: ErrorSink):
        for e in errors:
            sink(e)
        if not self._stopped.is_set():
            log.error("[%s -> %s] Player stream closed; pair is down", player.name, target.name)

    def run(self):
        """Start every pair and block until stop()."""
        self.start()
        self._stopped.wait()

    def stop(self, timeout: float = 5):
        self._stopped.set()
        for player in self.players:
            player.close()
        for t in self._threads:
            t.join(timeout)
