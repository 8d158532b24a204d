"""
MPD player.

- Watches the 'player' subsystem with MPD's idle command on a dedicated connection
  per subscription, and reads status + currentsong on every change.
- A second, shared connection answers now_playing(); it is pinged every 30s and
  reconnected on demand when MPD has dropped it.
"""

from __future__ import annotations

import logging
import threading

from mpd import CommandError, MPDClient, MPDError
from mpd import ConnectionError as MPDConnectionError

from wylt.players import PlayerConnectionError, PlayerError, Stream, TransitionFilter
from wylt.state import PAUSED, PLAYING, PlaybackStatus, Track, stopped, to_seconds

log = logging.getLogger("wylt.mpd")

KEEPALIVE_INTERVAL = 30


def _tag(song: dict, key: str) -> str | None:
    # multi-valued tags come back as lists
    value = song.get(key)
    if isinstance(value, list):
        value = ", ".join(value)
    return value or None


def read_status(client: MPDClient) -> PlaybackStatus:
    status = client.status()
    state = status.get("state")
    if state not in (PLAYING, PAUSED):
        return stopped()

    song = client.currentsong()
    track = Track(title=_tag(song, "title"), artist=_tag(song, "artist"), album=_tag(song, "album"))
    return PlaybackStatus(
        track=track,
        duration=to_seconds(status.get("duration", song.get("time"))),
        elapsed=to_seconds(status.get("elapsed")),
        state=state,
    )


class MPDPlayer:
    def __init__(self, host: str = "localhost", port: int = 6600,
                 password: str | None = None, timeout: int = 10):
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        self.name = f"mpd@{host}:{port}"
        self._client: MPDClient | None = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._keepalive: threading.Thread | None = None
        self._watchers: list[MPDClient] = []
        self._streams: list[Stream] = []

    def _connect(self) -> MPDClient:
        client = MPDClient()
        client.timeout = self.timeout
        client.idletimeout = None
        client.connect(self.host, self.port)
        if self.password:
            client.password(self.password)
        return client

    # -------- point queries --------
    def _query(self) -> PlaybackStatus:
        # caller holds self._lock
        if self._client is None:
            self._client = self._connect()
            self._start_keepalive()
        try:
            return read_status(self._client)
        except (MPDConnectionError, OSError):
            log.info("%s: query connection lost, reconnecting", self.name)
            self._client = self._connect()
            return read_status(self._client)

    def now_playing(self) -> Track | None:
        with self._lock:
            try:
                status = self._query()
            except (MPDError, OSError) as e:
                self._client = None
                raise PlayerError(f"{self.name}: {e}") from e
        return status.track if status.is_playing else None

    def _start_keepalive(self):
        if self._keepalive is not None:
            return
        self._keepalive = threading.Thread(target=self._ping_loop, name=f"{self.name}-keepalive", daemon=True)
        self._keepalive.start()

    def _ping_loop(self):
        while not self._stop.wait(KEEPALIVE_INTERVAL):
            with self._lock:
                if self._client is None:
                    continue
                try:
                    self._client.ping()
                except (MPDError, OSError) as e:
                    log.debug("%s: keepalive ping failed: %s", self.name, e)
                    self._client = None

    # -------- subscription --------
    def subscribe(self) -> tuple[Stream, Stream]:
        statuses, errors = Stream(), Stream()
        self._streams += [statuses, errors]
        threading.Thread(
            target=self._watch, args=(statuses, errors),
            name=f"{self.name}-idle", daemon=True,
        ).start()
        return statuses, errors

    def _watch(self, statuses: Stream, errors: Stream):
        try:
            client = self._connect()
        except (MPDError, OSError) as e:
            errors.put(PlayerConnectionError(f"{self.name}: cannot connect: {e}"))
            statuses.close()
            errors.close()
            return

        self._watchers.append(client)
        transitions = TransitionFilter()
        try:
            # first pass reports whatever is already playing
            while not self._stop.is_set():
                try:
                    status = read_status(client)
                except CommandError as e:
                    errors.put(PlayerError(f"{self.name}: {e}"))
                else:
                    if transitions.accept(status):
                        statuses.put(status)
                client.idle("player")
        except (MPDError, OSError) as e:
            if not self._stop.is_set():
                errors.put(PlayerConnectionError(f"{self.name}: connection lost: {e}"))
        finally:
            statuses.close()
            errors.close()

    def close(self):
        self._stop.set()
        for s in self._streams:
            s.close()
        clients = self._watchers + ([self._client] if self._client else [])
        for client in clients:
            try:
                client.disconnect()
            except (MPDError, OSError) as e:
                log.debug("%s: disconnect failed: %s", self.name, e)
