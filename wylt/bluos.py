import logging
import threading
import xml.etree.ElementTree as ET

import requests

from wylt.players import PlayerError, Stream, TransitionFilter
from wylt.state import PAUSED, PLAYING, STOPPED, PlaybackStatus, Track, to_seconds

log = logging.getLogger("wylt.bluos")

# BluOS reports internet radio as 'stream'
_STATES = {"play": PLAYING, "stream": PLAYING, "pause": PAUSED, "stop": STOPPED}


class BluOSPlayer:
    """
    BluOS player that polls /Status (XML) every poll_interval seconds.
    Uses recursive lookup + tag fallbacks: name/title1, artist, album, secs, totlen, state.
    """
    def __init__(self, host: str, port: int = 11000, poll_interval: float = 3, timeout: int = 5):
        self.base = f"http://{host}:{port}"
        self.name = f"bluos@{host}:{port}"
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._stop = threading.Event()
        self._streams: list[Stream] = []

    def _findtext_any(self, root: ET.Element, *tags: str):
        for t in tags:
            el = root.find(f".//{t}")
            if el is not None and el.text:
                return el.text.strip()
        return None

    def parse_status(self, text: str) -> PlaybackStatus:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise PlayerError(f"{self.name}: unreadable /Status XML: {e}") from e

        # title appears as <name> and also as <title1>
        title  = self._findtext_any(root, "name", "title1", "title", "song")
        artist = self._findtext_any(root, "artist", "title2")
        album  = self._findtext_any(root, "album", "title3")

        secs     = self._findtext_any(root, "secs", "elapsed", "position", "time")
        duration = self._findtext_any(root, "totlen", "duration", "total", "trackLength", "length")

        state = self._findtext_any(root, "state", "status", "mode")
        state = _STATES.get(state.lower()) if state else None

        track = Track(title=title, artist=artist, album=album) if (title or artist) else None
        return PlaybackStatus(
            track=track,
            duration=to_seconds(duration),
            elapsed=to_seconds(secs),
            state=state,
        )

    def get_status(self) -> PlaybackStatus:
        try:
            resp = requests.get(f"{self.base}/Status", timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise PlayerError(f"{self.name}: status fetch failed: {e}") from e
        return self.parse_status(resp.text)

    def now_playing(self) -> Track | None:
        status = self.get_status()
        return status.track if status.is_playing else None

    def subscribe(self) -> tuple[Stream, Stream]:
        statuses, errors = Stream(), Stream()
        self._streams += [statuses, errors]
        threading.Thread(
            target=self._poll, args=(statuses, errors),
            name=f"{self.name}-poll", daemon=True,
        ).start()
        return statuses, errors

    def _poll(self, statuses: Stream, errors: Stream):
        transitions = TransitionFilter()
        log.info("Polling %s every %ss", self.base, self.poll_interval)
        while not self._stop.is_set() and not statuses.closed:
            try:
                status = self.get_status()
            except PlayerError as e:
                errors.put(e)
            else:
                log.debug("Parsed: state=%s track=%s elapsed=%s duration=%s",
                          status.state, status.track, status.elapsed, status.duration)
                if transitions.accept(status):
                    statuses.put(status)
            self._stop.wait(self.poll_interval)
        statuses.close()
        errors.close()

    def close(self):
        self._stop.set()
        for s in self._streams:
            s.close()
