"""
Configuration via environment variables, read once at startup.

Players:  MPD_HOST, MPD_PORT, MPD_PASSWORD | BLUOS_HOST, BLUOS_PORT, POLL_INTERVAL
Targets:  LISTENBRAINZ_TOKEN, LISTENBRAINZ_API_URL |
          LASTFM_API_KEY, LASTFM_API_SECRET, LASTFM_SESSION_KEY or LASTFM_USERNAME + LASTFM_PASSWORD_MD5
Logging:  LOG_LEVEL, LOG_DIR
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from wylt.listenbrainz import DEFAULT_API_URL


class ConfigError(Exception): ...


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    mpd_host: str | None = None
    mpd_port: int = 6600
    mpd_password: str | None = None

    bluos_host: str | None = None
    bluos_port: int = 11000
    poll_interval: int = 3

    listenbrainz_token: str | None = None
    listenbrainz_api_url: str = DEFAULT_API_URL

    lastfm_api_key: str | None = None
    lastfm_api_secret: str | None = None
    lastfm_session_key: str | None = None
    lastfm_username: str | None = None
    lastfm_password_md5: str | None = None

    log_level: str = "INFO"
    log_dir: str | None = None

    @property
    def lastfm_enabled(self) -> bool:
        return bool(self.lastfm_api_key or self.lastfm_api_secret)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if env is None else env
        settings = cls(
            mpd_host=env.get("MPD_HOST") or None,
            mpd_port=_int(env, "MPD_PORT", 6600),
            mpd_password=env.get("MPD_PASSWORD") or None,
            bluos_host=env.get("BLUOS_HOST") or None,
            bluos_port=_int(env, "BLUOS_PORT", 11000),
            poll_interval=max(1, _int(env, "POLL_INTERVAL", 3)),
            listenbrainz_token=env.get("LISTENBRAINZ_TOKEN") or None,
            listenbrainz_api_url=env.get("LISTENBRAINZ_API_URL") or DEFAULT_API_URL,
            lastfm_api_key=env.get("LASTFM_API_KEY") or None,
            lastfm_api_secret=env.get("LASTFM_API_SECRET") or None,
            lastfm_session_key=env.get("LASTFM_SESSION_KEY") or None,
            lastfm_username=env.get("LASTFM_USERNAME") or None,
            lastfm_password_md5=env.get("LASTFM_PASSWORD_MD5") or None,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            log_dir=env.get("LOG_DIR") or None,
        )
        settings.validate()
        return settings

    def validate(self):
        if not (self.mpd_host or self.bluos_host):
            raise ConfigError("No player configured: set MPD_HOST and/or BLUOS_HOST")
        if not (self.listenbrainz_token or self.lastfm_enabled):
            raise ConfigError("No target configured: set LISTENBRAINZ_TOKEN and/or LASTFM_API_KEY + LASTFM_API_SECRET")
        if self.lastfm_enabled:
            if not (self.lastfm_api_key and self.lastfm_api_secret):
                raise ConfigError("LASTFM_API_KEY and LASTFM_API_SECRET are both required")
            if not (self.lastfm_session_key or (self.lastfm_username and self.lastfm_password_md5)):
                raise ConfigError("Provide LASTFM_SESSION_KEY or LASTFM_USERNAME + LASTFM_PASSWORD_MD5")
