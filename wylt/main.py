import logging
import os
import time

from wylt.bluos import BluOSPlayer
from wylt.config import ConfigError, Settings
from wylt.driver import Driver
from wylt.lastfm_client import LastFMTarget
from wylt.listenbrainz import ListenBrainzTarget
from wylt.mpd_player import MPDPlayer
from wylt.notifier import from_env as alerts_from_env

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

log = logging.getLogger("wylt")


# -------------------------
# Logging setup
# -------------------------
def setup_logging(level: str, log_dir: str | None = None) -> str | None:
    """Log to stderr, and to a per-run file in log_dir when given. Returns the file path."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    path = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        path = os.path.join(log_dir, f"wylt-{int(time.time())}.log")
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,  # ensure our config is used even if libs pre-configure logging
    )
    return path


def build_players(settings: Settings) -> list:
    players = []
    if settings.mpd_host:
        players.append(MPDPlayer(settings.mpd_host, settings.mpd_port, settings.mpd_password))
    if settings.bluos_host:
        players.append(BluOSPlayer(settings.bluos_host, settings.bluos_port, settings.poll_interval))
    return players


def build_targets(settings: Settings) -> list:
    targets = []
    if settings.listenbrainz_token:
        targets.append(ListenBrainzTarget(settings.listenbrainz_token, settings.listenbrainz_api_url))
    if settings.lastfm_enabled:
        targets.append(LastFMTarget(
            api_key=settings.lastfm_api_key,
            api_secret=settings.lastfm_api_secret,
            session_key=settings.lastfm_session_key,
            username=settings.lastfm_username,
            password_md5=settings.lastfm_password_md5,
        ))
    return targets


def main():
    # Validate configuration up-front for clear errors
    try:
        settings = Settings.from_env()
        alert = alerts_from_env()
    except (ConfigError, ValueError) as e:
        raise SystemExit(f"wylt: {e}")

    log_file = setup_logging(settings.log_level, settings.log_dir)

    players = build_players(settings)
    targets = build_targets(settings)
    driver = Driver(players, targets, alert=alert)

    log.info("Starting wylt. Players: %s | Targets: %s",
             ", ".join(p.name for p in players), ", ".join(t.name for t in targets))
    if log_file:
        log.info("Logging to %s", log_file)
    alert("INFO", "Bridge started",
          f"Watching {', '.join(p.name for p in players)} for {', '.join(t.name for t in targets)}.")

    try:
        driver.run()
    except KeyboardInterrupt:
        log.info("Shutting down…")
    finally:
        driver.stop()


if __name__ == "__main__":
    main()
