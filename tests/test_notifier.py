"""Tests for the webhook and Gotify alert notifiers."""

from unittest.mock import patch

import requests

from wylt.notifier import Alerts, GotifyNotifier, WebhookNotifier, from_env


class TestAlerts:
    def test_unconfigured_notifiers_do_nothing(self):
        with patch("wylt.notifier.requests.post") as post:
            Alerts(WebhookNotifier(None), GotifyNotifier(None, None))("ERROR", "t", "m")
        post.assert_not_called()

    def test_min_level(self):
        with patch("wylt.notifier.requests.post") as post:
            WebhookNotifier("https://hook.example", min_level="ERROR").send("WARNING", "t", "m")
        post.assert_not_called()

    def test_webhook_payload(self):
        with patch("wylt.notifier.requests.post") as post:
            WebhookNotifier("https://hook.example", app_tag="wylt").send("error", "Player down", "lost", {"a": 1})
        assert post.call_args.kwargs["json"] == {
            "level": "ERROR", "title": "wylt: Player down", "message": "lost", "extra": {"a": 1},
        }

    def test_gotify(self):
        with patch("wylt.notifier.requests.post") as post:
            GotifyNotifier("http://nas:8080/", "tok", default_priority=7).send("ERROR", "t", "m")
        assert post.call_args.args[0] == "http://nas:8080/message"
        assert post.call_args.kwargs["headers"] == {"X-Gotify-Key": "tok"}
        assert post.call_args.kwargs["json"]["priority"] == 7

    def test_send_failure_does_not_raise(self):
        with patch("wylt.notifier.requests.post", side_effect=requests.ConnectionError("down")):
            WebhookNotifier("https://hook.example").send("ERROR", "t", "m")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "https://hook.example")
        monkeypatch.setenv("GOTIFY_PRIORITY", "9")
        alerts = from_env()
        webhook, gotify = alerts.notifiers
        assert webhook.webhook_url == "https://hook.example"
        assert gotify.default_priority == 9
