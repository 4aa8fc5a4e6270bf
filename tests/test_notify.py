from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from cad_core import config, notify


def _transport(captured: list, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        if status >= 300:
            return httpx.Response(status, text="rejected")
        return httpx.Response(status, json={"id": "email_123"})

    return httpx.MockTransport(handler)


def test_send_email_posts_to_resend(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    captured: list = []

    out = notify.send_email("a@example.com", "Hello", "<p>hi</p>", cc=["c@example.com"],
                            transport=_transport(captured))

    assert out == {"id": "email_123"}
    req = captured[0]
    assert str(req.url) == notify.RESEND_API_URL
    assert req.headers["Authorization"] == "Bearer re_test"
    body = json.loads(req.content)
    assert body["to"] == ["a@example.com"]
    assert body["cc"] == ["c@example.com"]
    assert body["from"] == config.EMAIL_FROM


def test_send_email_requires_key_and_recipients(monkeypatch):
    with pytest.raises(notify.NotifyError, match="RESEND_API_KEY"):
        notify.send_email("a@example.com", "s", "b")
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    with pytest.raises(notify.NotifyError, match="no recipients"):
        notify.send_email([], "s", "b")


def test_send_email_raises_on_rejection(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    with pytest.raises(notify.NotifyError, match="422"):
        notify.send_email("a@example.com", "s", "b", transport=_transport([], status=422))


def test_templates_escape_user_input():
    html = notify.build_admin_signup_html("<script>x</script>", "e@example.com", "now")
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "Welcome aboard, Ada!" in notify.build_welcome_html("Ada Lovelace")
    assert "New Assessment Completed" in notify.build_admin_result_html("Ada", "a@example.com", "now")


def test_format_when_uses_configured_zone(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_TIMEZONE", "UTC")
    when = datetime(2026, 3, 4, 9, 5, tzinfo=timezone.utc)
    assert notify.format_when(when) == "04 Mar 2026, 09:05"


def test_fire_and_forget_swallows_failures(monkeypatch, caplog):
    monkeypatch.setattr(config, "NOTIFY_ENABLED", True)

    def explode(*args):
        raise notify.NotifyError("down")

    notify.fire_and_forget(explode, "Ada", "a@example.com")
    assert "notification explode failed" in caplog.text


def test_fire_and_forget_respects_kill_switch():
    calls = []
    notify.fire_and_forget(lambda *a: calls.append(a), "x")
    assert calls == []
