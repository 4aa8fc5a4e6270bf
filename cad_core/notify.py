"""Outbound transactional email.

Welcome mail to new users, plus admin alerts for signups and completed
assessments, all sent through the Resend REST API. Every sender here is meant
to run through :func:`fire_and_forget`: failures are logged and dropped, never
surfaced to the request that triggered them.
"""

from __future__ import annotations

import html
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from . import config

log = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class NotifyError(RuntimeError):
    pass


def _first_name(full_name: str) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else "there"


def format_when(when: Optional[datetime] = None) -> str:
    """Human timestamp in the configured admin timezone, e.g. '19 Oct 2026, 14:05'."""
    when = when or datetime.now(timezone.utc)
    try:
        when = when.astimezone(ZoneInfo(config.EMAIL_TIMEZONE))
    except ZoneInfoNotFoundError:
        when = when.astimezone(timezone.utc)
    return when.strftime("%d %b %Y, %H:%M")


def _shell(title: str, badge: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    site = html.escape(config.SITE_URL)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body style="margin:0;padding:0;background-color:#f5f5f4;font-family:'Helvetica Neue',Arial,sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="padding:40px 20px;">
    <tr><td align="center">
      <table width="540" cellpadding="0" cellspacing="0" style="background-color:#ffffff;border-radius:16px;">
        <tr><td style="background:#1a1a1a;padding:24px 36px;">
          <span style="font-size:22px;font-weight:800;color:#ffffff;">3<span style="color:#f97316;">PN</span></span>
          <span style="float:right;font-size:11px;color:#a1a1aa;">{html.escape(badge)}</span>
        </td></tr>
        <tr><td style="padding:32px 36px 24px;">{body}</td></tr>
        <tr><td style="padding:20px 36px;border-top:1px solid #e4e4e7;font-size:11px;color:#a1a1aa;">
          &copy; {year} 3PN Professional Network. <a href="{site}" style="color:#a1a1aa;">{site}</a>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _detail_rows(rows: Sequence[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td style=\"padding:8px 0;\"><div style=\"font-size:11px;color:#a1a1aa;text-transform:uppercase;\">"
        f"{html.escape(k)}</div><div style=\"font-size:15px;color:#1a1a1a;\">{html.escape(v)}</div></td></tr>"
        for k, v in rows
    )
    return f"<table width=\"100%\" style=\"background-color:#fafafa;border:1px solid #e4e4e7;\">{cells}</table>"


def build_welcome_html(full_name: str) -> str:
    first = html.escape(_first_name(full_name))
    site = html.escape(config.SITE_URL)
    body = (
        f"<h1 style=\"font-size:22px;color:#1a1a1a;\">Welcome aboard, {first}!</h1>"
        "<p style=\"font-size:15px;color:#52525b;line-height:1.6;\">You've just taken the first step on your "
        "journey from <strong>Point A</strong> (Potential) to <strong>Point B</strong> (Power).</p>"
        "<p style=\"font-size:14px;color:#71717a;\">Start with the free CAD Diagnostic to discover your quadrant "
        "and strategic pathway.</p>"
        f"<p><a href=\"{site}/assessment\" style=\"background:#f97316;color:#ffffff;padding:12px 28px;"
        "border-radius:8px;text-decoration:none;\">Take the diagnostic</a></p>"
    )
    return _shell("Welcome to 3PN", "WELCOME", body)


def build_admin_signup_html(full_name: str, email: str, when: str) -> str:
    site = html.escape(config.SITE_URL)
    body = (
        "<h1 style=\"font-size:18px;color:#1a1a1a;\">New User Signup</h1>"
        "<p style=\"font-size:14px;color:#71717a;\">Someone just joined the 3PN community.</p>"
        + _detail_rows([("Full Name", full_name), ("Email", email), ("Signed Up", when)])
        + f"<p><a href=\"{site}/admin\">View in Admin Dashboard</a></p>"
    )
    return _shell("New 3PN Signup", "ADMIN ALERT", body)


def build_admin_result_html(full_name: str, email: str, when: str) -> str:
    site = html.escape(config.SITE_URL)
    body = (
        "<h1 style=\"font-size:18px;color:#1a1a1a;\">New Assessment Completed</h1>"
        "<p style=\"font-size:14px;color:#71717a;\">A member just finished the CAD Diagnostic.</p>"
        + _detail_rows([("Full Name", full_name), ("Email", email), ("Completed", when)])
        + f"<p><a href=\"{site}/admin\">View in Admin Dashboard</a></p>"
    )
    return _shell("New CAD Assessment", "ADMIN ALERT", body)


def send_email(
    to: Sequence[str] | str,
    subject: str,
    html_body: str,
    cc: Sequence[str] | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> Dict[str, Any]:
    api_key = os.getenv("RESEND_API_KEY", "")
    if not api_key:
        raise NotifyError("RESEND_API_KEY not configured")
    recipients: List[str] = [to] if isinstance(to, str) else list(to)
    if not recipients:
        raise NotifyError("no recipients")
    payload: Dict[str, Any] = {
        "from": config.EMAIL_FROM,
        "to": recipients,
        "subject": subject,
        "html": html_body,
    }
    if cc:
        payload["cc"] = list(cc)
    with httpx.Client(timeout=15, transport=transport) as client:
        resp = client.post(
            RESEND_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
    if resp.status_code >= 300:
        raise NotifyError(f"Resend returned {resp.status_code}: {resp.text[:200]}")
    data = resp.json()
    log.info("email sent to %d recipient(s): %s", len(recipients), data.get("id"))
    return data


def send_welcome_email(full_name: str, email: str) -> Dict[str, Any]:
    return send_email(email, f"Welcome to 3PN, {_first_name(full_name)}!", build_welcome_html(full_name))


def notify_admin_signup(full_name: str, email: str) -> Dict[str, Any]:
    return send_email(
        config.ADMIN_EMAILS,
        f"New 3PN Signup: {full_name}",
        build_admin_signup_html(full_name, email, format_when()),
        cc=config.CC_EMAILS,
    )


def notify_admin_result(full_name: str, email: str) -> Dict[str, Any]:
    return send_email(
        config.ADMIN_EMAILS,
        f"New CAD Assessment: {full_name}",
        build_admin_result_html(full_name, email, format_when()),
        cc=config.CC_EMAILS,
    )


def fire_and_forget(fn: Callable[..., Any], *args: Any) -> None:
    """Run a notification, logging (never raising) any failure."""
    if not config.NOTIFY_ENABLED:
        log.debug("notifications disabled; skipping %s", getattr(fn, "__name__", fn))
        return
    try:
        fn(*args)
    except Exception as exc:
        log.warning("notification %s failed: %s", getattr(fn, "__name__", fn), exc)
