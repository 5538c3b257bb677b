"""HTML and plain-text templates for the registration, sign-in, welcome and login alert emails."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REGISTRATION_TOKEN_PARAM = "registrationToken"
SIGN_IN_TOKEN_PARAM = "signInToken"


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str
    text: str


def build_link(continue_url: str, param: str, token: str) -> str:
    """Append the token to the client's continue URL, keeping any existing query."""
    parts = urlsplit(continue_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((param, token))
    return urlunsplit(parts._replace(query=urlencode(query)))


_STYLE = """
        body {
            margin: 0;
            padding: 0;
            font-family: 'Outfit', 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
            background-color: #FCFBF9;
            color: #333333;
        }
        .container {
            max-width: 600px;
            margin: 40px auto;
            background-color: #ffffff;
            border-radius: 16px;
            box-shadow: 0 2px 8px rgba(29, 47, 46, 0.08);
            overflow: hidden;
        }
        .header {
            background: linear-gradient(135deg, #2E9A85 0%, #3FC0A8 100%);
            padding: 40px 20px;
            text-align: center;
        }
        .header h1 {
            color: #ffffff;
            margin: 0;
            font-size: 28px;
        }
        .content {
            padding: 40px 30px;
        }
        .content p {
            margin: 0 0 20px;
            font-size: 16px;
        }
        .button {
            display: inline-block;
            padding: 16px 40px;
            background-color: #F5A54A;
            color: #1D2F2E;
            text-decoration: none;
            border-radius: 24px;
            font-weight: bold;
        }
        .fallback a {
            color: #2E9A85;
            word-break: break-all;
            font-family: 'Courier New', Courier, monospace;
        }
        .details {
            background-color: #ffffff;
            border: 1px solid #E0E0E0;
            border-radius: 8px;
            padding: 16px;
            margin: 0 0 20px;
        }
        .details p {
            margin: 4px 0;
            font-size: 14px;
        }
        .notice {
            background-color: #E8F7F4;
            border-left: 4px solid #2E9A85;
            padding: 16px;
            border-radius: 4px;
            font-size: 14px;
        }
        .footer {
            padding: 24px;
            text-align: center;
            font-size: 12px;
            color: #999999;
            background-color: #f9f9f9;
        }
"""


def _render_html(
    *,
    title: str,
    heading: str,
    name: str,
    paragraphs: list[str],
    notice: str,
    app_name: str,
    button: str | None = None,
    url: str | None = None,
    ignore: str | None = None,
    details: list[tuple[str, str]] | None = None,
) -> str:
    blocks = [f"<p>{escape(p)}</p>" for p in paragraphs]

    if details:
        rows = "".join(f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>" for label, value in details)
        blocks.append(f'<div class="details">{rows}</div>')

    if button and url:
        safe_url = escape(url, quote=True)
        blocks.append(f'<p style="text-align: center;"><a href="{safe_url}" class="button">{escape(button)}</a></p>')
        blocks.append(
            '<div class="fallback"><p>Or copy and paste this link into your browser:</p>'
            f'<p><a href="{safe_url}">{safe_url}</a></p></div>'
        )

    blocks.append(f'<div class="notice"><strong>Important:</strong> {escape(notice)}</div>')
    if ignore:
        blocks.append(f'<p style="font-size: 14px; color: #666666; margin-top: 20px;">{escape(ignore)}</p>')

    body = "\n".join(" " * 16 + block for block in blocks)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>{_STYLE}    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(heading)}</h1>
        </div>
        <div class="content">
                <p>Hi {escape(name)},</p>
{body}
        </div>
        <div class="footer">
            <p>{escape(app_name)}</p>
            <p>This is an automated message, please do not reply to this email.</p>
        </div>
    </div>
</body>
</html>
"""


def render_registration_email(app_name: str, name: str, verification_url: str, expiry_hours: int) -> EmailContent:
    """Email sent by /createRegistration."""
    intro = f"Thanks for creating an account with {app_name}! We're excited to help you manage your finances."
    action = "Click the button below to complete your registration and access your account:"
    notice = (
        f"This link will expire in {expiry_hours} hours for security reasons. "
        "You can complete your registration on any device (phone, tablet, or computer)."
    )
    ignore = "If you didn't create this account, you can safely ignore this email."

    html = _render_html(
        title=f"Complete Your Registration - {app_name}",
        heading=f"Welcome to {app_name}",
        name=name,
        paragraphs=[intro, action],
        button="Complete Registration",
        url=verification_url,
        notice=notice,
        ignore=ignore,
        app_name=app_name,
    )

    text = f"""Welcome to {app_name}!

Hi {name},

{intro}

Complete your registration by visiting this link:
{verification_url}

Important: {notice}

{ignore}

---
{app_name}
This is an automated message, please do not reply to this email.
"""
    return EmailContent(subject=f"Complete Your Registration - {app_name}", html=html, text=text)


def render_sign_in_email(app_name: str, name: str, sign_in_url: str, expiry_hours: int) -> EmailContent:
    """Email sent by /createSignInRequest."""
    action = f"Click the button below to sign in to your {app_name} account:"
    notice = (
        f"This link will expire in {expiry_hours} hours for security reasons. "
        "You can sign in from any device (phone, tablet, or computer)."
    )
    ignore = "If you didn't request this sign-in link, you can safely ignore this email."

    html = _render_html(
        title=f"Sign In to {app_name}",
        heading=f"Sign In to {app_name}",
        name=name,
        paragraphs=[action],
        button="Sign In",
        url=sign_in_url,
        notice=notice,
        ignore=ignore,
        app_name=app_name,
    )

    text = f"""Sign In to {app_name}

Hi {name},

Sign in to your account by visiting this link:
{sign_in_url}

Important: {notice}

{ignore}

---
{app_name}
This is an automated message, please do not reply to this email.
"""
    return EmailContent(subject=f"Sign In to Your Account - {app_name}", html=html, text=text)


def render_welcome_email(app_name: str, name: str, app_url: str | None = None) -> EmailContent:
    """Email sent once, when the first verification creates the user."""
    intro = f"Thank you for joining {app_name}! We're excited to help you manage your artist finances with ease."
    features = [
        "Track your income and expenses",
        "Manage your artist profile",
        "View financial reports and analytics",
        "Access your data anytime, anywhere",
    ]
    ready = "Your account is now active and ready to use. Start by exploring the dashboard!"
    notice = "If you have any questions or need assistance, feel free to reach out to our support team."

    html = _render_html(
        title=f"Welcome to {app_name}",
        heading=f"Welcome to {app_name}!",
        name=name,
        paragraphs=[intro, "What you can do:", *features, ready],
        button=f"Open {app_name}" if app_url else None,
        url=app_url,
        notice=notice,
        app_name=app_name,
    )

    feature_lines = "\n".join(f"- {feature}" for feature in features)
    link = f"\n{app_url}\n" if app_url else ""
    text = f"""Welcome to {app_name}!

Hi {name},

{intro}

What you can do:
{feature_lines}

{ready}
{link}
{notice}

---
{app_name}
This is an automated message, please do not reply to this email.
"""
    return EmailContent(subject=f"Welcome to {app_name}!", html=html, text=text)


def render_login_notification_email(
    app_name: str,
    name: str,
    device_info: str,
    ip_address: str,
    signed_in_at: datetime,
) -> EmailContent:
    """Security alert for a sign-in to an existing account."""
    intro = f"We detected a new login to your {app_name} account."
    details = [
        ("Device", device_info),
        ("IP Address", ip_address),
        ("Time", signed_in_at.strftime("%Y-%m-%d %H:%M UTC")),
    ]
    recognized = "Was this you? If you recognize this activity, no action is needed. Your account is secure."
    notice = (
        "If this wasn't you, review your account activity and contact our support team "
        "if you notice anything suspicious."
    )

    html = _render_html(
        title=f"New Login - {app_name}",
        heading="Security Alert",
        name=name,
        paragraphs=[intro],
        details=details,
        notice=notice,
        ignore=recognized,
        app_name=app_name,
    )

    detail_lines = "\n".join(f"- {label}: {value}" for label, value in details)
    text = f"""Security Alert

Hi {name},

{intro}

Login Details:
{detail_lines}

{recognized}

Important: {notice}

---
{app_name}
This is an automated message, please do not reply to this email.
"""
    return EmailContent(subject=f"New Login to Your {app_name} Account", html=html, text=text)
