"""Tests for Resend email delivery with the SDK mocked."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from hubauth.errors import EmailDeliveryError
from hubauth.services.email import ResendMailer
from hubauth.services.email_templates import EmailContent

pytestmark = pytest.mark.asyncio(loop_scope="session")

CONTENT = EmailContent(subject="Sign In", html="<p>hi</p>", text="hi")


async def test_send_passes_params_to_resend(settings):
    settings.EMAIL_FROM = "Hub <noreply@hub.test>"
    mailer = ResendMailer(settings)

    with patch("hubauth.services.email.resend.Emails.send") as mock_send:
        await mailer.send("a@x.com", CONTENT)

    mock_send.assert_called_once_with(
        {
            "from": "Hub <noreply@hub.test>",
            "to": ["a@x.com"],
            "subject": "Sign In",
            "html": "<p>hi</p>",
            "text": "hi",
        }
    )


async def test_send_failure_becomes_delivery_error(settings):
    mailer = ResendMailer(settings)

    with patch("hubauth.services.email.resend.Emails.send", side_effect=RuntimeError("boom")):
        with pytest.raises(EmailDeliveryError) as exc_info:
            await mailer.send("a@x.com", CONTENT)

    assert exc_info.value.status_code == 502
    assert isinstance(exc_info.value.__cause__, RuntimeError)


async def test_send_runs_the_sdk_call_off_the_event_loop(settings):
    mailer = ResendMailer(settings)

    with (
        patch("hubauth.services.email.resend.Emails.send") as mock_send,
        patch("hubauth.services.email.asyncio.to_thread", new_callable=AsyncMock) as mock_to_thread,
    ):
        await mailer.send("a@x.com", CONTENT)

    mock_to_thread.assert_awaited_once()
    func, params = mock_to_thread.await_args.args
    assert func is mock_send
    assert params["to"] == ["a@x.com"]
    mock_send.assert_not_called()
