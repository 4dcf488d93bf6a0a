"""
Tests for alert dispatch and notifiers.
"""

import smtplib
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from models.config import NotifyConfig
from models.errors import NotificationError
from models.verdict import SubjectIdentity, Verdict
from notify import (
    DEFAULT_ALERT_MESSAGE,
    EmailNotifier,
    LogNotifier,
    create_notifier_from_config,
    dispatch_alert,
)

EVIDENCE = b"\x89PNG\r\n\x1a\nfake"


def _positive():
    return Verdict(
        has_unauthorized_material=True,
        evidence_image=EVIDENCE,
        subject=SubjectIdentity("Asha Rao", "21CS042"),
        timestamp=datetime(2026, 3, 1, 9, 30, 5, tzinfo=timezone.utc),
        frames_scanned=8,
        flagged_frames=(2,),
    )


def _email_notifier(**overrides):
    kwargs = dict(
        host="smtp.example.edu",
        port=587,
        sender="scanner@example.edu",
        recipients=["invigilator@example.edu", "office@example.edu"],
        username="scanner@example.edu",
        password="app-password",
    )
    kwargs.update(overrides)
    return EmailNotifier(**kwargs)


class TestDispatchAlert:
    def test_sends_when_opted_in(self):
        notifier = MagicMock()
        verdict = _positive()

        assert dispatch_alert(verdict, notifier, opted_in=True) is True
        notifier.send.assert_called_once_with(verdict)

    def test_not_opted_in(self):
        notifier = MagicMock()
        assert dispatch_alert(_positive(), notifier, opted_in=False) is False
        notifier.send.assert_not_called()

    def test_negative_verdict_never_alerts(self):
        notifier = MagicMock()
        assert dispatch_alert(Verdict(has_unauthorized_material=False), notifier, opted_in=True) is False
        notifier.send.assert_not_called()

    def test_delivery_failure_isolated(self):
        notifier = MagicMock()
        notifier.send.side_effect = NotificationError("relay down")
        verdict = _positive()

        assert dispatch_alert(verdict, notifier, opted_in=True) is False
        assert verdict.has_unauthorized_material is True

    def test_log_notifier(self, caplog):
        with caplog.at_level("WARNING"):
            assert dispatch_alert(_positive(), LogNotifier(), opted_in=True) is True
        assert DEFAULT_ALERT_MESSAGE in caplog.text
        assert "21CS042" in caplog.text


class TestEmailNotifier:
    def test_requires_recipients(self):
        with pytest.raises(ValueError):
            _email_notifier(recipients=[])

    def test_build_message(self):
        msg = _email_notifier().build_message(_positive())

        assert msg["Subject"] == "Entry scan alert: Asha Rao (Roll: 21CS042)"
        assert msg["To"] == "invigilator@example.edu, office@example.edu"
        body = msg.get_body(preferencelist=("plain",)).get_content()
        assert DEFAULT_ALERT_MESSAGE in body
        assert "Student: Asha Rao" in body
        assert "Roll No: 21CS042" in body

        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "evidence_20260301_093005.png"
        assert attachments[0].get_content_type() == "image/png"
        assert attachments[0].get_content() == EVIDENCE

    def test_send(self):
        with patch("notify.smtp.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            _email_notifier().send(_positive())

        smtp_cls.assert_called_once_with("smtp.example.edu", 587, timeout=15.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("scanner@example.edu", "app-password")
        server.send_message.assert_called_once()

    def test_send_without_login(self):
        with patch("notify.smtp.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            _email_notifier(username=None, password=None).send(_positive())

        server.login.assert_not_called()

    def test_smtp_error_wrapped(self):
        with patch("notify.smtp.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

            with pytest.raises(NotificationError):
                _email_notifier().send(_positive())

    def test_connection_error_wrapped(self):
        with patch("notify.smtp.smtplib.SMTP", side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(NotificationError):
                _email_notifier().send(_positive())


class TestCreateNotifierFromConfig:
    def test_default_is_log(self):
        assert isinstance(create_notifier_from_config({}), LogNotifier)

    def test_defaults_come_from_notify_config(self):
        notifier = create_notifier_from_config({})
        assert notifier.alert_message == NotifyConfig().alert_message == DEFAULT_ALERT_MESSAGE

    def test_email(self):
        notifier = create_notifier_from_config({
            "backend": "email",
            "smtp_host": "smtp.example.edu",
            "smtp_port": 2525,
            "username": "scanner@example.edu",
            "recipients": ["invigilator@example.edu"],
            "alert_message": "Check this student.",
        })

        assert isinstance(notifier, EmailNotifier)
        assert notifier.port == 2525
        assert notifier.sender == "scanner@example.edu"
        assert notifier.alert_message == "Check this student."

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_notifier_from_config({"backend": "sms"})
