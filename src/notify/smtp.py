"""
Email notifier: sends the alert with the PNG evidence attached.
"""

from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Sequence

from models.errors import NotificationError
from models.verdict import Verdict
from .base import DEFAULT_ALERT_MESSAGE


class EmailNotifier:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipients: Sequence[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
        alert_message: str = DEFAULT_ALERT_MESSAGE,
        timeout: float = 15.0,
    ):
        if not recipients:
            raise ValueError("EmailNotifier needs at least one recipient")
        self.host = host
        self.port = port
        self.sender = sender
        self.recipients = list(recipients)
        self.username = username
        self.password = password
        self.alert_message = alert_message
        self.timeout = timeout

    def build_message(self, verdict: Verdict) -> EmailMessage:
        subject = verdict.subject
        ts = verdict.timestamp.isoformat()

        msg = EmailMessage()
        msg["Subject"] = f"Entry scan alert: {subject.name} (Roll: {subject.roll_number})"
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        msg.set_content(
            f"{self.alert_message}\n\n"
            f"Student: {subject.name}\n"
            f"Roll No: {subject.roll_number}\n"
            f"Time: {ts}\n"
        )
        if verdict.evidence_image:
            msg.add_attachment(
                verdict.evidence_image,
                maintype="image",
                subtype="png",
                filename=f"evidence_{verdict.timestamp.strftime('%Y%m%d_%H%M%S')}.png",
            )
        return msg

    def send(self, verdict: Verdict) -> None:
        msg = self.build_message(verdict)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {self.host}:{self.port} failed: {e}") from e
