"""
Alert notifiers.

A notifier consumes a completed positive Verdict. Delivery problems are
isolated here: they are logged and never change the verdict.
"""

from __future__ import annotations

import logging
from typing import Protocol

from models.config import DEFAULT_ALERT_MESSAGE
from models.verdict import Verdict


class Notifier(Protocol):
    def send(self, verdict: Verdict) -> None:
        ...


class LogNotifier:
    """Writes the alert to the log. Used when no delivery channel is configured."""

    def __init__(self, alert_message: str = DEFAULT_ALERT_MESSAGE):
        self.alert_message = alert_message

    def send(self, verdict: Verdict) -> None:
        logging.warning(
            f"ALERT: {self.alert_message} subject={verdict.subject.name} "
            f"roll={verdict.subject.roll_number} at={verdict.timestamp.isoformat()} "
            f"evidence_bytes={len(verdict.evidence_image or b'')}"
        )


def dispatch_alert(verdict: Verdict, notifier: Notifier, opted_in: bool) -> bool:
    """
    Send an alert for a positive verdict if the operator opted in.

    Returns True if an alert was delivered.
    """
    if not opted_in or not verdict.has_unauthorized_material:
        return False
    try:
        notifier.send(verdict)
    except Exception as e:
        logging.warning(f"Alert delivery failed ({type(notifier).__name__}): {e}")
        return False
    logging.info(f"Alert sent for {verdict.subject.name} ({verdict.subject.roll_number})")
    return True
