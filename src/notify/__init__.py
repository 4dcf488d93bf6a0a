"""
Outbound alerts for positive verdicts.
"""

from __future__ import annotations

from typing import Any, Dict

from models.config import NotifyConfig
from .base import DEFAULT_ALERT_MESSAGE, LogNotifier, Notifier, dispatch_alert
from .smtp import EmailNotifier


def create_notifier_from_config(notify_cfg: Dict[str, Any]) -> Notifier:
    """Build the notifier named by notify.backend ("log" or "email")."""
    cfg = NotifyConfig.from_dict(notify_cfg)
    if cfg.backend == "email":
        return EmailNotifier(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            sender=cfg.sender or cfg.username or "",
            recipients=cfg.recipients,
            username=cfg.username,
            password=cfg.password,
            alert_message=cfg.alert_message,
        )
    if cfg.backend == "log":
        return LogNotifier(alert_message=cfg.alert_message)
    raise ValueError(f"Unknown notify backend: {cfg.backend}")


__all__ = [
    "DEFAULT_ALERT_MESSAGE",
    "EmailNotifier",
    "LogNotifier",
    "Notifier",
    "create_notifier_from_config",
    "dispatch_alert",
]
