from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from detection.classifier import ClassifierSignal
from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuBackend
from models.config import ClassifierConfig
from models.verdict import SubjectIdentity, Verdict
from notify import Notifier, create_notifier_from_config, dispatch_alert
from observation import ObservationSource, create_source_from_config
from pipeline.session import ScanSession, create_session_from_config


@dataclass
class ScanContext:
    """
    Holds runtime state and service references; avoids global singletons.

    Initialisation order: open the source, load the classifier, then accept
    scans. `scan()` enforces it by raising SourceUnavailable / ModelNotReady.
    """

    config: dict
    source: ObservationSource
    classifier: ClassifierSignal
    session: ScanSession
    notifier: Notifier
    subject: SubjectIdentity = field(default_factory=SubjectIdentity)
    last_verdict: Optional[Verdict] = None
    last_alert_sent: Optional[bool] = None

    def set_subject(self, name: Optional[str], roll_number: Optional[str]) -> SubjectIdentity:
        self.subject = SubjectIdentity.from_input(name, roll_number)
        logging.info(f"Subject set: {self.subject.name} (Roll: {self.subject.roll_number})")
        return self.subject

    async def scan(self, notify: bool = False) -> Verdict:
        """Run one scan for the current subject and dispatch the alert if asked to."""
        verdict = await self.session.scan(self.subject)
        self.last_verdict = verdict
        self.last_alert_sent = None
        if notify and verdict.has_unauthorized_material:
            self.last_alert_sent = await asyncio.to_thread(dispatch_alert, verdict, self.notifier, True)
        return verdict

    def health(self) -> Dict[str, Any]:
        error = self.classifier.load_error
        return {
            "model_ready": self.classifier.is_ready,
            "model_error": str(error) if error else None,
            "source_open": self.source.is_open,
            "source_id": self.source.source_id,
            "scanning": self.session.is_scanning,
        }

    def close(self) -> None:
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")


def create_classifier_from_config(classifier_cfg: Dict[str, Any]) -> ClassifierSignal:
    """ClassifierSignal with a deferred YOLO backend; call load() before scanning."""
    cfg = ClassifierConfig.from_dict(classifier_cfg)
    if cfg.backend != "yolo":
        raise ValueError(f"Unknown classifier backend: {cfg.backend}")

    yolo_cfg = CpuYoloConfig(
        model=cfg.model,
        conf_threshold=cfg.conf_threshold,
        iou_threshold=cfg.iou_threshold,
    )
    return ClassifierSignal(cfg.allow_list, backend_factory=lambda: UltralyticsCpuBackend(yolo_cfg))


def create_context_from_config(config: Dict[str, Any]) -> ScanContext:
    """
    Wire source, classifier, session and notifier from the config dict.

    Nothing is opened or loaded here.
    """
    source = create_source_from_config(config.get("camera", {}) or {})
    classifier = create_classifier_from_config(config.get("classifier", {}) or {})
    session = create_session_from_config(config, source, classifier)
    notifier = create_notifier_from_config(config.get("notify", {}) or {})
    return ScanContext(
        config=config,
        source=source,
        classifier=classifier,
        session=session,
        notifier=notifier,
    )
