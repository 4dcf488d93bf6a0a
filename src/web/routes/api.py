from __future__ import annotations

from typing import Optional

import cv2
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from models.verdict import Verdict
from runtime.context import ScanContext
from ..api_models import (
    HealthResponse,
    ScanRequest,
    SubjectRequest,
    SubjectResponse,
    VerdictResponse,
)

router = APIRouter()


def _ctx(request: Request) -> ScanContext:
    return request.app.state.ctx


def _result_text(verdict: Verdict) -> str:
    return "Result: PAPERS/SLIPS - YES" if verdict.has_unauthorized_material else "Result: PAPERS/SLIPS - NO"


def _verdict_response(verdict: Verdict, alert_sent=None) -> VerdictResponse:
    d = verdict.to_dict()
    return VerdictResponse(
        **d,
        result_text=_result_text(verdict),
        alert_sent=alert_sent,
    )


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    return _ctx(request).health()


@router.get("/subject", response_model=SubjectResponse)
def get_subject(request: Request):
    return _ctx(request).subject.to_dict()


@router.put("/subject", response_model=SubjectResponse)
def set_subject(body: SubjectRequest, request: Request):
    subject = _ctx(request).set_subject(body.name, body.roll_number)
    return subject.to_dict()


@router.post("/scan", response_model=VerdictResponse)
async def scan(request: Request, body: Optional[ScanRequest] = None):
    """
    Run one scan for the current subject.

    Errors map to: model not ready / source unavailable -> 503,
    scan already running -> 409, inference failure -> 500.
    """
    ctx = _ctx(request)
    verdict = await ctx.scan(notify=body.notify if body is not None else False)
    return _verdict_response(verdict, ctx.last_alert_sent)


@router.get("/verdict/latest", response_model=VerdictResponse)
def latest_verdict(request: Request):
    ctx = _ctx(request)
    if ctx.last_verdict is None:
        raise HTTPException(status_code=404, detail="No scan has completed yet")
    return _verdict_response(ctx.last_verdict, ctx.last_alert_sent)


@router.get("/verdict/latest/evidence")
def latest_evidence(request: Request):
    verdict = _ctx(request).last_verdict
    if verdict is None or verdict.evidence_image is None:
        raise HTTPException(status_code=404, detail="No evidence available")
    return Response(content=verdict.evidence_image, media_type="image/png")


@router.get("/frame/latest")
def latest_frame(request: Request):
    frame = request.app.state.frames.get_frame()
    if frame is None:
        raise HTTPException(status_code=404, detail="No frame scanned yet")
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode JPEG")
    return Response(content=buf.tobytes(), media_type="image/jpeg")
