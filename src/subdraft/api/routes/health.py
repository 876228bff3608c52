# src/subdraft/api/routes/health.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from subdraft.api import __version__
from subdraft.api.config import load_config
from subdraft.api.metrics import metrics
from subdraft.api.services.transcripts_service import get_drafts
from subdraft.core.drafts.service import DraftPublishStore
from subdraft.utils.logger import get_logger

logger = get_logger("subdraft.api")

router = APIRouter(tags=["ops"])


@router.get("/health")
def health() -> dict:
    """
    Human/debug-friendly health: includes config surface that is safe to expose.
    """
    cfg = load_config()
    return {
        "ok": True,
        "service": "subdraft-api",
        "version": __version__,
        "store": cfg.store,
        "autosave_interval_sec": cfg.autosave_interval_sec,
        "last_duration_sec": cfg.last_duration_sec,
    }


@router.get("/healthz")
def healthz() -> dict:
    """Liveness: never touches the store."""
    return {"ok": True}


@router.get("/readyz")
def readyz(drafts: DraftPublishStore = Depends(get_drafts)):
    """Readiness: the transcript store answers."""
    try:
        drafts.store.ping()
    except Exception as e:
        logger.warning(f"READYZ_FAILED err={e}")
        return JSONResponse(status_code=503, content={"ok": False, "error": str(e)})
    return {"ok": True}


@router.get("/metrics")
def prom_metrics() -> Response:
    body = metrics().to_prometheus_text()
    return Response(content=body, media_type="text/plain; version=0.0.4; charset=utf-8")
