# src/subdraft/api/routes/__init__.py
from __future__ import annotations

from fastapi import APIRouter

from subdraft.api.routes.health import router as ops_router
from subdraft.api.routes.transcripts import router as transcripts_router

api_router = APIRouter()
api_router.include_router(ops_router)
api_router.include_router(transcripts_router)
