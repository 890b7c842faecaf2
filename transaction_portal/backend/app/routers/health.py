# backend/app/routers/health.py
from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", response_model=dict)
def health(request: Request):
    settings = request.app.state.settings
    return {"ok": True, "env": settings.app_env, "version": settings.app_version}
