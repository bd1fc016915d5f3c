"""
健康检查路由
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_app_settings
from application.dtos.payments import HealthResponse
from core.config import Settings

router = APIRouter(tags=["Health"])


def _format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}h{minutes}m{secs}s"


def _health(request: Request, settings: Settings, check: str) -> HealthResponse:
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return HealthResponse(
        status="OK",
        check=check,
        timestamp=datetime.now(timezone.utc),
        version=settings.VERSION,
        uptime=_format_uptime(time.monotonic() - started_at),
    )


@router.get("/health", response_model=HealthResponse)
@router.get("/ping", include_in_schema=False, response_model=HealthResponse)
async def health_check(request: Request, settings: Settings = Depends(get_app_settings)):
    """健康检查"""
    return _health(request, settings, "health")


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(request: Request, settings: Settings = Depends(get_app_settings)):
    return _health(request, settings, "ready")


@router.get("/live", response_model=HealthResponse)
async def liveness_check(request: Request, settings: Settings = Depends(get_app_settings)):
    return _health(request, settings, "live")
