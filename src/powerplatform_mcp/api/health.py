"""Health check endpoints."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

_START_TIME = time.monotonic()


@router.get("/health")
async def health() -> dict[str, str]:
    """Basic health check -- always returns quickly."""
    return {"status": "ok"}


@router.get("/health/detailed")
async def health_detailed(request: Request) -> dict[str, Any]:
    """Detailed health check including Dataverse reachability."""
    from powerplatform_mcp import __version__

    checks: dict[str, Any] = {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(time.monotonic() - _START_TIME, 1),
        "components": {},
    }

    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        checks["components"]["service"] = {"status": "unconfigured"}
        checks["status"] = "degraded"
        return checks

    try:
        healthy = await registry.service.health_check()
    except Exception as e:
        checks["components"]["service"] = {"status": "error", "detail": str(e)}
        checks["status"] = "degraded"
        return checks

    checks["components"]["service"] = {"status": "ok" if healthy else "unhealthy"}
    if not healthy:
        checks["status"] = "degraded"
    checks["components"]["tools"] = {"count": len(registry)}
    return checks
