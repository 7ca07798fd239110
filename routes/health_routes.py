"""
Health check endpoint.

GET /health reports MongoDB and Redis connectivity plus the resulting state
of the OTP send throttle. Without MongoDB no account can be read, so the
service is "unhealthy" (503). Redis only backs the throttle, so losing it
leaves the service "degraded" (200) with the throttle failing open.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies import get_db, get_redis

router = APIRouter(tags=["health"])

# redis check -> OTP throttle state
_THROTTLE_STATE = {
    "ok": "enabled",
    "error": "failing_open",
    "not_configured": "disabled",
}


async def _ping_mongo(db) -> str:
    try:
        await db.client.admin.command("ping")
    except Exception:
        return "error"
    return "ok"


async def _ping_redis(redis) -> str:
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
    except Exception:
        return "error"
    return "ok"


@router.get("/health")
async def health_check(db=Depends(get_db), redis=Depends(get_redis)) -> JSONResponse:
    checks = {"mongodb": await _ping_mongo(db), "redis": await _ping_redis(redis)}

    if checks["mongodb"] != "ok":
        overall, status_code = "unhealthy", 503
    elif checks["redis"] != "ok":
        overall, status_code = "degraded", 200
    else:
        overall, status_code = "healthy", 200

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "otp_throttle": _THROTTLE_STATE[checks["redis"]],
        },
    )
