from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import db_ping
from app.redis_client import redis_ping

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok", "env": settings.app_env}

def _probes() -> list[tuple[str, object]]:
    probes = [("db", db_ping)]
    # redis only backs the rate limiter
    if settings.rate_limit_enabled:
        probes.append(("redis", redis_ping))
    return probes

@router.get("/ready")
def ready() -> JSONResponse:
    checks: dict[str, bool] = {}
    errors: dict[str, str] = {}

    for name, fn in _probes():
        try:
            checks[name] = bool(fn())
        except Exception as e:
            checks[name] = False
            errors[name] = f"{e.__class__.__name__}: {e}".rstrip(": ")

    ok = all(checks.values())
    body: dict = {"status": "ok" if ok else "unready", "checks": checks}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=200 if ok else 503, content=body)
