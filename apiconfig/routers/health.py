from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    ready_payload = _readiness_payload(request)
    status = 200 if ready_payload["status"] == "ok" else 503
    payload = {"liveliness": "ok", "readiness": ready_payload}
    return JSONResponse(status_code=status, content=payload)


@router.get("/health/liveliness")
async def liveliness() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/readiness")
async def readiness(request: Request) -> JSONResponse:
    payload = _readiness_payload(request)
    status = 200 if payload["status"] == "ok" else 503
    return JSONResponse(status_code=status, content=payload)


@router.get("/health/config")
async def config_health(request: Request) -> JSONResponse:
    published = getattr(request.app.state, "published_config", None)
    if published is None:
        return JSONResponse(status_code=503, content={"status": "unavailable", "published": None})

    snapshot = published.snapshot
    poll_state = getattr(request.app.state, "poll_state", None)
    payload = {
        "status": "ok",
        "published": {
            "version": snapshot.version,
            "published_at": snapshot.published_at,
            "source_version": snapshot.source_version,
            "counts": snapshot.config.counts(),
        },
        "poll_state": poll_state.as_dict() if poll_state is not None else None,
    }
    return JSONResponse(status_code=200, content=payload)


def _readiness_payload(request: Request) -> dict[str, object]:
    published = getattr(request.app.state, "published_config", None)
    checks = {"config": published is not None}
    status = "ok" if all(checks.values()) else "degraded"
    return {"status": status, "checks": checks}
