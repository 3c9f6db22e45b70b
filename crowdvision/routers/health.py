# crowdvision/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + refresh scheduler + inference service reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from crowdvision.database import get_db
from crowdvision.config import settings
from crowdvision.dependencies import get_scheduler
from crowdvision.services.refresh_scheduler import RefreshScheduler, SchedulerState
from datetime import datetime, timezone

router = APIRouter()


def _check_inference() -> str:
    """
    GET the configured model resource. 200 reports "ok", any other status
    reports "http_<code>", and a request that never completes reports why.
    """
    if not settings.INFERENCE_API_KEY:
        return "disabled"
    try:
        resp = requests.get(
            f"{settings.INFERENCE_BASE_URL.rstrip('/')}/models/{settings.INFERENCE_MODEL}",
            headers={"x-goog-api-key": settings.INFERENCE_API_KEY},
            timeout=3,
        )
        return "ok" if resp.status_code == 200 else f"http_{resp.status_code}"
    except requests.exceptions.ConnectionError:
        return "unreachable"
    except requests.exceptions.Timeout:
        return "timeout"
    except requests.exceptions.RequestException as e:
        return f"error: {type(e).__name__}"


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db), scheduler: RefreshScheduler = Depends(get_scheduler)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Alert refresh scheduler state
    - Inference service reachability (fallback keeps predictions working either way)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "database": "unknown",
        "scheduler": scheduler.state.value,
        "inference": _check_inference(),
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if scheduler.state is SchedulerState.STOPPED:
        result["status"] = "degraded"

    return result
