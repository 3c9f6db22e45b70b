# crowdvision/main.py
"""
FastAPI application entry point.
Includes middleware, domain error handlers, all routers, and the lifecycle of
the monitoring state + alert refresh scheduler.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from crowdvision.routers import alerts, detections, health, monitoring, parking, prediction
from crowdvision.database import create_tables
from crowdvision.config import settings
from crowdvision.errors import (
    EmptyFleetError, InvalidInputError, InvalidTransitionError,
    UnknownAlertError, UnknownSlotError, UnknownZoneError,
)
from crowdvision.services.monitoring_service import MonitoringOrchestrator, MonitoringState
from crowdvision.services.refresh_scheduler import RefreshScheduler
from crowdvision.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="CrowdVision Analytics API",
    description="Crowd density, alerting, parking occupancy and predictive risk backend.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the dashboard to call the API) ───────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key check for command endpoints (POST).
    Read endpoints and the sensor feed stay open; sensors don't send keys.
    Set API_KEY in .env. Leave empty to disable.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/detect", "/api/v1/reports", "/api/v1/parking/refresh"}
        if request.method == "GET" or request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handlers ────────────────────────────────────────────────────
def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    logger.info(f"Rejected transition on {request.url.path}: {exc}")
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    logger.info(f"Invalid input on {request.url.path}: {exc}")
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(UnknownSlotError)
@app.exception_handler(UnknownZoneError)
@app.exception_handler(UnknownAlertError)
async def not_found_handler(request: Request, exc: Exception):
    logger.info(f"Lookup failed on {request.url.path}: {exc}")
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(EmptyFleetError)
async def empty_fleet_handler(request: Request, exc: EmptyFleetError):
    return _error(status.HTTP_409_CONFLICT, exc)


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(monitoring.router, prefix="/api/v1", tags=["📊 Monitoring"])
app.include_router(detections.router, prefix="/api/v1", tags=["📡 Detections"])
app.include_router(alerts.router,     prefix="/api/v1", tags=["🔔 Alerts"])
app.include_router(parking.router,    prefix="/api/v1", tags=["🅿️  Parking"])
app.include_router(prediction.router, prefix="/api/v1", tags=["🔮 Prediction"])
app.include_router(health.router,     prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 CrowdVision backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")

    state = MonitoringState.from_settings(settings)
    app.state.monitor = MonitoringOrchestrator(state)
    app.state.scheduler = RefreshScheduler(app.state.monitor.refresh_alerts, settings.ALERT_REFRESH_SECONDS)
    app.state.scheduler.start()

    logger.info(f"🗺  Zones configured: {[z.name for z in state.zones]}")
    logger.info(f"🅿️  Parking slots provisioned: {len(state.parking.slots())}")
    logger.info(f"🔮 Inference: {'enabled' if settings.INFERENCE_API_KEY else 'fallback only'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 CrowdVision backend shutting down...")
    await app.state.scheduler.stop()
    app.state.monitor.close()
