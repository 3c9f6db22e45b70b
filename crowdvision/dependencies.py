# crowdvision/dependencies.py
"""FastAPI dependencies that hand routers the app-scoped monitoring objects."""

from fastapi import Request

from crowdvision.services.monitoring_service import MonitoringOrchestrator
from crowdvision.services.refresh_scheduler import RefreshScheduler


def get_monitor(request: Request) -> MonitoringOrchestrator:
    """The orchestrator created at startup (see main.startup)."""
    return request.app.state.monitor


def get_scheduler(request: Request) -> RefreshScheduler:
    return request.app.state.scheduler
