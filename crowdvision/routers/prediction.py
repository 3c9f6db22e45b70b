# crowdvision/routers/prediction.py
"""
Predictive risk endpoint. Always answers 200 with a well-formed prediction;
X-Prediction-Degraded: true marks the heuristic fallback.
"""

from fastapi import APIRouter, Depends, Response

from crowdvision.dependencies import get_monitor
from crowdvision.schemas.prediction import PredictionOut, PredictionRequest
from crowdvision.services.monitoring_service import MonitoringOrchestrator

router = APIRouter()


@router.post("/predict", response_model=PredictionOut, summary="One-hour congestion forecast")
async def predict(body: PredictionRequest, response: Response,
                  monitor: MonitoringOrchestrator = Depends(get_monitor)):
    result, degraded = await monitor.predict(body.current_count, body.density, body.recent_trend)
    response.headers["X-Prediction-Degraded"] = "true" if degraded else "false"
    return PredictionOut(
        risk_score=result.risk_score,
        forecasted_count=result.forecasted_count,
        recommendations=result.recommendations,
    )
