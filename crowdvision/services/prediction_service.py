# crowdvision/services/prediction_service.py
"""
Predictive Risk Adapter — asks an external generative model for a one-hour
congestion forecast and validates the structured reply.

Endpoint: POST {INFERENCE_BASE_URL}/models/{INFERENCE_MODEL}:generateContent
The request pins the reply to a JSON schema:
    {riskScore: number 0-100, forecastedCount: integer >= 0, recommendations: [string]}

Callers never see an error from predict(): transport failures, timeouts,
empty bodies, bad JSON and schema mismatches are retried once and then
replaced by the deterministic fallback.
"""

import asyncio
import json
from dataclasses import asdict, is_dataclass
from datetime import datetime

import httpx
from pydantic import ValidationError

from crowdvision.config import settings
from crowdvision.domain import PredictionResult
from crowdvision.errors import RemoteInferenceError
from crowdvision.schemas.prediction import PredictionOut
from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_RISK_SCORE = 45
FALLBACK_FORECAST_DELTA = 100
FALLBACK_RECOMMENDATIONS = ("Maintain current surveillance", "Monitor exit flow")

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "riskScore": {"type": "NUMBER", "description": "Risk score from 0 to 100"},
        "forecastedCount": {"type": "INTEGER", "description": "Expected count in 60 mins"},
        "recommendations": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Actionable crowd control measures",
        },
    },
    "required": ["riskScore", "forecastedCount", "recommendations"],
}


def fallback_prediction(current_count: int) -> PredictionResult:
    return PredictionResult(
        risk_score=FALLBACK_RISK_SCORE,
        forecasted_count=max(0, current_count) + FALLBACK_FORECAST_DELTA,
        recommendations=list(FALLBACK_RECOMMENDATIONS),
    )


def _trend_item(point):
    if is_dataclass(point):
        point = asdict(point)
    if isinstance(point, dict):
        return {k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in point.items()}
    return point


class PredictiveRiskAdapter:
    def __init__(self, api_key=None, base_url=None, model=None, timeout=None,
                 max_attempts=None, venue=None, transport=None):
        self.api_key = api_key if api_key is not None else settings.INFERENCE_API_KEY
        self.base_url = (base_url or settings.INFERENCE_BASE_URL).rstrip("/")
        self.model = model or settings.INFERENCE_MODEL
        self.timeout = timeout if timeout is not None else settings.INFERENCE_TIMEOUT_SECONDS
        self.max_attempts = max_attempts if max_attempts is not None else settings.INFERENCE_MAX_ATTEMPTS
        self.venue = venue or settings.FACILITY_NAME
        self._transport = transport   # httpx transport override, used by tests

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_prompt(self, current_count, density, recent_trend) -> str:
        density_label = getattr(density, "value", density)
        trend = json.dumps([_trend_item(p) for p in recent_trend or []])
        return (
            f"Analyze current crowd metrics for {self.venue}:\n"
            f"    - Current Count: {current_count}\n"
            f"    - Current Density: {density_label}\n"
            f"    - Recent Trend: {trend}\n\n"
            "Predict congestion risk for the next hour and provide management recommendations.\n"
            'Focus on "Predictive Crowd Prevention" strategies.'
        )

    def build_request(self, current_count, density, recent_trend) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": self.build_prompt(current_count, density, recent_trend)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def _call_remote(self, client: httpx.AsyncClient, body: dict) -> PredictionResult:
        response = await client.post(self.endpoint, json=body, headers={"x-goog-api-key": self.api_key})
        if response.status_code != 200:
            raise RemoteInferenceError(f"Inference service returned HTTP {response.status_code}")
        if not response.content:
            raise RemoteInferenceError("Inference service returned an empty body")

        try:
            envelope = response.json()
            text = envelope["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteInferenceError(f"Unexpected inference envelope: {e}") from e

        text = (text or "").strip()
        if not text:
            raise RemoteInferenceError("No text content returned from the model")

        try:
            parsed = PredictionOut.model_validate(json.loads(text))
        except (ValueError, ValidationError) as e:
            raise RemoteInferenceError(f"Model reply failed schema validation: {e}") from e

        return PredictionResult(
            risk_score=parsed.risk_score,
            forecasted_count=parsed.forecasted_count,
            recommendations=list(parsed.recommendations),
        )

    async def predict_with_status(self, current_count, density, recent_trend=()):
        """Returns (result, degraded). degraded is True when the fallback was used."""
        if not self.api_key:
            logger.info("[PREDICT] No inference API key configured — using fallback heuristic")
            return fallback_prediction(current_count), True

        body = self.build_request(current_count, density, recent_trend)
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = await asyncio.wait_for(self._call_remote(client, body), timeout=self.timeout)
                    logger.info(
                        f"[PREDICT] risk={result.risk_score} forecast={result.forecasted_count} "
                        f"(attempt {attempt})"
                    )
                    return result, False
                except asyncio.TimeoutError:
                    logger.warning(f"[PREDICT] Attempt {attempt} timed out after {self.timeout}s")
                except (httpx.HTTPError, RemoteInferenceError) as e:
                    logger.warning(f"[PREDICT] Attempt {attempt} failed: {e}")
                except Exception as e:
                    logger.error(f"[PREDICT] Attempt {attempt} unexpected error: {e}", exc_info=True)

        logger.warning(f"[PREDICT] All {self.max_attempts} attempts failed — using fallback heuristic")
        return fallback_prediction(current_count), True

    async def predict(self, current_count, density, recent_trend=()) -> PredictionResult:
        result, _ = await self.predict_with_status(current_count, density, recent_trend)
        return result
