# crowdvision/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings
from typing import Optional


class ZoneConfig(BaseModel):
    """A monitored zone and the rectangle of heatmap cells it projects onto (inclusive)."""
    id: str
    name: str
    x0: int
    y0: int
    x1: int
    y1: int


DEFAULT_ZONES = [
    ZoneConfig(id="north-gate",     name="North Gate",     x0=0, y0=0, x1=9, y1=1),
    ZoneConfig(id="west-concourse", name="West Concourse", x0=0, y0=2, x1=2, y1=7),
    ZoneConfig(id="central-plaza",  name="Central Plaza",  x0=3, y0=2, x1=6, y1=7),
    ZoneConfig(id="east-concourse", name="East Concourse", x0=7, y0=2, x1=9, y1=7),
    ZoneConfig(id="south-exit",     name="South Exit",     x0=0, y0=8, x1=9, y1=9),
]


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./crowdvision.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on command endpoints

    # ── Facility ──────────────────────────────────────────────────────────
    FACILITY_NAME: str = "Main Stadium"
    FACILITY_ZONES: list[ZoneConfig] = DEFAULT_ZONES

    # ── Density thresholds ────────────────────────────────────────────────
    DENSITY_MEDIUM_THRESHOLD: int = 50       # count > 50  → MEDIUM
    DENSITY_HIGH_THRESHOLD: int = 100        # count > 100 → HIGH
    DENSITY_CRITICAL_CEILING: int = 110      # count > 110 → CRITICAL

    # ── Heatmap ───────────────────────────────────────────────────────────
    HEATMAP_ROLLING_WINDOW: int = 50         # samples per zone kept for the rolling max

    # ── Temporal trend ────────────────────────────────────────────────────
    TREND_WINDOW_SIZE: int = 13
    TREND_BUCKET_SECONDS: int = 60           # samples in the same bucket replace each other
    TREND_EXPECTED_COUNT: int = 1200         # constant baseline for the expected series

    # ── Parking ───────────────────────────────────────────────────────────
    PARKING_SLOT_COUNT: int = 48
    PARKING_SECTOR_SIZE: int = 12
    PARKING_ALERT_THRESHOLD: float = 0.95    # PARKING/INFO at 95% of a sector

    # ── Alerts ────────────────────────────────────────────────────────────
    ALERT_COOLDOWN_SECONDS: int = 300        # Suppress same (type, zone) within 5 min
    ALERT_REFRESH_SECONDS: float = 10.0

    # ── Predictive inference ──────────────────────────────────────────────
    INFERENCE_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    INFERENCE_MODEL: str = "gemini-3-flash-preview"
    INFERENCE_API_KEY: Optional[str] = None  # No key → heuristic fallback only
    INFERENCE_TIMEOUT_SECONDS: float = 8.0
    INFERENCE_MAX_ATTEMPTS: int = 2

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None            # Defaults to <repo>/logs

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def _check_thresholds(self):
        if not (0 <= self.DENSITY_MEDIUM_THRESHOLD < self.DENSITY_HIGH_THRESHOLD < self.DENSITY_CRITICAL_CEILING):
            raise ValueError("density thresholds must satisfy 0 <= MEDIUM < HIGH < CRITICAL")
        if self.TREND_WINDOW_SIZE < 2:
            raise ValueError("TREND_WINDOW_SIZE must be at least 2")
        if self.PARKING_SECTOR_SIZE < 1:
            raise ValueError("PARKING_SECTOR_SIZE must be positive")
        return self


settings = Settings()
