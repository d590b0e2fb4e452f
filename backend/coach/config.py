"""Application configuration."""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Smart Coach"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Pose input
    min_landmark_visibility: float = 0.5  # Frames with any landmark below this are discarded
    analysis_interval_seconds: float = 1.0  # 1 Hz analysis cadence, latest frame wins

    # Rep phase state machine
    phase_hysteresis_frames: int = 2  # Consecutive frames inside next phase range
    phase_history_size: int = 50

    # Form scoring
    form_fault_penalty: float = 2.0
    form_fault_weight: float = 0.5  # 0.5 = plain average of fault score and angle compliance
    angle_compliance_default: float = 8.0  # Used when no key joint can be measured

    # Rest calculation (seconds)
    default_rest_seconds: int = 90
    min_rest_seconds: int = 60
    max_rest_seconds: int = 180
    long_session_minutes: float = 60.0
    high_fatigue_level: float = 7.0
    low_intensity_rpe: float = 6.0
    very_high_rpe: float = 9.0
    hot_temperature: float = 25.0  # Celsius
    cold_temperature: float = 15.0

    # Adaptation rules
    default_user_age: int = 30  # Only when the profile has neither age nor max heart rate
    max_heart_rate_percent: float = 90.0
    form_score_threshold: float = 70.0  # 0-100 scale
    low_completion_rate: float = 0.6

    # Session history / export
    frame_export_limit: int = 30
    completed_history_size: int = 20  # Completed sessions kept per orchestrator
    target_session_minutes: float = 60.0

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
