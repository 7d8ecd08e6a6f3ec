"""
Configuration management for the intervention scheduling API.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Intervention Scheduling API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Scheduler defaults
    default_session_duration: int = 30  # minutes, when neither session nor group says otherwise
    day_start_hour: int = 7
    day_end_hour: int = 17
    time_step_minutes: int = 15

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
