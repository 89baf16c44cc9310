"""Configuration settings for Cadence."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Scheduler
    scheduler_timezone: str = "UTC"
    scheduler_job_defaults: dict = {
        "coalesce": True,
        "max_instances": 1,
        "misfire_grace_time": 30
    }

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # Empty disables the file handler

    class Config:
        env_prefix = "CADENCE_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
