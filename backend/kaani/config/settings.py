# /kaani/config/settings.py

import os
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
DEFAULT_FLOWS_DIR = os.path.join(BASE_DIR, "flows", "v1")


class Settings(BaseSettings):
    # Deployment
    environment: str = "production"
    deployment_profile: str = "DEV"
    api_version: str = "v1"
    workers: int = 4

    # Flow definitions
    flows_dir: str = DEFAULT_FLOWS_DIR
    strict_flow_validation: bool = False
    default_flow_id: str = "default"

    # Conversation turn behaviour
    history_limit: int = 20
    generation_timeout_seconds: float = 20.0

    # AI APIs
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # Persistence (None keeps conversations in process memory)
    mongo_uri: Optional[str] = None
    max_pool_size: int = 10
    min_pool_size: int = 1

    # HTTP
    cors_allowed_origins: str = ""
    allowed_hosts: str = ""
    request_timeout_seconds: float = 30.0

    # Security / observability
    rate_limit_per_minute: int = 60
    log_hash_salt: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------- Validators ---------------- #

    @field_validator("deployment_profile", mode="before")
    @classmethod
    def normalize_deployment_profile(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or "DEV"
        return v

    @field_validator("gemini_model")
    @classmethod
    def never_use_deprecated_gemini_pro(cls, v: str) -> str:
        # gemini-pro was retired; keep deployments that still pin it working
        if not v or v.strip() == "gemini-pro":
            return "gemini-1.5-flash"
        return v.strip()

    @field_validator("history_limit")
    @classmethod
    def history_limit_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("HISTORY_LIMIT must be at least 1")
        return v

    @field_validator("generation_timeout_seconds")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("GENERATION_TIMEOUT_SECONDS must be greater than zero")
        return v


settings = Settings()
