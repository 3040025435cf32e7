"""
Core configuration module for the Mock Interview service.
Loads settings from environment variables and the grading config file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Mock_Interview"
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Identity provider
    auth_enabled: bool = False
    auth_domain: Optional[str] = None
    auth_client_id: Optional[str] = None
    auth_audience: Optional[str] = None
    jwt_secret_key: str = "your-super-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"

    # Session store
    session_store_backend: str = "local"
    session_store_path: str = "data/sessions"

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "mock_interview"

    # Grading credentials store
    credential_store_backend: str = "memory"

    # Recording storage
    recording_storage_backend: str = "local"
    recording_storage_path: str = "data/recordings"
    s3_endpoint_url: Optional[str] = "http://localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_bucket_name: str = "mock-interview"
    s3_region: str = "us-east-1"

    # Question bank
    question_bank_path: str = str(PACKAGE_ROOT / "data" / "questions")

    # Grading providers
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    perplexity_api_url: str = "https://api.perplexity.ai/chat/completions"
    openai_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None
    grading_timeout_seconds: float = 60.0
    grading_openai_model: Optional[str] = None
    grading_perplexity_model: Optional[str] = None

    # Session policy
    max_question_count: int = 50
    default_question_count: int = 10
    silence_timeout_seconds: float = 2.0
    mixed_fill_allow_duplicates: bool = True
    history_default_limit: int = 20
    # Finished sessions (complete, failed or idle) kept in memory per user
    max_finished_sessions: int = 10

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def auth_jwks_url(self) -> Optional[str]:
        if not self.auth_domain:
            return None
        return f"https://{self.auth_domain.rstrip('/')}/.well-known/jwks.json"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_grading_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load grading provider configuration from YAML file.
    Environment variables can override the model names.
    """
    if config_path is None:
        config_path = PACKAGE_ROOT / "config" / "grading.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Grading config not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    settings = get_settings()
    providers = config.setdefault("providers", {})

    if settings.grading_openai_model:
        providers.setdefault("openai", {})["model"] = settings.grading_openai_model

    if settings.grading_perplexity_model:
        providers.setdefault("perplexity", {})["model"] = settings.grading_perplexity_model

    return config
