"""
Service configuration
Loads settings from environment variables
"""

import os
from pathlib import Path
from typing import List

_DEFAULT_MODELS = ",".join(
    [
        "google/gemini-2.0-flash-001",
        "google/gemini-2.0-flash-lite-preview-02-05:free",
        "google/gemini-pro-1.5",
        "google/gemini-pro",
    ]
)
_DEFAULT_FIXTURE = Path(__file__).resolve().parent.parent / "fixtures" / "properties.json"


class Settings:
    """Application settings loaded from environment"""

    # LLM gateway (OpenRouter speaks the OpenAI chat-completions protocol)
    LLM_API_KEY: str = os.getenv("OPENROUTER_API_KEY") or os.getenv("GEMINI_API_KEY", "")
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1")
    LLM_MODELS: str = os.getenv("LLM_MODELS", _DEFAULT_MODELS)
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.7"))
    LLM_ATTEMPT_TIMEOUT: float = float(os.getenv("LLM_ATTEMPT_TIMEOUT", "20"))
    # Unset or 0: long enough for every model to use its full attempt timeout
    LLM_REQUEST_TIMEOUT: float = float(os.getenv("LLM_REQUEST_TIMEOUT", "0"))
    LLM_SITE_URL: str = os.getenv("LLM_SITE_URL", "http://localhost:5173")
    LLM_APP_TITLE: str = os.getenv("LLM_APP_TITLE", "Propbot")

    # Dialog
    PLATFORM_NAME: str = os.getenv("PLATFORM_NAME", "Urbannest")
    SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", "5"))
    RECOMMEND_RESULT_LIMIT: int = int(os.getenv("RECOMMEND_RESULT_LIMIT", "10"))
    CONVERSATION_RETENTION_DAYS: int = int(os.getenv("CONVERSATION_RETENTION_DAYS", "30"))
    SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "3600"))

    # Data
    PROPERTY_FIXTURE: str = os.getenv("PROPERTY_FIXTURE", str(_DEFAULT_FIXTURE))

    # API
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def llm_models(self) -> List[str]:
        """Candidate models in fallback order"""
        return [model.strip() for model in self.LLM_MODELS.split(",") if model.strip()]

    @property
    def llm_request_timeout(self) -> float:
        if self.LLM_REQUEST_TIMEOUT > 0:
            return self.LLM_REQUEST_TIMEOUT
        return self.LLM_ATTEMPT_TIMEOUT * max(len(self.llm_models), 1)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def ai_configured(self) -> bool:
        return bool(self.LLM_API_KEY)


# Global settings instance
settings = Settings()
