from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")

        # LLM
        self.google_api_key: Optional[str] = _optional("GOOGLE_API_KEY")
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        self.max_output_tokens: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "150"))

        # Video call rooms
        self.livekit_url: str = os.getenv("LIVEKIT_URL", "ws://localhost:7880")
        self.livekit_api_key: str = os.getenv("LIVEKIT_API_KEY", "devkey")
        self.livekit_api_secret: str = os.getenv("LIVEKIT_API_SECRET", "secret")
        self.livekit_token_ttl_minutes: int = int(os.getenv("LIVEKIT_TOKEN_TTL_MINUTES", "60"))

        # OCR
        self.tesseract_cmd: Optional[str] = _optional("TESSERACT_CMD")
        self.ocr_language: str = os.getenv("OCR_LANGUAGE", "eng")

        # Teachable Machine export; the heuristic detector is used when unset.
        self.classifier_model_path: Optional[str] = _optional("CLASSIFIER_MODEL_PATH")
        self.classifier_labels_path: Optional[str] = _optional("CLASSIFIER_LABELS_PATH")
        self.classifier_metadata_url: Optional[str] = _optional("CLASSIFIER_METADATA_URL")

    @property
    def is_dev(self) -> bool:
        return self.app_env.lower() in {"dev", "development", "local"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
