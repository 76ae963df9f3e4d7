"""
T&C Decoder Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    CORE_VERSION: str = "1.0.0"
    API_VERSION: str = "1"

    # --- Highlighting ---
    # Caps both the resolved span set and the number of marks applied per round.
    MAX_HIGHLIGHTS: int = int(os.getenv("TCDECODER_MAX_HIGHLIGHTS", "50"))
    SNIPPET_WINDOW: int = int(os.getenv("TCDECODER_SNIPPET_WINDOW", "250"))

    # --- Summarizer / LLM Provider ---
    LLM_PROVIDER: str = os.getenv("TCDECODER_LLM_PROVIDER", "gemini")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    SUMMARY_MAX_CHARS: int = int(os.getenv("TCDECODER_SUMMARY_MAX_CHARS", "4000"))

    # --- Server ---
    HOST: str = os.getenv("TCDECODER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("TCDECODER_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("TCDECODER_CORS_ORIGINS", "*")


settings = Settings()
