"""
Configuration loader for the brag list builder.

Loads all settings from environment variables (.env file).
Validates settings and provides type-safe access.
"""

import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class Config:
    """
    Centralized configuration for all brag list components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Text Generation Backend =====
    # Ollama exposes an OpenAI-compatible API under /v1, so ChatOpenAI can talk to it
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "http://localhost:11434/v1")
    LLM_API_KEY: str = os.getenv("LLM_API_KEY", "ollama")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "llama3")

    # Hard timeout per request; worst case wall clock is attempts * timeout
    LLM_TIMEOUT_SECONDS: int = _clamp(int(os.getenv("LLM_TIMEOUT_SECONDS", "30")), 5, 120)
    LLM_MAX_ATTEMPTS: int = _clamp(int(os.getenv("LLM_MAX_ATTEMPTS", "2")), 1, 3)

    # ===== Generation Settings =====
    # Correctness-sensitive output: keep randomness moderate-low
    BATCH_TEMPERATURE: float = float(os.getenv("BRAG_BATCH_TEMPERATURE", "0.5"))
    BATCH_MAX_TOKENS: int = int(os.getenv("BRAG_BATCH_MAX_TOKENS", "2000"))
    SINGLE_TEMPERATURE: float = float(os.getenv("BRAG_SINGLE_TEMPERATURE", "0.4"))
    SINGLE_MAX_TOKENS: int = int(os.getenv("BRAG_SINGLE_MAX_TOKENS", "800"))
    VALUE_STATEMENT_TEMPERATURE: float = 0.3
    VALUE_STATEMENT_MAX_TOKENS: int = 150

    # ===== Persistence =====
    BRAG_DATA_DIR: str = os.getenv("BRAG_DATA_DIR", "./data")
    LEDGER_FILENAME: str = "brag-list.md"
    GENERATED_FILENAME: str = "brag-generated.json"

    # ===== Logging =====
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")

    @classmethod
    def ledger_path(cls) -> Path:
        """Path of the human-readable ledger of accepted entries."""
        return Path(cls.BRAG_DATA_DIR) / cls.LEDGER_FILENAME

    @classmethod
    def generated_path(cls) -> Path:
        """Path of the structured generated-batch document."""
        return Path(cls.BRAG_DATA_DIR) / cls.GENERATED_FILENAME

    @classmethod
    def validate(cls) -> None:
        """
        Validate that the configuration is usable.
        Raises ValueError listing every invalid setting.
        """
        problems: List[str] = []

        if not cls.LLM_BASE_URL.startswith(("http://", "https://")):
            problems.append(f"LLM_BASE_URL must be an http(s) URL, got: {cls.LLM_BASE_URL}")
        if not cls.LLM_MODEL:
            problems.append("LLM_MODEL is empty")
        for name in ("BATCH_TEMPERATURE", "SINGLE_TEMPERATURE", "VALUE_STATEMENT_TEMPERATURE"):
            value = getattr(cls, name)
            if not 0.0 <= value <= 1.0:
                problems.append(f"{name} must be between 0 and 1, got: {value}")
        for name in ("BATCH_MAX_TOKENS", "SINGLE_MAX_TOKENS", "VALUE_STATEMENT_MAX_TOKENS"):
            if getattr(cls, name) <= 0:
                problems.append(f"{name} must be positive")
        if cls.LOG_FORMAT not in ("simple", "json"):
            problems.append(f"LOG_FORMAT must be 'simple' or 'json', got: {cls.LOG_FORMAT}")

        if problems:
            raise ValueError(
                "Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems)
            )

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  LLM endpoint: {cls.LLM_BASE_URL}
  LLM model: {cls.LLM_MODEL}
  LLM timeout: {cls.LLM_TIMEOUT_SECONDS}s x {cls.LLM_MAX_ATTEMPTS} attempt(s)
  Batch generation: temperature={cls.BATCH_TEMPERATURE}, max_tokens={cls.BATCH_MAX_TOKENS}
  Single generation: temperature={cls.SINGLE_TEMPERATURE}, max_tokens={cls.SINGLE_MAX_TOKENS}
  Ledger: {cls.ledger_path()}
  Generated batch: {cls.generated_path()}
        """.strip()
