"""
Runtime settings, read from the environment (and a .env file when present).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "claude-3-5-haiku-20241022"

CLAIM_MODE_CONDITIONAL = "conditional"
CLAIM_MODE_READ_THEN_WRITE = "read_then_write"
CLAIM_MODES = (CLAIM_MODE_CONDITIONAL, CLAIM_MODE_READ_THEN_WRITE)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class Settings:
    """Service configuration."""

    anthropic_api_key: Optional[str] = None
    use_null_llm: bool = False
    llm_model: str = DEFAULT_MODEL
    llm_max_tokens: int = 2000

    db_dir: str = "data"
    claim_mode: str = CLAIM_MODE_CONDITIONAL

    fetch_timeout: float = 15.0
    ai_text_limit: int = 8000
    reminder_lead_minutes: int = 15

    log_level: str = "INFO"
    log_dir: str = "logs"
    secret_key: str = "dev-secret-key-change-in-production"
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            dotenv: Load a .env file first (values already in the
                environment win).
        """
        if dotenv:
            load_dotenv()

        claim_mode = os.environ.get("CLAIM_MODE", CLAIM_MODE_CONDITIONAL).lower()
        if claim_mode not in CLAIM_MODES:
            raise ValueError(f"CLAIM_MODE must be one of {CLAIM_MODES}, got {claim_mode!r}")

        return cls(
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            use_null_llm=_env_flag("USE_NULL_LLM"),
            llm_model=os.environ.get("LLM_MODEL", DEFAULT_MODEL),
            llm_max_tokens=int(os.environ.get("LLM_MAX_TOKENS", "2000")),
            db_dir=os.environ.get("DB_DIR", "data"),
            claim_mode=claim_mode,
            fetch_timeout=float(os.environ.get("FETCH_TIMEOUT", "15")),
            ai_text_limit=int(os.environ.get("AI_TEXT_LIMIT", "8000")),
            reminder_lead_minutes=int(os.environ.get("REMINDER_LEAD_MINUTES", "15")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_dir=os.environ.get("LOG_DIR", "logs"),
            secret_key=os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-change-in-production"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "5000")),
        )
