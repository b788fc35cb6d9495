# Fichier: app/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List
from pydantic import AnyHttpUrl, ValidationError, field_validator
import sys

class Settings(BaseSettings):
    DATABASE_URL: str
    OPENAI_API_KEY: Optional[str] = None
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
    ]
    FRONTEND_BASE_URL: Optional[AnyHttpUrl] = None

    ENVIRONMENT: str = "development"

    # --- Auth configuration ---
    # Tokens are issued by the identity provider and verified with this key.
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300

    # --- OpenAI ---
    # Appends a truncated copy of the raw model payload to error messages.
    OPENAI_DEBUG_RAW_RESPONSE: bool = False
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    OPENAI_MODEL_GENERATE: str = "gpt-5-mini"
    OPENAI_MODEL_GENERATE_FALLBACK: str = "gpt-5-mini"
    OPENAI_MODEL_AUTOFILL: str = "gpt-5-nano"
    OPENAI_MODEL_AUTOFILL_FALLBACK: str = "gpt-5-mini"
    OPENAI_MODEL_GRADE: str = "gpt-5-nano"
    OPENAI_MODEL_GRADE_FALLBACK: str = "gpt-5-mini"
    OPENAI_GRADE_FALLBACK_ON_NEEDS_FIX: bool = True
    OPENAI_MODEL_TTS: str = "gpt-4o-mini-tts"
    OPENAI_MODEL_TTS_FALLBACK: str = "gpt-4o-mini-tts"

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs always use the psycopg2 driver.

        Managed Postgres providers (Supabase, Railway...) still hand out URLs
        using the legacy ``postgres://`` scheme, which SQLAlchemy no longer
        accepts. Those URLs, as well as ``postgresql://`` and psycopg3
        variants, are rewritten to ``postgresql+psycopg2://`` while SQLite and
        other backends are left untouched.
        """

        if not isinstance(value, str):
            return value

        if "+psycopg2" in value:
            return value

        replacements = {
            "postgres://": "postgresql+psycopg2://",
            "postgresql://": "postgresql+psycopg2://",
            "postgresql+psycopg://": "postgresql+psycopg2://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value

def _report_settings_errors(exc: ValidationError) -> None:
    """Print one line per missing or invalid variable before the import fails."""
    print("Configuration error while loading environment variables:", file=sys.stderr)
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        print(f"  - {location}: {error.get('msg')} (type={error.get('type')})", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _report_settings_errors(exc)
    raise
