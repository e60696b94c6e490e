"""
Configuration settings for ContractAnalyser backend
"""

import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration class for the contract analysis backend"""

    # API Settings
    PROJECT_NAME: str = "ContractAnalyser API"

    # OpenAI Settings
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_TRANSLATION_MODEL: str = os.getenv("OPENAI_TRANSLATION_MODEL", "gpt-4o")
    LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "4000"))
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

    # Retry / pipeline settings
    LLM_MAX_ATTEMPTS: int = int(os.getenv("LLM_MAX_ATTEMPTS", "3"))
    LLM_INITIAL_DELAY_SECONDS: float = float(os.getenv("LLM_INITIAL_DELAY_SECONDS", "1.0"))
    DEFENSIVE_TRANSLATION: bool = _as_bool(os.getenv("DEFENSIVE_TRANSLATION", "true"))
    PIPELINE_TIMEOUT_SECONDS: float = float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "300"))

    # Database / broker
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./data/database/contracts.db")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")

    # Auth (Supabase GoTrue)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")

    # Outbound email (Resend)
    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL: str = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "ContractAnalyser <noreply@mail.contractanalyser.com>")
    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "https://www.contractanalyser.com")

    # Blob storage
    STORAGE_PATH: Path = Path(os.getenv("STORAGE_PATH", "./data/storage"))
    STORAGE_SIGNING_SECRET: str = os.getenv("STORAGE_SIGNING_SECRET", "change-me")
    SIGNED_URL_TTL_SECONDS: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "3600"))
    STORAGE_PUBLIC_BASE_URL: str = os.getenv("STORAGE_PUBLIC_BASE_URL", "http://localhost:8000/storage")

    # HTTP
    ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "ALLOWED_ORIGINS",
            "https://www.contractanalyser.com,https://contractanalyser.com",
        ).split(",")
        if origin.strip()
    ]

    # Retention
    RETENTION_DAYS: int = int(os.getenv("RETENTION_DAYS", "30"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").upper()

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration settings"""
        required_fields = [
            ("OPENAI_API_KEY", cls.OPENAI_API_KEY),
            ("SUPABASE_URL", cls.SUPABASE_URL),
        ]

        missing_fields = [field for field, value in required_fields if not value]

        if missing_fields:
            raise ValueError(f"Missing required configuration: {', '.join(missing_fields)}")

        return True

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist"""
        directories = [cls.STORAGE_PATH]

        if cls.DATABASE_URL.startswith("sqlite:///"):
            db_file = Path(cls.DATABASE_URL.replace("sqlite:///", "", 1))
            directories.append(db_file.parent)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)


# Create a singleton instance
config = Config()
