from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .features.flags import FeatureFlags, env_flag

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


@dataclass(frozen=True)
class AppConfig:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./explorecali.db")
    session_secret: str = os.getenv("SESSION_SECRET", "explorecali-secret-change-in-production")
    sql_echo: bool = env_flag("SQL_ECHO", False)
    features: FeatureFlags = field(default_factory=FeatureFlags.from_env)


DEFAULT_APP_CONFIG = AppConfig()
