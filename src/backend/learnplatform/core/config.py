"""
Application configuration

All settings come from environment variables (loaded from .env by main.py).
Priority: environment variables > defaults
"""

import os
from dataclasses import dataclass, field
from typing import List

# Quiz XP award policies
QUIZ_XP_EVERY_PASS = "every_pass"
QUIZ_XP_FIRST_PASS = "first_pass"
QUIZ_XP_POLICIES = (QUIZ_XP_EVERY_PASS, QUIZ_XP_FIRST_PASS)

# Lab completion gates
LAB_GATE_SUBMISSION = "submission"
LAB_GATE_APPROVAL = "approval"
LAB_COMPLETION_GATES = (LAB_GATE_SUBMISSION, LAB_GATE_APPROVAL)

DEFAULT_DATABASE_URL = "sqlite:///./data/app.db"
DEFAULT_SECRET_KEY = "dev-secret-key-change-me"


@dataclass
class Settings:
    """
    Service settings

    Attributes:
        database_url: SQLAlchemy database URL
        secret_key: HMAC key used to sign access tokens
        jwt_algorithm: token signing algorithm
        access_token_expire_minutes: token lifetime in minutes
        dev_mode: accept the X-User-Id header as identity and relax CORS
        allowed_origins: explicit CORS origins
        quiz_xp_policy: when a passing quiz attempt earns XP
        lab_completion_gate: what "all sections done" means for lab completion
        leaderboard_default_limit: leaderboard size when the caller gives none
        log_level: root logging level
    """
    database_url: str = DEFAULT_DATABASE_URL
    secret_key: str = DEFAULT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    dev_mode: bool = False
    allowed_origins: List[str] = field(default_factory=list)
    quiz_xp_policy: str = QUIZ_XP_EVERY_PASS
    lab_completion_gate: str = LAB_GATE_SUBMISSION
    leaderboard_default_limit: int = 10
    log_level: str = "INFO"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_choice(name: str, default: str, choices: tuple) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in choices:
        raise ValueError(f"Invalid value for {name}: {value!r} (expected one of: {', '.join(choices)})")
    return value


def get_settings() -> Settings:
    """
    Read settings from the environment

    Environment variables:
        DATABASE_URL, JWT_SECRET_KEY, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
        DEV_MODE, ALLOWED_ORIGINS, QUIZ_XP_POLICY, LAB_COMPLETION_GATE,
        LEADERBOARD_DEFAULT_LIMIT, LOG_LEVEL

    Returns:
        Settings object

    Raises:
        ValueError: when QUIZ_XP_POLICY or LAB_COMPLETION_GATE hold an unknown value
    """
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        secret_key=os.getenv("JWT_SECRET_KEY", DEFAULT_SECRET_KEY),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))),
        dev_mode=_env_flag("DEV_MODE"),
        allowed_origins=origins,
        quiz_xp_policy=_env_choice("QUIZ_XP_POLICY", QUIZ_XP_EVERY_PASS, QUIZ_XP_POLICIES),
        lab_completion_gate=_env_choice("LAB_COMPLETION_GATE", LAB_GATE_SUBMISSION, LAB_COMPLETION_GATES),
        leaderboard_default_limit=int(os.getenv("LEADERBOARD_DEFAULT_LIMIT", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
