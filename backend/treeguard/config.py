"""Runtime settings for TreeGuard, read from the environment (.env supported)."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

SEVERITIES = ("error", "warning")


@dataclass(frozen=True)
class Settings:
    """Tunable thresholds and severity policy.

    Defaults reproduce the behaviour of the tree editor: duplicates are
    reported from 50% confidence, lifespans over 120 years are suspicious,
    and a parent must be at least 12 years older than a child.
    """
    duplicate_min_confidence: int = 50
    max_lifespan_years: int = 120
    min_parent_age: int = 12
    missing_gender_severity: str = "warning"
    log_level: str = "INFO"
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> Settings:
    """Build settings from TREEGUARD_* environment variables."""
    severity = os.getenv("TREEGUARD_MISSING_GENDER_SEVERITY", "warning").strip().lower()
    if severity not in SEVERITIES:
        raise ValueError(
            f"TREEGUARD_MISSING_GENDER_SEVERITY must be one of {SEVERITIES}, got {severity!r}"
        )

    min_confidence = _get_int("TREEGUARD_DUPLICATE_MIN_CONFIDENCE", 50)
    if not 0 <= min_confidence <= 100:
        raise ValueError("TREEGUARD_DUPLICATE_MIN_CONFIDENCE must be between 0 and 100")

    origins = os.getenv("TREEGUARD_CORS_ORIGINS")
    cors_origins = (
        [o.strip() for o in origins.split(",") if o.strip()]
        if origins
        else Settings().cors_origins
    )

    return Settings(
        duplicate_min_confidence=min_confidence,
        max_lifespan_years=_get_int("TREEGUARD_MAX_LIFESPAN_YEARS", 120),
        min_parent_age=_get_int("TREEGUARD_MIN_PARENT_AGE", 12),
        missing_gender_severity=severity,
        log_level=os.getenv("TREEGUARD_LOG_LEVEL", "INFO").upper(),
        cors_origins=cors_origins,
    )


settings = load_settings()
