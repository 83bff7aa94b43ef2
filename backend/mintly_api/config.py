from __future__ import annotations

import os


def _get_env(name: str, default: str = "") -> str:
    value = os.getenv(name)
    if value is not None:
        return str(value)
    # .env files saved with a BOM prefix the first key.
    bom_value = os.getenv(f"\ufeff{name}")
    if bom_value is not None:
        return str(bom_value)
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _clamp_int(value: int, low: int, high: int) -> int:
    return min(high, max(low, value))


SUPPORTED_LANGUAGES = ("tr", "en", "ru")
DEFAULT_LANGUAGE = "tr"
LANGUAGE_NAMES = {"tr": "Turkish", "en": "English", "ru": "Russian"}

DEFAULT_SAVINGS_TARGET_RATE = 20
DEFAULT_RISK_PROFILE = "medium"

# Heuristic constants for derived metrics
ANOMALY_MIN_AMOUNT = _env_float("ADVISOR_ANOMALY_MIN_AMOUNT", 200.0)
ANOMALY_MEDIAN_MULTIPLIER = _env_float("ADVISOR_ANOMALY_MEDIAN_MULTIPLIER", 2.2)
IRREGULAR_INCOME_RATIO = _env_float("ADVISOR_IRREGULAR_INCOME_RATIO", 1.5)
WEEKLY_TO_MONTHLY_FACTOR = 4.345
RECURRING_BURDEN_MAX = 5.0

ADVISOR_CACHE_TTL_SECONDS = max(60, _env_int("ADVISOR_CACHE_TTL_SECONDS", 6 * 60 * 60))
ADVISOR_RATE_LIMIT_PER_MINUTE = max(1, _env_int("ADVISOR_RATE_LIMIT_PER_MINUTE", 8))
ADVISOR_REGENERATE_COOLDOWN_SECONDS = max(0, _env_int("ADVISOR_REGENERATE_COOLDOWN_SECONDS", 15))

# ============================================================================
# PROVIDER CONFIGURATION
# ============================================================================
CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
DEFAULT_CLOUDFLARE_MODEL = "@cf/meta/llama-3.1-8b-instruct"
DEFAULT_HTTP_TIMEOUT_MS = 45_000
DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_PROVIDER_MAX_TOKENS = 900
RATE_LIMIT_BACKOFF_MIN_SECONDS = 0.8
RATE_LIMIT_BACKOFF_MAX_SECONDS = 1.5


class AdvisorSettings:
    """Snapshot of advisor configuration, read from the environment at construction time."""

    def __init__(self) -> None:
        self.app_env = _get_env("APP_ENV", "development").strip().lower() or "development"

        provider = _get_env("ADVISOR_PROVIDER", "cloudflare").strip().lower()
        if provider not in {"cloudflare", "manual", "disabled"}:
            provider = "cloudflare"
        self.provider = provider

        self.cloudflare_api_token = _get_env("ADVISOR_CLOUDFLARE_API_TOKEN", "").strip()
        self.cloudflare_account_id = _get_env("ADVISOR_CLOUDFLARE_ACCOUNT_ID", "").strip()
        self.cloudflare_model = (
            _get_env("ADVISOR_CLOUDFLARE_MODEL", DEFAULT_CLOUDFLARE_MODEL).strip() or DEFAULT_CLOUDFLARE_MODEL
        )
        self.http_timeout_ms = _clamp_int(
            _env_int("CLOUDFLARE_HTTP_TIMEOUT_MS", DEFAULT_HTTP_TIMEOUT_MS), 1_000, 120_000
        )
        self.max_attempts = _clamp_int(_env_int("CLOUDFLARE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS), 1, 5)
        self.max_tokens = max(64, _env_int("ADVISOR_MAX_TOKENS", DEFAULT_PROVIDER_MAX_TOKENS))
        self.temperature = _env_float("ADVISOR_TEMPERATURE", 0.3)

        policy = _get_env("ADVISOR_VALIDATION_POLICY", "strict").strip().lower()
        if policy not in {"strict", "merge"}:
            policy = "strict"
        self.validation_policy = policy

        self.cache_ttl_seconds = ADVISOR_CACHE_TTL_SECONDS

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cloudflare_configured(self) -> bool:
        return self.provider == "cloudflare" and bool(self.cloudflare_api_token and self.cloudflare_account_id)
