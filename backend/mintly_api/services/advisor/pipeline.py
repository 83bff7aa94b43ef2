from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Dict

from mintly_api.config import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, AdvisorSettings
from mintly_api.errors import ApiError
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot
from mintly_api.services.finance.common import is_valid_month

from .assembler import assemble_insight
from .cache import InMemoryInsightCache, InsightCache, build_cache_key
from .diagnostics import DiagnosticCallback, emit_diagnostic
from .fallback import build_fallback_advice
from .providers import InsightProvider, ProviderOutcome, select_provider

logger = logging.getLogger(__name__)

_insight_cache = InMemoryInsightCache()


def get_insight_cache() -> InsightCache:
    return _insight_cache


def normalize_language(value: str | None) -> str:
    normalized = str(value or "").strip().lower()
    for code in SUPPORTED_LANGUAGES:
        if normalized == code or normalized.startswith(f"{code}-"):
            return code
    return DEFAULT_LANGUAGE


def generate_advisor_insight(
    repository: Any,
    *,
    user_id: str,
    month: str,
    language: str,
    regenerate: bool = False,
    variant_nonce: str | None = None,
    settings: AdvisorSettings | None = None,
    cache: InsightCache | None = None,
    provider: InsightProvider | None = None,
    on_diagnostic: DiagnosticCallback = None,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """Build one AdvisorInsight dict for (user, month, language).

    Raises ``ApiError`` only for an unknown user, an invalid month, or a fatal provider
    failure during an explicit regenerate. Every other provider problem ends in fallback mode.
    """
    if not is_valid_month(month):
        raise ApiError(code="VALIDATION_ERROR", message="month must use YYYY-MM format", status_code=400)

    settings = settings or AdvisorSettings()
    cache = cache if cache is not None else _insight_cache
    language = normalize_language(language)
    cache_key = build_cache_key(user_id, month, language)

    if not regenerate:
        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug("advisor insight cache hit user=%s month=%s language=%s", user_id, month, language)
            return cached

    started = time.monotonic()
    snapshot = aggregate_advisor_snapshot(repository, user_id=user_id, month=month, now=now)

    if provider is None:
        provider = select_provider(settings)
    if provider is None:
        outcome = ProviderOutcome(output=None, mode="fallback", provider=None, mode_reason="provider_disabled")
    else:
        outcome = provider.generate(
            snapshot,
            language,
            regenerate=regenerate,
            variant_nonce=variant_nonce,
            on_diagnostic=on_diagnostic,
        )

    output = outcome.output
    mode = outcome.mode
    meta = outcome.meta
    if output is None:
        mode = "fallback"
        emit_diagnostic(
            on_diagnostic,
            "fallback",
            provider=outcome.provider,
            reason=outcome.mode_reason,
            status=outcome.provider_status,
            ray_id=meta.get("rayId"),
            error_code=meta.get("providerReason"),
            detail=outcome.detail,
        )
        output = build_fallback_advice(snapshot, language)
    elif meta.get("merged_sections"):
        emit_diagnostic(
            on_diagnostic,
            "fallback",
            provider=outcome.provider,
            reason="provider_validation_error",
            status=outcome.provider_status,
            ray_id=meta.get("rayId"),
            detail=",".join(meta["merged_sections"]),
        )

    insight = assemble_insight(
        snapshot,
        output,
        language=language,
        mode=mode,
        mode_reason=outcome.mode_reason,
        provider=outcome.provider,
        provider_status=outcome.provider_status,
        generated_at=now,
    )
    cache.set(cache_key, insight, settings.cache_ttl_seconds)

    logger.info(
        "advisor insight built user=%s month=%s mode=%s reason=%s attempts=%s variant=%s duration_ms=%d",
        user_id,
        month,
        insight["mode"],
        insight["modeReason"],
        meta.get("attempts"),
        meta.get("variantKey"),
        int((time.monotonic() - started) * 1000),
    )
    return insight
