from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Protocol

from mintly_api.config import AdvisorSettings
from mintly_api.errors import ApiError
from mintly_api.services.finance.aggregate import AdvisorSnapshot

from .cloudflare import PROVIDER_NAME, ProviderError, generate_text
from .contracts import ProviderOutput
from .diagnostics import DiagnosticCallback, emit_diagnostic
from .fallback import build_fallback_advice
from .manual_engine import build_manual_output
from .prompt import SYSTEM_PROMPT, build_advisor_prompt
from .validator import validate_provider_output

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60

_FALLBACK_REASONS = {
    "timeout": "provider_timeout",
    "response_parse_error": "provider_parse_error",
    "response_shape_error": "provider_parse_error",
    "rate_limited": "provider_http_error",
    "http_error": "provider_http_error",
}


@dataclass
class ProviderOutcome:
    """What a provider produced. ``output`` is None when the caller has to fall back."""

    output: ProviderOutput | None
    mode: str
    provider: str | None
    mode_reason: str | None = None
    provider_status: int | None = None
    detail: str | None = None
    meta: Dict[str, Any] = field(default_factory=dict)


class InsightProvider(Protocol):
    name: str

    def generate(
        self,
        snapshot: AdvisorSnapshot,
        language: str,
        *,
        regenerate: bool = False,
        variant_nonce: str | None = None,
        on_diagnostic: DiagnosticCallback = None,
    ) -> ProviderOutcome: ...


def fallback_reason_for(error: ProviderError) -> str:
    return _FALLBACK_REASONS.get(error.reason, "provider_unknown_error")


def raise_if_fatal(error: ProviderError) -> None:
    """Only called for explicit regenerate requests; everything else falls back."""
    if error.reason == "rate_limited":
        raise ApiError(
            code="ADVISOR_PROVIDER_RATE_LIMIT",
            message="Advisor provider is rate limited. Please retry shortly.",
            status_code=429,
            details={
                "provider": PROVIDER_NAME,
                "providerStatus": error.status,
                "retryAfterSec": error.retry_after_seconds or DEFAULT_RETRY_AFTER_SECONDS,
                "rayId": error.ray_id,
                "providerErrorCode": error.provider_code,
            },
        ) from error
    if error.reason == "request_invalid":
        raise ApiError(
            code="ADVISOR_PROVIDER_INVALID_REQUEST",
            message="Advisor provider rejected the request.",
            status_code=500,
            details={
                "provider": PROVIDER_NAME,
                "providerStatus": error.status,
                "rayId": error.ray_id,
                "providerErrorCode": error.provider_code,
            },
        ) from error


class LlmHttpProvider:
    name = PROVIDER_NAME

    def __init__(self, settings: AdvisorSettings, *, sleep: Callable[[float], None] = time.sleep) -> None:
        self.settings = settings
        self._sleep = sleep

    def generate(
        self,
        snapshot: AdvisorSnapshot,
        language: str,
        *,
        regenerate: bool = False,
        variant_nonce: str | None = None,
        on_diagnostic: DiagnosticCallback = None,
    ) -> ProviderOutcome:
        settings = self.settings
        emit_diagnostic(
            on_diagnostic,
            "provider_config",
            provider=self.name,
            model=settings.cloudflare_model,
            ok=settings.cloudflare_configured,
            detail=f"timeout_ms={settings.http_timeout_ms} max_attempts={settings.max_attempts}",
        )
        if not settings.cloudflare_configured:
            return ProviderOutcome(output=None, mode="fallback", provider=self.name, mode_reason="missing_api_key")

        user_prompt = build_advisor_prompt(language, snapshot.to_prompt_payload(language))
        try:
            result = generate_text(
                api_token=settings.cloudflare_api_token,
                account_id=settings.cloudflare_account_id,
                model=settings.cloudflare_model,
                system_prompt=SYSTEM_PROMPT,
                user_prompt=user_prompt,
                timeout_ms=settings.http_timeout_ms,
                max_attempts=settings.max_attempts,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                on_diagnostic=on_diagnostic,
                sleep=self._sleep,
            )
        except ProviderError as exc:
            if regenerate:
                raise_if_fatal(exc)
            logger.warning("advisor provider failed reason=%s status=%s", exc.reason, exc.status)
            return ProviderOutcome(
                output=None,
                mode="fallback",
                provider=self.name,
                mode_reason=fallback_reason_for(exc),
                provider_status=exc.status,
                detail=str(exc),
                meta={"providerReason": exc.reason, "rayId": exc.ray_id},
            )

        fallback = build_fallback_advice(snapshot, language) if settings.validation_policy == "merge" else None
        output, errors, meta = validate_provider_output(
            result.text,
            policy=settings.validation_policy,
            fallback=fallback,
        )
        if output is None:
            logger.warning("advisor provider output rejected: %s", "; ".join(errors[:3]))
            return ProviderOutcome(
                output=None,
                mode="fallback",
                provider=self.name,
                mode_reason=errors[0] if errors else "provider_validation_error",
                provider_status=result.status,
                detail="; ".join(errors[1:4]) or None,
            )

        meta.update({"attempts": result.attempts, "rayId": result.ray_id})
        return ProviderOutcome(
            output=output,
            mode="ai",
            provider=self.name,
            provider_status=result.status,
            meta=meta,
        )


class ManualTemplateProvider:
    name = "manual"

    def generate(
        self,
        snapshot: AdvisorSnapshot,
        language: str,
        *,
        regenerate: bool = False,
        variant_nonce: str | None = None,
        on_diagnostic: DiagnosticCallback = None,
    ) -> ProviderOutcome:
        output, advice = build_manual_output(snapshot, language, regenerate=regenerate, variant_nonce=variant_nonce)
        emit_diagnostic(
            on_diagnostic,
            "provider_config",
            provider=self.name,
            ok=True,
            detail=f"variant={advice.variant_key} categories={','.join(advice.categories)}",
        )
        return ProviderOutcome(
            output=output,
            mode="manual",
            provider=self.name,
            meta={"variantKey": advice.variant_key},
        )


def select_provider(settings: AdvisorSettings) -> InsightProvider | None:
    if settings.provider == "manual":
        return ManualTemplateProvider()
    if settings.provider == "disabled":
        return None
    return LlmHttpProvider(settings)
