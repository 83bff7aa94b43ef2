from __future__ import annotations

import logging
import secrets
import time
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, Query

from mintly_api.config import DEFAULT_LANGUAGE, AdvisorSettings
from mintly_api.errors import ApiError
from mintly_api.services.advisor import generate_advisor_insight
from mintly_api.services.advisor.cloudflare import ProviderError, verify_model_exists
from mintly_api.services.auth import current_user
from mintly_api.services.finance.common import current_month
from mintly_api.services.rate_limit import daily_free_usage, insight_rate_limiter, regenerate_cooldown
from mintly_api.services.repository import get_advisor_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/advisor", tags=["advisor"])

MONTH_QUERY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def _variant_nonce(header_value: Optional[str], regenerate: bool) -> Optional[str]:
    nonce = (header_value or "").strip() or None
    if regenerate and nonce is None:
        return f"{int(time.time() * 1000):x}-{secrets.token_hex(4)}"
    return nonce


@router.post("/insights/free-check")
def free_check(user=Depends(current_user)):
    return daily_free_usage.consume(user.get("sub", ""))


@router.get("/insights")
def get_insights(
    month: Optional[str] = Query(None, pattern=MONTH_QUERY_PATTERN),
    language: Literal["tr", "en", "ru"] = Query(DEFAULT_LANGUAGE),
    regenerate: bool = Query(False),
    x_advisor_request_id: Optional[str] = Header(None),
    user=Depends(current_user),
):
    started = time.monotonic()
    user_id = user.get("sub", "")
    insight_rate_limiter.enforce(user_id)
    regenerate_cooldown.enforce(user_id, regenerate)

    target_month = month or current_month()

    def _log_diagnostic(event):
        logger.info("advisor insights diagnostic user=%s month=%s diagnostic=%s", user_id, target_month, event)

    try:
        result = generate_advisor_insight(
            get_advisor_repository(),
            user_id=user_id,
            month=target_month,
            language=language,
            regenerate=regenerate,
            variant_nonce=_variant_nonce(x_advisor_request_id, regenerate),
            on_diagnostic=_log_diagnostic,
        )
    except Exception as exc:
        logger.error(
            "advisor insights failed user=%s month=%s duration_ms=%d error=%s",
            user_id,
            target_month,
            int((time.monotonic() - started) * 1000),
            exc,
        )
        raise

    logger.info(
        "advisor insights generated user=%s month=%s mode=%s mode_reason=%s duration_ms=%d",
        user_id,
        target_month,
        result["mode"],
        result["modeReason"],
        int((time.monotonic() - started) * 1000),
    )
    return result


@router.get("/provider-health")
def provider_health(user=Depends(current_user)):
    settings = AdvisorSettings()
    if settings.is_production:
        raise ApiError(code="NOT_FOUND", message="Not found", status_code=404)

    if not (settings.cloudflare_configured and settings.cloudflare_model):
        return {"ok": False, "modelConfigured": False, "modelExists": False, "latencyMs": None}

    try:
        result = verify_model_exists(
            api_token=settings.cloudflare_api_token,
            account_id=settings.cloudflare_account_id,
            configured_model=settings.cloudflare_model,
            timeout_ms=settings.http_timeout_ms,
            on_diagnostic=lambda event: logger.info("advisor provider health diagnostic diagnostic=%s", event),
        )
    except ProviderError as exc:
        raise ApiError(
            code="ADVISOR_PROVIDER_UNAVAILABLE",
            message="Advisor provider health check failed",
            status_code=502,
            details={"reason": exc.reason, "providerStatus": exc.status, "rayId": exc.ray_id},
        ) from exc

    return {
        "ok": True,
        "modelConfigured": True,
        "modelExists": result["model_exists"],
        "latencyMs": result["latency_ms"],
    }
