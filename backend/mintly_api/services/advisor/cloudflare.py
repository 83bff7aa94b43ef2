from __future__ import annotations

import json
import logging
import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, List
from urllib.parse import quote

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_random

from mintly_api.config import (
    CLOUDFLARE_API_BASE,
    DEFAULT_HTTP_TIMEOUT_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PROVIDER_MAX_TOKENS,
    RATE_LIMIT_BACKOFF_MAX_SECONDS,
    RATE_LIMIT_BACKOFF_MIN_SECONDS,
)

from .diagnostics import DiagnosticCallback, emit_diagnostic, summarize_detail

logger = logging.getLogger(__name__)

PROVIDER_NAME = "cloudflare"
RETRYABLE_REASONS = {"rate_limited", "timeout", "request_error"}
BODY_CHUNK_SIZE = 1024
_LEADING_INT_PATTERN = re.compile(r"^\s*(\d+)")


class ProviderError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        reason: str,
        status: int | None = None,
        retry_after_seconds: int | None = None,
        ray_id: str | None = None,
        provider_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status = status
        self.retry_after_seconds = retry_after_seconds
        self.ray_id = ray_id
        self.provider_code = provider_code


@dataclass(frozen=True)
class ProviderResult:
    text: str
    status: int
    ray_id: str | None
    model: str
    attempts: int


def build_run_endpoint(account_id: str, model: str) -> str:
    return f"{CLOUDFLARE_API_BASE}/accounts/{quote(account_id, safe='')}/ai/run/{quote(model, safe='/@')}"


def build_models_search_endpoint(account_id: str) -> str:
    return f"{CLOUDFLARE_API_BASE}/accounts/{quote(account_id, safe='')}/ai/models/search"


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> int | None:
    """Retry-After is either delta-seconds or an HTTP-date."""
    if not value:
        return None
    match = _LEADING_INT_PATTERN.match(value)
    if match:
        return int(match.group(1))
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    delta = (parsed - (now or datetime.now(timezone.utc))).total_seconds()
    if delta <= 0:
        return 0
    return math.ceil(delta)


def describe_response_shape(payload: Any) -> str:
    if payload is None:
        return "empty"
    if isinstance(payload, list):
        return "array"
    if isinstance(payload, dict):
        if isinstance(payload.get("success"), bool) or isinstance(payload.get("errors"), list) or "result" in payload:
            return "cloudflare_run_response"
        return "object"
    return type(payload).__name__


def parse_provider_error(payload: Any) -> tuple[str | None, str | None]:
    if not isinstance(payload, dict):
        return None, None
    errors = payload.get("errors")
    first = errors[0] if isinstance(errors, list) and errors else None
    if not isinstance(first, dict):
        return None, None
    code = first.get("code")
    message = first.get("message")
    return (
        None if code is None else str(code),
        message if isinstance(message, str) else None,
    )


def classify_status(status: int) -> str:
    if status == 429:
        return "rate_limited"
    if 400 <= status < 500:
        return "request_invalid"
    return "http_error"


# ============================================================================
# ASSISTANT TEXT EXTRACTION
# ============================================================================
_DIRECT_TEXT_FIELDS = ("text", "content", "value", "output_text", "generated_text", "completion")
_NESTED_TEXT_FIELDS = ("parts", "content", "output", "messages", "choices", "response", "message", "delta", "data")


def _normalize_text_content(value: Any) -> str | None:
    if isinstance(value, str):
        text = value.strip()
        return text or None

    if isinstance(value, dict):
        for key in _DIRECT_TEXT_FIELDS:
            field = value.get(key)
            if isinstance(field, str) and field.strip():
                return field.strip()
        for key in _NESTED_TEXT_FIELDS:
            nested = _normalize_text_content(value.get(key))
            if nested:
                return nested
        return None

    if isinstance(value, list):
        segments = []
        for item in value:
            text = item.strip() if isinstance(item, str) else (_normalize_text_content(item) or "")
            if text:
                segments.append(text)
        return "\n".join(segments) if segments else None

    return None


def _is_assistant_role(value: Any, *, allow_missing: bool = False) -> bool:
    role = value.lower() if isinstance(value, str) else ""
    if not role:
        return allow_missing
    return role in {"assistant", "model"}


def _extract_from_output(record: Dict[str, Any]) -> str | None:
    output = record.get("output")
    if not isinstance(output, list):
        return None
    for entry in reversed(output):
        direct = _normalize_text_content(entry)
        if direct:
            return direct
        if isinstance(entry, dict) and _is_assistant_role(entry.get("role"), allow_missing=True):
            for key in ("content", "text", "message"):
                text = _normalize_text_content(entry.get(key))
                if text:
                    return text
    return None


def _extract_from_messages(record: Dict[str, Any]) -> str | None:
    messages = record.get("messages")
    if not isinstance(messages, list):
        return None
    for message in reversed(messages):
        if not isinstance(message, dict) or not _is_assistant_role(message.get("role")):
            continue
        content = message.get("content")
        if content is None:
            content = message.get("text")
        if content is None:
            content = message.get("message")
        text = _normalize_text_content(content)
        if text:
            return text
    return None


def _extract_from_choices(record: Dict[str, Any]) -> str | None:
    choices = record.get("choices")
    if not isinstance(choices, list):
        return None
    for choice in reversed(choices):
        if not isinstance(choice, dict):
            continue
        for container_key in ("message", "delta"):
            container = choice.get(container_key)
            if isinstance(container, dict):
                text = _normalize_text_content(container.get("content")) or _normalize_text_content(
                    container.get("text")
                )
                if text:
                    return text
        text = _normalize_text_content(choice.get("content")) or _normalize_text_content(choice.get("text"))
        if text:
            return text
    return None


def _extract_from_response_object(record: Dict[str, Any]) -> str | None:
    response = record.get("response")
    if not isinstance(response, dict):
        return None
    return (
        _normalize_text_content(response)
        or _normalize_text_content(response.get("text"))
        or _normalize_text_content(response.get("output_text"))
    )


def _extract_from_record(record: Dict[str, Any], depth: int) -> str | None:
    response = record.get("response")
    if not isinstance(response, dict):
        text = _normalize_text_content(response)
        if text:
            return text

    text = _normalize_text_content(record.get("output_text"))
    if text:
        return text

    nested = record.get("result")
    if depth == 0 and isinstance(nested, dict):
        text = _extract_from_record(nested, 1)
        if text:
            return text

    for key in ("generated_text", "text", "completion"):
        text = _normalize_text_content(record.get(key))
        if text:
            return text

    return (
        _extract_from_output(record)
        or _extract_from_messages(record)
        or _extract_from_choices(record)
        or _extract_from_response_object(record)
    )


def _extract_from_any(result: Any) -> str | None:
    if isinstance(result, dict):
        return _extract_from_record(result, 0)
    if isinstance(result, list):
        segments = []
        for item in result:
            text = _extract_from_record(item, 0) if isinstance(item, dict) else _normalize_text_content(item)
            if text:
                segments.append(text)
        if segments:
            return "\n".join(segments)
    return _normalize_text_content(result)


def extract_assistant_text(payload: Any) -> str:
    """Pull the assistant text out of any run-response shape. Raises ValueError when there is none."""
    if isinstance(payload, str):
        text = payload.strip()
        if not text:
            raise ValueError("provider response payload is empty")
        try:
            return extract_assistant_text(json.loads(text))
        except ValueError:
            return text

    if isinstance(payload, list):
        extracted = _extract_from_any(payload)
        if extracted:
            return extracted
        raise ValueError("provider response payload is empty")

    if not isinstance(payload, dict):
        raise ValueError("provider response payload is empty")

    result = payload.get("result")
    if result is not None:
        extracted = _extract_from_any(result)
        if extracted:
            return extracted

    extracted = _extract_from_any(payload)
    if extracted:
        return extracted

    if result is None:
        raise ValueError("provider response payload does not include result")
    raise ValueError("provider response did not contain assistant text")


# ============================================================================
# HTTP CALLS
# ============================================================================
def _auth_headers(api_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_token}", "Content-Type": "application/json"}


def read_body_before(response: requests.Response, deadline: float) -> str:
    """Read a streamed body, closing the connection once the monotonic ``deadline`` passes."""
    chunks: List[bytes] = []
    try:
        for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
            if chunk:
                chunks.append(chunk)
            if time.monotonic() >= deadline:
                raise requests.exceptions.Timeout("provider response exceeded the attempt deadline")
    finally:
        response.close()
    return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")


def _decode_body(raw_body: str) -> Any:
    return json.loads(raw_body) if raw_body else {}


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.reason in RETRYABLE_REASONS


def _run_once(
    *,
    endpoint: str,
    api_token: str,
    request_payload: Dict[str, Any],
    model: str,
    attempt: int,
    timeout_seconds: float,
    on_diagnostic: DiagnosticCallback,
) -> tuple[str, int, str | None]:
    emit_diagnostic(on_diagnostic, "provider_attempt", provider=PROVIDER_NAME, model=model, attempt=attempt)
    emit_diagnostic(
        on_diagnostic,
        "provider_request",
        provider=PROVIDER_NAME,
        model=model,
        attempt=attempt,
        detail=",".join(request_payload.keys()),
    )
    started = time.monotonic()
    deadline = started + timeout_seconds
    try:
        response = requests.post(
            endpoint,
            json=request_payload,
            headers=_auth_headers(api_token),
            timeout=timeout_seconds,
            stream=True,
        )
        raw_body = read_body_before(response, deadline)
    except requests.exceptions.RequestException as exc:
        timed_out = isinstance(exc, requests.exceptions.Timeout) or time.monotonic() >= deadline
        emit_diagnostic(
            on_diagnostic,
            "provider_error",
            provider=PROVIDER_NAME,
            model=model,
            attempt=attempt,
            duration_ms=int((time.monotonic() - started) * 1000),
            reason="timeout" if timed_out else "request_error",
            detail=None if timed_out else summarize_detail(exc),
        )
        if timed_out:
            raise ProviderError("provider request timed out", reason="timeout") from exc
        raise ProviderError(str(exc) or "provider request failed", reason="request_error") from exc

    duration_ms = int((time.monotonic() - started) * 1000)
    status = int(response.status_code)
    ok = 200 <= status < 300
    ray_id = response.headers.get("cf-ray")
    emit_diagnostic(
        on_diagnostic,
        "provider_response",
        provider=PROVIDER_NAME,
        model=model,
        attempt=attempt,
        duration_ms=duration_ms,
        status=status,
        ok=ok,
        ray_id=ray_id,
    )

    try:
        payload = _decode_body(raw_body)
    except ValueError as exc:
        if ok:
            emit_diagnostic(
                on_diagnostic,
                "provider_error",
                provider=PROVIDER_NAME,
                model=model,
                attempt=attempt,
                duration_ms=duration_ms,
                status=status,
                ray_id=ray_id,
                reason="response_parse_error",
                detail=summarize_detail(exc),
            )
            raise ProviderError(
                "provider returned invalid JSON",
                reason="response_parse_error",
                status=status,
                ray_id=ray_id,
            ) from exc
        payload = raw_body

    emit_diagnostic(
        on_diagnostic,
        "provider_response_body",
        provider=PROVIDER_NAME,
        model=model,
        attempt=attempt,
        duration_ms=duration_ms,
        status=status,
        ray_id=ray_id,
        response_shape=describe_response_shape(payload),
    )

    if not ok:
        provider_code, provider_message = parse_provider_error(payload)
        reason = classify_status(status)
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        emit_diagnostic(
            on_diagnostic,
            "provider_request_invalid" if reason == "request_invalid" else "provider_error",
            provider=PROVIDER_NAME,
            model=model,
            attempt=attempt,
            duration_ms=duration_ms,
            status=status,
            ray_id=ray_id,
            reason=reason,
            error_code=provider_code,
            retry_after_seconds=retry_after,
            detail=summarize_detail(provider_message or f"provider returned status {status}"),
        )
        raise ProviderError(
            provider_message or f"provider returned status {status}",
            reason=reason,
            status=status,
            retry_after_seconds=retry_after,
            ray_id=ray_id,
            provider_code=provider_code,
        )

    try:
        text = extract_assistant_text(payload)
    except ValueError as exc:
        emit_diagnostic(
            on_diagnostic,
            "provider_error",
            provider=PROVIDER_NAME,
            model=model,
            attempt=attempt,
            duration_ms=duration_ms,
            status=status,
            ray_id=ray_id,
            reason="response_shape_error",
            detail=summarize_detail(exc),
        )
        raise ProviderError(
            "provider did not return assistant text",
            reason="response_shape_error",
            status=status,
            ray_id=ray_id,
        ) from exc
    return text, status, ray_id


def generate_text(
    *,
    api_token: str,
    account_id: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    timeout_ms: int = DEFAULT_HTTP_TIMEOUT_MS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    max_tokens: int = DEFAULT_PROVIDER_MAX_TOKENS,
    temperature: float = 0.3,
    on_diagnostic: DiagnosticCallback = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ProviderResult:
    """Run one chat completion. Rate limits, timeouts and transport errors are retried while attempts remain."""
    endpoint = build_run_endpoint(account_id, model)
    request_payload: Dict[str, Any] = {
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "temperature": temperature,
        "response_format": {"type": "json_object"},
    }
    timeout_seconds = max(1, int(timeout_ms)) / 1000

    def _log_retry(retry_state: Any) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "provider attempt %s failed reason=%s, retrying",
            retry_state.attempt_number,
            getattr(exc, "reason", "unknown"),
        )

    retrying = Retrying(
        stop=stop_after_attempt(max(1, int(max_attempts))),
        wait=wait_random(RATE_LIMIT_BACKOFF_MIN_SECONDS, RATE_LIMIT_BACKOFF_MAX_SECONDS),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            attempt_number = attempt.retry_state.attempt_number
            text, status, ray_id = _run_once(
                endpoint=endpoint,
                api_token=api_token,
                request_payload=request_payload,
                model=model,
                attempt=attempt_number,
                timeout_seconds=timeout_seconds,
                on_diagnostic=on_diagnostic,
            )
            return ProviderResult(text=text, status=status, ray_id=ray_id, model=model, attempts=attempt_number)

    raise ProviderError("provider request failed", reason="request_error")


@dataclass(frozen=True)
class ModelSearchResult:
    models: List[str]
    latency_ms: int
    status: int


def _collect_model_names(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    source = payload.get("result")
    if not isinstance(source, list):
        source = payload.get("models") if isinstance(payload.get("models"), list) else []
    names: List[str] = []
    for item in source:
        if not isinstance(item, dict):
            continue
        for key in ("id", "name", "model", "slug"):
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                if value.strip() not in names:
                    names.append(value.strip())
                break
    return names


def search_models(
    *,
    api_token: str,
    account_id: str,
    timeout_ms: int = DEFAULT_HTTP_TIMEOUT_MS,
    on_diagnostic: DiagnosticCallback = None,
) -> ModelSearchResult:
    endpoint = build_models_search_endpoint(account_id)
    timeout_seconds = max(1, int(timeout_ms)) / 1000
    started = time.monotonic()
    deadline = started + timeout_seconds
    try:
        response = requests.get(endpoint, headers=_auth_headers(api_token), timeout=timeout_seconds, stream=True)
        raw_body = read_body_before(response, deadline)
    except requests.exceptions.RequestException as exc:
        if isinstance(exc, requests.exceptions.Timeout) or time.monotonic() >= deadline:
            raise ProviderError("model search request timed out", reason="timeout") from exc
        raise ProviderError(str(exc) or "model search failed", reason="request_error") from exc

    latency_ms = int((time.monotonic() - started) * 1000)
    status = int(response.status_code)
    ok = 200 <= status < 300
    ray_id = response.headers.get("cf-ray")
    try:
        payload = _decode_body(raw_body)
    except ValueError:
        payload = raw_body

    emit_diagnostic(
        on_diagnostic,
        "provider_health",
        provider=PROVIDER_NAME,
        duration_ms=latency_ms,
        status=status,
        ok=ok,
        ray_id=ray_id,
        response_shape=describe_response_shape(payload),
        detail=None if ok else summarize_detail(raw_body),
    )

    if not ok:
        provider_code, provider_message = parse_provider_error(payload)
        raise ProviderError(
            provider_message or f"model search failed with status {status}",
            reason=classify_status(status),
            status=status,
            retry_after_seconds=parse_retry_after(response.headers.get("retry-after")),
            ray_id=ray_id,
            provider_code=provider_code,
        )
    return ModelSearchResult(models=_collect_model_names(payload), latency_ms=latency_ms, status=status)


def verify_model_exists(
    *,
    api_token: str,
    account_id: str,
    configured_model: str,
    timeout_ms: int = DEFAULT_HTTP_TIMEOUT_MS,
    on_diagnostic: DiagnosticCallback = None,
) -> Dict[str, Any]:
    result = search_models(
        api_token=api_token,
        account_id=account_id,
        timeout_ms=timeout_ms,
        on_diagnostic=on_diagnostic,
    )
    return {
        "model_exists": configured_model in result.models,
        "models_count": len(result.models),
        "latency_ms": result.latency_ms,
        "status": result.status,
    }
