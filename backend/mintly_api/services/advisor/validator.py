from __future__ import annotations

import copy
import json
import re
from typing import Any, Dict

from pydantic import ValidationError

from .contracts import ProviderOutput
from .schemas import PROVIDER_OUTPUT_SECTIONS, invalid_provider_sections, validate_provider_output_payload

VALIDATION_POLICIES = ("strict", "merge")
_BULLET_PREFIX_PATTERN = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s+")
_FENCED_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", flags=re.DOTALL | re.IGNORECASE)
_NUMERIC_FIELDS = {
    "savings": ("targetRate", "monthlyTargetAmount"),
}


def _normalize_json_text(text: str) -> str:
    normalized = str(text or "").strip().lstrip("\ufeff")
    replacements = {
        "\u201c": "\"",
        "\u201d": "\"",
    }
    for source, target in replacements.items():
        normalized = normalized.replace(source, target)
    normalized = re.sub(r"^\s*json\s*[:\-]?\s*(?=\{)", "", normalized, flags=re.IGNORECASE)
    return normalized.strip()


def _load_json_candidate(text: str) -> Dict[str, Any] | None:
    candidate = _normalize_json_text(text)
    if not candidate:
        return None

    for item in (candidate, re.sub(r",(\s*[}\]])", r"\1", candidate)):
        try:
            parsed = json.loads(item)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, str):
            try:
                nested = json.loads(parsed)
            except json.JSONDecodeError:
                continue
            if isinstance(nested, dict):
                return nested
    return None


def parse_provider_json(raw_text: str) -> Dict[str, Any] | None:
    """Fenced block first, then the whole text, then the first '{' to the last '}'."""
    text = _normalize_json_text(raw_text or "")
    if not text:
        return None

    fenced = _FENCED_PATTERN.search(text)
    candidate = fenced.group(1) if fenced else text
    parsed = _load_json_candidate(candidate)
    if parsed is not None:
        return parsed

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start < 0 or end <= start:
        return None
    return _load_json_candidate(candidate[start : end + 1])


def coerce_string_array(value: Any) -> Any:
    """Turn a bullet/line-delimited string into a list of lines. Non-strings pass through."""
    if isinstance(value, list):
        return value
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return []
    lines = [_BULLET_PREFIX_PATTERN.sub("", line).strip() for line in re.split(r"\r?\n", text)]
    lines = [line for line in lines if line]
    return lines or [text]


def _coerce_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            return value
    return value


def coerce_provider_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    root = copy.deepcopy(payload)

    for key in ("topFindings", "suggestedActions", "warnings", "tips"):
        if key in root:
            root[key] = coerce_string_array(root[key])
    if root.get("warnings") is None:
        root["warnings"] = []

    savings = root.get("savings")
    if isinstance(savings, dict):
        savings["next7DaysActions"] = coerce_string_array(savings.get("next7DaysActions"))
        for key in _NUMERIC_FIELDS["savings"]:
            if key in savings:
                savings[key] = _coerce_number(savings[key])

    investment = root.get("investment")
    if isinstance(investment, dict):
        investment["guidance"] = coerce_string_array(investment.get("guidance"))
        profiles = investment.get("profiles")
        if isinstance(profiles, dict):
            profiles = [profiles]
        if isinstance(profiles, list):
            for profile in profiles:
                if isinstance(profile, dict):
                    profile["options"] = coerce_string_array(profile.get("options"))
                    if isinstance(profile.get("level"), str):
                        profile["level"] = profile["level"].strip().lower()
            investment["profiles"] = profiles

    expense = root.get("expenseOptimization")
    if isinstance(expense, dict):
        expense["quickWins"] = coerce_string_array(expense.get("quickWins"))
        candidates = expense.get("cutCandidates")
        if isinstance(candidates, dict):
            expense["cutCandidates"] = candidates = [candidates]
        if isinstance(candidates, list):
            for candidate in candidates:
                if isinstance(candidate, dict) and "suggestedReductionPercent" in candidate:
                    candidate["suggestedReductionPercent"] = _coerce_number(candidate["suggestedReductionPercent"])

    return root


def validate_provider_output(
    raw_text: str,
    *,
    policy: str = "strict",
    fallback: ProviderOutput | None = None,
) -> tuple[ProviderOutput | None, list[str], Dict[str, Any]]:
    """Parse, coerce and validate provider text.

    ``strict`` rejects the whole output on any violation. ``merge`` swaps in the
    fallback's version of every section that is missing or off-shape, and only
    rejects when no section survives or no fallback is given.
    """
    errors: list[str] = []
    meta: Dict[str, Any] = {"policy": policy, "merged_sections": []}

    payload = parse_provider_json(raw_text)
    if payload is None:
        errors.append("provider_parse_error")
        return None, errors, meta

    provided = {key for key in payload if key in PROVIDER_OUTPUT_SECTIONS}
    payload = coerce_provider_payload(payload)
    payload = {key: value for key, value in payload.items() if key in PROVIDER_OUTPUT_SECTIONS}
    schema_errors = validate_provider_output_payload(payload)

    if schema_errors:
        if policy != "merge" or fallback is None:
            errors.append("provider_validation_error")
            errors.extend(f"schema:{message}" for message in schema_errors[:5])
            return None, errors, meta

        invalid = invalid_provider_sections(payload)
        if not provided - invalid:
            errors.append("provider_validation_error")
            errors.extend(f"schema:{message}" for message in schema_errors[:5])
            return None, errors, meta

        fallback_payload = fallback.model_dump(by_alias=True)
        for section in PROVIDER_OUTPUT_SECTIONS:
            if section in invalid:
                payload[section] = copy.deepcopy(fallback_payload[section])
        meta["merged_sections"] = sorted(invalid)

    try:
        return ProviderOutput.model_validate(payload), errors, meta
    except ValidationError as exc:
        errors.append("provider_validation_error")
        errors.append(str(exc))
        return None, errors, meta
