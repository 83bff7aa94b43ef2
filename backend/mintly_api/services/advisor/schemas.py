from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft202012Validator

RISK_LEVEL_ENUM = ["low", "medium", "high"]


def _line_array(min_items: int, max_items: int, max_length: int = 320) -> Dict[str, Any]:
    return {
        "type": "array",
        "minItems": min_items,
        "maxItems": max_items,
        "items": {"type": "string", "minLength": 1, "maxLength": max_length},
    }


PROVIDER_OUTPUT_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": [
        "summary",
        "topFindings",
        "suggestedActions",
        "warnings",
        "savings",
        "investment",
        "expenseOptimization",
        "tips",
    ],
    "properties": {
        "summary": {"type": "string", "minLength": 1, "maxLength": 1500},
        "topFindings": _line_array(1, 8),
        "suggestedActions": _line_array(1, 8),
        "warnings": _line_array(0, 8),
        "savings": {
            "type": "object",
            "required": ["targetRate", "monthlyTargetAmount", "next7DaysActions", "autoTransferSuggestion"],
            "properties": {
                "targetRate": {"type": "number", "minimum": 0, "maximum": 1},
                "monthlyTargetAmount": {"type": "number", "minimum": 0},
                "next7DaysActions": _line_array(1, 8),
                "autoTransferSuggestion": {"type": "string", "minLength": 1, "maxLength": 320},
            },
            "additionalProperties": False,
        },
        "investment": {
            "type": "object",
            "required": ["profiles", "guidance"],
            "properties": {
                "profiles": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": 3,
                    "items": {
                        "type": "object",
                        "required": ["level", "title", "rationale", "options"],
                        "properties": {
                            "level": {"type": "string", "enum": RISK_LEVEL_ENUM},
                            "title": {"type": "string", "minLength": 1, "maxLength": 180},
                            "rationale": {"type": "string", "minLength": 1, "maxLength": 400},
                            "options": _line_array(1, 6, max_length=260),
                        },
                        "additionalProperties": False,
                    },
                },
                "guidance": _line_array(1, 8),
            },
            "additionalProperties": False,
        },
        "expenseOptimization": {
            "type": "object",
            "required": ["cutCandidates", "quickWins"],
            "properties": {
                "cutCandidates": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": 6,
                    "items": {
                        "type": "object",
                        "required": ["label", "suggestedReductionPercent", "alternativeAction"],
                        "properties": {
                            "label": {"type": "string", "minLength": 1, "maxLength": 120},
                            "suggestedReductionPercent": {"type": "number", "minimum": 0, "maximum": 100},
                            "alternativeAction": {"type": "string", "minLength": 1, "maxLength": 320},
                        },
                        "additionalProperties": False,
                    },
                },
                "quickWins": _line_array(1, 8),
            },
            "additionalProperties": False,
        },
        "tips": _line_array(1, 10),
    },
    "additionalProperties": False,
}

PROVIDER_OUTPUT_SECTIONS = tuple(PROVIDER_OUTPUT_JSON_SCHEMA["required"])

_provider_output_validator = Draft202012Validator(PROVIDER_OUTPUT_JSON_SCHEMA)


def validate_provider_output_payload(payload: Dict[str, Any]) -> list[str]:
    errors = sorted(_provider_output_validator.iter_errors(payload), key=lambda item: [str(part) for part in item.path])
    messages: list[str] = []
    for item in errors:
        path = ".".join(str(part) for part in item.path)
        location = path if path else "$"
        messages.append(f"{location}: {item.message}")
    return messages


def invalid_provider_sections(payload: Dict[str, Any]) -> set[str]:
    """Top-level sections that are missing or off-shape. Unknown extra keys are ignored."""
    invalid: set[str] = set()
    for item in _provider_output_validator.iter_errors(payload):
        if item.path:
            invalid.add(str(item.path[0]))
        elif item.validator == "required":
            invalid.update(key for key in PROVIDER_OUTPUT_SECTIONS if key not in payload)
        elif item.validator == "type":
            invalid.update(PROVIDER_OUTPUT_SECTIONS)
    return invalid
