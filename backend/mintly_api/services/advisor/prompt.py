from __future__ import annotations

import json
from typing import Any, Dict

from mintly_api.config import LANGUAGE_NAMES

SYSTEM_PROMPT = (
    "You are Mintly AI. Return a single valid JSON object only (RFC 8259). "
    "Use double quotes for all keys/strings. No trailing commas. No markdown fences. No extra text."
)

_SHAPE_EXAMPLE: Dict[str, Any] = {
    "summary": "string",
    "topFindings": ["string"],
    "suggestedActions": ["string"],
    "warnings": ["string"],
    "savings": {
        "targetRate": 0.2,
        "monthlyTargetAmount": 0,
        "next7DaysActions": ["string"],
        "autoTransferSuggestion": "string",
    },
    "investment": {
        "profiles": [
            {
                "level": "low",
                "title": "string",
                "rationale": "string",
                "options": ["string"],
            }
        ],
        "guidance": ["string"],
    },
    "expenseOptimization": {
        "cutCandidates": [
            {
                "label": "string",
                "suggestedReductionPercent": 15,
                "alternativeAction": "string",
            }
        ],
        "quickWins": ["string"],
    },
    "tips": ["string"],
}


def build_advisor_prompt(language: str, payload: Dict[str, Any]) -> str:
    """Render the user prompt. Output is a pure function of (language, payload)."""
    language_name = LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["en"])
    shape_json = json.dumps(_SHAPE_EXAMPLE, ensure_ascii=False, separators=(",", ":"))
    payload_json = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True)
    lines = [
        "You are Mintly AI, a conservative personal finance advisor.",
        f"Write all narrative text in {language_name}.",
        "Use only the provided aggregate and anonymized data.",
        "Do not include private identifiers, account numbers, emails, transaction IDs, or user IDs.",
        "Return strict JSON only with this exact shape:",
        shape_json,
        "Rules:",
        "- summary: 2-4 sentences",
        "- topFindings: 3-6 items; cover the month-over-month income/expense trend (monthOverMonth) "
        "and the top expense driver",
        "- topFindings: mention budget pressure (budgetAdherence), recurring burden "
        "(recurringOutflows.burdenRatio) and anomalies when they are present",
        "- suggestedActions: 3-6 concrete actions tied to the findings",
        "- warnings: 0-4 items, only for real risks (negative cashflow, over-limit budgets, "
        "high recurring burden, unusual transactions)",
        "- savings.next7DaysActions: 3-5 actionable bullets",
        "- investment.profiles: include low, medium, and high risk profiles if possible",
        "- expenseOptimization.cutCandidates: choose realistic top 3 categories or merchants",
        "- reflect preferred savings target rate and preferred risk profile in recommendations",
        "- keep concise and practical",
        "- IMPORTANT: every list field must be a JSON array (never a single string).",
        "- Do not wrap the JSON in markdown fences.",
        f"Input JSON: {payload_json}",
    ]
    return "\n".join(lines)
