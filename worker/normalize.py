# ============================================================================
# OUTPUT NORMALIZATION
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Inference output recovery
# PURPOSE: Turn free-form model text into persistable structured data
# CREATED: 19 OCT 2026
# ============================================================================
"""
Output Normalization

The inference service returns text that is usually JSON, sometimes wrapped
in markdown fences or surrounded by prose. normalize_output() always
returns a dict:

    1. Direct json.loads of the stripped text
    2. First fenced ```json block
    3. Slice from the first '{' to the last '}'
    4. Otherwise {"error": "unparseable_output", "raw_text": <text>}

A JSON value that is not an object is wrapped as {"value": <parsed>}.
Parsing failures never fail the job.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

UNPARSEABLE_OUTPUT = "unparseable_output"
MAX_RAW_TEXT_CHARS = 20000

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def normalize_output(text: Optional[str]) -> Dict[str, Any]:
    """Parse model output into a dict, degrading to an error placeholder."""
    stripped = (text or "").strip()
    if not stripped:
        return {"error": UNPARSEABLE_OUTPUT, "raw_text": ""}

    parsed = _parse(stripped)
    if parsed is _NOTHING:
        logger.warning(f"Model output is not valid JSON ({len(stripped)} chars), storing raw text")
        return {"error": UNPARSEABLE_OUTPUT, "raw_text": stripped[:MAX_RAW_TEXT_CHARS]}

    if isinstance(parsed, dict):
        return parsed
    return {"value": parsed}


def is_unparseable(description: Dict[str, Any]) -> bool:
    return description.get("error") == UNPARSEABLE_OUTPUT


_NOTHING = object()


def _parse(text: str) -> Any:
    direct = _try_load(text)
    if direct is not _NOTHING:
        return direct

    fenced = _FENCED_BLOCK.search(text)
    if fenced is not None:
        payload = _try_load(fenced.group(1))
        if payload is not _NOTHING:
            return payload

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return _NOTHING
    return _try_load(text[start:end + 1])


def _try_load(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return _NOTHING


__all__ = ["normalize_output", "is_unparseable", "UNPARSEABLE_OUTPUT"]
