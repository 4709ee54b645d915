"""
Normalisation of question options.

Question rows written by older clients store options as a list of strings, a
list of {text, imageUrl} objects, a JSON string holding either, or a plain
comma-separated string. Everything that renders a question goes through
normalize_options so the rest of the code sees one shape.
"""
import json
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def _normalize_option(option: Any) -> Dict[str, str]:
    if isinstance(option, dict):
        return {
            "text": str(option.get("text", "") or ""),
            "imageUrl": str(option.get("imageUrl", "") or ""),
        }
    return {"text": str(option), "imageUrl": ""}


def normalize_options(raw: Any) -> List[Dict[str, str]]:
    if raw is None or raw == "":
        return []

    if isinstance(raw, (list, tuple)):
        return [_normalize_option(option) for option in raw]

    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning(f"Invalid options JSON, falling back to comma-separated format: {raw!r}")
            return [{"text": text.strip(), "imageUrl": ""} for text in raw.split(",")]
        if isinstance(parsed, list):
            return [_normalize_option(option) for option in parsed]
        return []

    logger.warning(f"Unexpected options type: {type(raw).__name__}")
    return []
