"""
Helpers for turning raw model output into something the API can use.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

JSON_FENCE_PATTERN = re.compile(r'```(?:json)?\s*\n?(.*?)\n?```', re.DOTALL | re.IGNORECASE)


def extract_json_payload(text: str) -> Optional[Any]:
    """
    Parse a JSON value from model output.

    The model is asked for bare JSON but sometimes wraps it in a Markdown code
    fence; the first fenced block that parses is used in that case.

    Returns:
        The decoded value, or None if no JSON could be found
    """
    if not text:
        return None

    try:
        return json.loads(text.strip())
    except (json.JSONDecodeError, ValueError):
        pass

    for match in JSON_FENCE_PATTERN.findall(text):
        try:
            return json.loads(match.strip())
        except (json.JSONDecodeError, ValueError):
            continue

    logger.debug("No JSON payload found in model output")
    return None


def clean_reply(text: str) -> str:
    """Strip formatting the chat widget cannot render."""
    if not text:
        return ""
    return (
        text.replace("\\n", "\n")
        .replace("**", "")
        .replace('"', "")
        .strip()
    )
