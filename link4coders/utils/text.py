import html
import re
from typing import Optional

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500

_WHITESPACE = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> Optional[str]:
    """Decode HTML entities and collapse whitespace; blank input becomes None."""
    if value is None:
        return None
    text = _WHITESPACE.sub(" ", html.unescape(value)).strip()
    return text or None


def truncate(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None or len(value) <= max_length:
        return value
    return value[: max_length - 1].rstrip() + "…"
