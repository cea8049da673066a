import re
from typing import Any, Dict, Tuple

PLACEHOLDER_PATTERN = re.compile(r'\[([^\[\]]+)\]')


def fill_placeholders(text: str, values: Dict[str, Any]) -> str:
    """
    Replace [token] placeholders with values from the entry data.
    Tokens without a matching (non-empty) value are left in the text as-is.
    """
    if not text:
        return text or ""

    lowered = {str(k).lower(): v for k, v in values.items()}

    def _substitute(match: re.Match) -> str:
        token = match.group(1).strip()
        value = values.get(token)
        if value is None:
            value = lowered.get(token.lower())
        if value is None or value == "":
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_substitute, text)


def render_template(subject: str, body: str, entry_data: Dict[str, Any]) -> Tuple[str, str]:
    return fill_placeholders(subject, entry_data), fill_placeholders(body, entry_data)
