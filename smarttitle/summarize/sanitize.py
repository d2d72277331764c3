"""Title sanitizer — clean raw model output into a displayable title."""

from __future__ import annotations

import re

UNTITLED = "Untitled"
MAX_TITLE_LENGTH = 100

# Reasoning models may prefix their answer with a thinking block
_REASONING_BLOCK = re.compile(
    r"<(think|thinking|reasoning)>.*?</\1>\s*", re.DOTALL | re.IGNORECASE
)


def sanitize_title(raw: str) -> str:
    """Strip reasoning blocks, keep the first non-empty line, cap the length."""
    cleaned = _REASONING_BLOCK.sub("", raw or "")

    lines = (line.strip() for line in cleaned.splitlines())
    title = next((line for line in lines if line), UNTITLED)

    if len(title) > MAX_TITLE_LENGTH:
        title = title[: MAX_TITLE_LENGTH - 3] + "..."

    return title
