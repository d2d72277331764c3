"""
Context formatter — render recent turns as the conversation payload
sent to the title model.
"""

from __future__ import annotations

from typing import List

from ..core.models import ConversationTurn

ELLIPSIS = "..."


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters and mark the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def format_context(
    turns: List[ConversationTurn],
    max_turns: int,
    max_chars_per_message: int,
) -> str:
    """
    Format the last ``max_turns`` turns for title generation.

    Each message is truncated to ``max_chars_per_message``. A turn whose
    assistant replied once shows a single ``Assistant:`` line; otherwise
    the first and last replies are shown.
    """
    if max_turns < 1 or max_chars_per_message < 1:
        raise ValueError("max_turns and max_chars_per_message must be positive")

    lines: List[str] = []

    for turn in turns[-max_turns:]:
        lines.append(f"User: {truncate(turn.user_text, max_chars_per_message)}")
        lines.append("")

        summary = turn.assistant
        if summary is None:
            continue

        if summary.first == summary.last:
            lines.append(f"Assistant: {truncate(summary.first, max_chars_per_message)}")
        else:
            lines.append(
                f"Assistant (initial): {truncate(summary.first, max_chars_per_message)}"
            )
            lines.append(
                f"Assistant (final): {truncate(summary.last, max_chars_per_message)}"
            )
        lines.append("")

    return "\n".join(lines)
