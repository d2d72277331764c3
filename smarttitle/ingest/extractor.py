"""
Context extractor — group a session's messages into conversation turns.

A turn is one user message plus the assistant text that follows it before
the next user message. Only the first and last assistant texts of a turn
are kept, which is enough to see where the turn started and where it ended.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..core.models import AssistantSummary, ConversationTurn, Message, MessagePart

logger = logging.getLogger(__name__)


def extract_text(parts: List[MessagePart]) -> str:
    """Join non-synthetic text parts with newlines."""
    return "\n".join(
        part.text or ""
        for part in parts
        if part.kind == "text" and not part.synthetic
    ).strip()


def extract_turns(messages: List[Message]) -> List[ConversationTurn]:
    """
    Group messages into chronological turns.

    System messages are dropped. The last turn is always emitted, even when
    the assistant has not replied yet, so the message that triggered the
    update is part of the context.
    """
    conversation = sorted(
        (m for m in messages if m.role in ("user", "assistant")),
        key=lambda m: m.created,
    )

    turns: List[ConversationTurn] = []
    current: Optional[ConversationTurn] = None
    collected: List[Tuple[str, int]] = []

    for msg in conversation:
        if msg.role == "user":
            if current is not None:
                current.assistant = _summarize(collected)
                turns.append(current)
            current = ConversationTurn(
                user_text=extract_text(msg.parts),
                user_time=msg.created,
            )
            collected = []
        else:
            text = extract_text(msg.parts)
            if text:
                collected.append((text, msg.created))

    if current is not None:
        current.assistant = _summarize(collected)
        turns.append(current)

    logger.debug(
        f"Extracted {len(turns)} turns from {len(conversation)} conversation messages "
        f"({len(messages)} total)"
    )
    return turns


def _summarize(collected: List[Tuple[str, int]]) -> Optional[AssistantSummary]:
    if not collected:
        return None
    return AssistantSummary(
        first=collected[0][0],
        last=collected[-1][0],
        time=collected[0][1],
    )
