"""Data models for smart-title."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class MessagePart:
    kind: str                      # "text" | "tool" | "file" | ...
    text: Optional[str] = None
    synthetic: bool = False


@dataclass
class Message:
    id: str
    role: str                      # "user" | "assistant" | "system"
    session_id: str
    created: int                   # epoch millis
    completed: Optional[int] = None
    parent_id: Optional[str] = None
    parts: List[MessagePart] = field(default_factory=list)


@dataclass
class AssistantSummary:
    first: str
    last: str
    time: int                      # created time of `first`


@dataclass
class ConversationTurn:
    user_text: str
    user_time: int
    assistant: Optional[AssistantSummary] = None


@dataclass(frozen=True)
class ModelReference:
    provider_id: str
    model_id: str

    def __str__(self) -> str:
        return f"{self.provider_id}/{self.model_id}"


@dataclass
class ProviderInfo:
    id: str
    name: str
    source: str                    # "config" | "env"


@dataclass
class SelectionResult:
    model: Any                     # opaque handle from the provider registry
    ref: ModelReference
    source: str                    # "config" | "fallback"
    reason: Optional[str] = None
    failed_model: Optional[ModelReference] = None
