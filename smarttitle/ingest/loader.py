"""
Message loader — turn exported session records into Message objects.

Records use the host's export shape:

    {"info": {"id", "role", "sessionID", "time": {"created", "completed"},
              "parentID"},
     "parts": [{"type": "text", "text": "...", "synthetic": false}, ...]}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.models import Message, MessagePart

logger = logging.getLogger(__name__)

_ROLES = ("user", "assistant", "system")


def load_session_file(path: Path) -> Dict[str, Any]:
    """Read a session export file.

    Accepts either ``{"info": {...}, "messages": [...]}`` or a bare list of
    message records. Always returns the dict form.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return {"info": {}, "messages": data}
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected session file layout: {path}")

    data.setdefault("info", {})
    data.setdefault("messages", [])
    return data


def load_messages(path: Path) -> List[Message]:
    """Load and parse the message history stored in a session file."""
    data = load_session_file(path)
    return parse_messages(data["messages"], session_id=data["info"].get("id"))


def parse_messages(
    records: List[Dict[str, Any]],
    *,
    session_id: Optional[str] = None,
) -> List[Message]:
    """Parse raw message records, skipping malformed ones."""
    messages = []
    for idx, record in enumerate(records):
        msg = _parse_message(record, session_id=session_id)
        if msg is None:
            logger.warning(f"Skipping malformed message record #{idx}")
            continue
        messages.append(msg)
    return messages


def _parse_message(record: Any, *, session_id: Optional[str]) -> Optional[Message]:
    if not isinstance(record, dict):
        return None

    info = record.get("info", {})
    if not isinstance(info, dict):
        return None

    role = info.get("role")
    if role not in _ROLES:
        return None

    times = info.get("time") or {}
    if not isinstance(times, dict):
        return None
    created = _as_int(times.get("created"))
    if created is None:
        return None

    raw_parts = record.get("parts") or []
    if not isinstance(raw_parts, list):
        return None

    parts = [
        part for part in (_parse_part(p) for p in raw_parts)
        if part is not None
    ]

    return Message(
        id=str(info.get("id", "")),
        role=role,
        session_id=str(info.get("sessionID") or session_id or ""),
        created=created,
        completed=_as_int(times.get("completed")),
        parent_id=info.get("parentID"),
        parts=parts,
    )


def _parse_part(raw: Any) -> Optional[MessagePart]:
    if not isinstance(raw, dict) or not raw.get("type"):
        return None
    text = raw.get("text")
    return MessagePart(
        kind=str(raw["type"]),
        text=text if isinstance(text, str) else None,
        synthetic=bool(raw.get("synthetic", False)),
    )


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
