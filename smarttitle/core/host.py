"""
Session host — the collaborator that owns sessions, messages and titles.

UpdateCoordinator only talks to a SessionHost. Embedders implement it on top
of their own storage; FileSessionHost keeps each session as a JSON file.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..ingest.loader import load_session_file, parse_messages
from .models import Message

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """No session is stored under the requested id."""


class SessionHost(ABC):
    """Abstract interface to the host application."""

    @abstractmethod
    def get_messages(self, session_id: str) -> List[Message]:
        """Ordered message history of a session."""

    @abstractmethod
    def get_parent_id(self, session_id: str) -> Optional[str]:
        """Parent session id, or None for a top-level session."""

    @abstractmethod
    def update_title(self, session_id: str, title: str) -> None:
        """Apply a new title to the session."""

    def notify(
        self,
        title: str,
        message: str,
        *,
        variant: str = "info",
        duration: int = 5000,
    ) -> None:
        """Show a transient notice to the user. Default: log it."""
        level = logging.WARNING if variant in ("warning", "error") else logging.INFO
        logger.log(level, f"{title}: {message}")


class FileSessionHost(SessionHost):
    """
    Sessions stored as ``<sessions_dir>/<session_id>.json``.

    File layout::

        {"info": {"id": "...", "title": "...", "parentID": null},
         "messages": [{"info": {...}, "parts": [...]}, ...]}
    """

    def __init__(self, sessions_dir: Path):
        self.sessions_dir = Path(sessions_dir).expanduser()

    def session_path(self, session_id: str) -> Path:
        if not session_id or "/" in session_id or session_id.startswith("."):
            raise SessionNotFoundError(f"Invalid session id: {session_id!r}")
        return self.sessions_dir / f"{session_id}.json"

    def _load(self, session_id: str) -> dict:
        path = self.session_path(session_id)
        if not path.exists():
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return load_session_file(path)

    def list_sessions(self) -> List[str]:
        if not self.sessions_dir.exists():
            return []
        return sorted(p.stem for p in self.sessions_dir.glob("*.json"))

    def get_messages(self, session_id: str) -> List[Message]:
        data = self._load(session_id)
        return parse_messages(data["messages"], session_id=session_id)

    def get_parent_id(self, session_id: str) -> Optional[str]:
        return self._load(session_id)["info"].get("parentID") or None

    def get_title(self, session_id: str) -> Optional[str]:
        return self._load(session_id)["info"].get("title")

    def update_title(self, session_id: str, title: str) -> None:
        data = self._load(session_id)
        data["info"]["title"] = title

        path = self.session_path(session_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)
        logger.debug(f"Wrote title for {session_id}: {title!r}")
