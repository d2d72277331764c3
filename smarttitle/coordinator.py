"""
Update coordinator — turn idle notifications into title updates.

Every idle event of a top-level session bumps that session's counter. On
every ``update_threshold``-th event the title pipeline runs in the
background:

    messages → turns → context → model → raw text → title → host
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional, Tuple

from .core.config import Config
from .core.host import SessionHost
from .core.models import SelectionResult
from .ingest.extractor import extract_turns
from .summarize.context import format_context, truncate
from .summarize.prompt import build_prompt
from .summarize.sanitize import sanitize_title
from .summarize.selector import NoUsableModelError, select_model

logger = logging.getLogger(__name__)

FALLBACK_NOTICE_TITLE = "Smart Title: Model fallback"
FALLBACK_NOTICE_DURATION = 5000


class UpdateCoordinator:
    """Owns per-session idle counters and runs title updates."""

    def __init__(
        self,
        host: SessionHost,
        registry,
        config: Optional[Config] = None,
        *,
        max_workers: int = 2,
    ):
        self.host = host
        self.registry = registry
        self.config = config or Config()

        # Process-lifetime; entries are never evicted
        self._counts: Dict[str, int] = {}
        self._counts_lock = threading.Lock()

        # At most one drain per session; requests arriving while it runs are
        # queued behind it instead of occupying another worker
        self._dispatch_lock = threading.Lock()
        self._running: Dict[str, Future] = {}
        self._queued: Dict[str, int] = {}

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="smart-title"
        )

    # ── Events ────────────────────────────────────────────────────────────

    def on_idle(self, session_id: str) -> Optional[Future]:
        """
        Handle an idle notification.

        Returns the future of the update run covering this event, or None
        when no update was started. Never raises.
        """
        try:
            return self._on_idle(session_id)
        except Exception as e:
            logger.error(f"Idle handling failed for {session_id}: {e}")
            return None

    def _on_idle(self, session_id: str) -> Optional[Future]:
        if not self.config.enabled:
            return None

        logger.debug(f"Session became idle: {session_id}")

        if self.is_subsession(session_id):
            logger.debug(f"Skipping sub-session {session_id}")
            return None

        count = self.increment(session_id)
        threshold = self.config.update_threshold
        if count % threshold != 0:
            logger.debug(
                f"Threshold not reached for {session_id}: count={count} threshold={threshold}"
            )
            return None

        logger.info(
            f"Threshold reached for {session_id} (count={count}), triggering title update"
        )
        return self._dispatch(session_id)

    def _dispatch(self, session_id: str) -> Future:
        with self._dispatch_lock:
            self._queued[session_id] = self._queued.get(session_id, 0) + 1
            running = self._running.get(session_id)
            if running is not None:
                logger.debug(f"Update already running for {session_id}, queued behind it")
                return running

            try:
                future = self._executor.submit(self._drain, session_id)
            except RuntimeError:
                self._queued.pop(session_id, None)
                raise
            self._running[session_id] = future
        future.add_done_callback(lambda f: self._log_failure(session_id, f))
        return future

    def _drain(self, session_id: str) -> Optional[str]:
        """Run queued updates for one session back to back."""
        title = None
        while True:
            with self._dispatch_lock:
                if not self._queued.get(session_id):
                    self._queued.pop(session_id, None)
                    self._running.pop(session_id, None)
                    return title
                self._queued[session_id] -= 1
            title = self.update_title(session_id)

    def is_subsession(self, session_id: str) -> bool:
        try:
            parent_id = self.host.get_parent_id(session_id)
        except Exception as e:
            logger.error(f"Failed to check parent of {session_id}: {e}")
            return False
        return bool(parent_id)

    def increment(self, session_id: str) -> int:
        with self._counts_lock:
            count = self._counts.get(session_id, 0) + 1
            self._counts[session_id] = count
        return count

    def idle_count(self, session_id: str) -> int:
        with self._counts_lock:
            return self._counts.get(session_id, 0)

    @staticmethod
    def _log_failure(session_id: str, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Title update failed for {session_id}: {error}")

    # ── Pipeline ──────────────────────────────────────────────────────────

    def update_title(self, session_id: str) -> Optional[str]:
        """
        Run one title update for a session.

        Returns the applied title, or None when nothing was changed.
        """
        try:
            return self._update_title(session_id)
        except NoUsableModelError as e:
            logger.error(f"Title update skipped for {session_id}: {e}")
        except Exception as e:
            logger.exception(f"Failed to update title for {session_id}: {e}")
        return None

    def _update_title(self, session_id: str) -> Optional[str]:
        logger.info(f"Title update triggered for {session_id}")

        turns = extract_turns(self.host.get_messages(session_id))
        if not turns:
            logger.warning(f"No conversation turns found for {session_id}")
            return None

        for turn in turns:
            logger.debug(
                f"Turn: user={truncate(turn.user_text, 100)!r} "
                f"has_assistant={turn.assistant is not None}"
            )

        context = format_context(
            turns, self.config.max_turns, self.config.max_chars_per_message
        )
        logger.info(
            f"Context formatted for {session_id}: turns={len(turns)} "
            f"used={min(len(turns), self.config.max_turns)} chars={len(context)}"
        )

        title, _ = self.generate_title(context)

        self.host.update_title(session_id, title)
        logger.info(f"Session {session_id} title updated: {title!r}")
        return title

    def generate_title(self, context: str) -> Tuple[str, SelectionResult]:
        """Select a model, generate from the context and sanitize the result."""
        selection = select_model(
            self.registry,
            self.config.model,
            fallback_models=self.config.fallback_models,
        )
        logger.info(
            f"Model selected: {selection.ref} source={selection.source} reason={selection.reason}"
        )

        if selection.failed_model is not None:
            self._notify_fallback(selection)

        raw = self.registry.generate(selection.model, build_prompt(context))
        title = sanitize_title(raw)
        logger.info(f"Title generated: {title!r} (raw {len(raw)} chars)")
        return title, selection

    def _notify_fallback(self, selection: SelectionResult) -> None:
        try:
            self.host.notify(
                FALLBACK_NOTICE_TITLE,
                f"{selection.failed_model} failed\nUsing {selection.ref}",
                variant="info",
                duration=FALLBACK_NOTICE_DURATION,
            )
        except Exception as e:
            logger.error(f"Failed to show fallback notification: {e}")

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
