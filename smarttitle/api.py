"""
smart-title API — importable functions for all operations.

Every function returns JSON-serializable dicts/lists.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .coordinator import UpdateCoordinator
    from .core.config import Config
    from .core.host import SessionHost
    from .summarize.providers import ProviderRegistry


def init() -> Dict[str, Any]:
    """Create the config directory, default config and sessions directory."""
    from .core.config import Config, config_path

    path = config_path()
    results: Dict[str, Any] = {"created": [], "existing": []}

    if path.parent.exists():
        results["existing"].append(str(path.parent))
    else:
        path.parent.mkdir(parents=True)
        results["created"].append(str(path.parent))

    if path.exists():
        results["existing"].append(str(path))
    else:
        path.write_text(_DEFAULT_CONFIG_TEMPLATE)
        results["created"].append(str(path))

    sessions_dir = Config.load().resolved_sessions_dir
    if sessions_dir.exists():
        results["existing"].append(str(sessions_dir))
    else:
        sessions_dir.mkdir(parents=True)
        results["created"].append(str(sessions_dir))

    return results


_DEFAULT_CONFIG_TEMPLATE = """\
# smart-title configuration

# Enable or disable automatic title updates
enabled: true

# Verbose logging
debug: false

# ── Model ────────────────────────────────────────────────
# Optional: model used for title generation, "provider/model".
# Model ids may contain further slashes ("nvidia/meta/llama-3.3-70b-instruct").
# Without it, the first authenticated provider in this order is used:
#   openai, anthropic, google, deepseek, xai, alibaba, zai, opencode
# model: "anthropic/claude-haiku-4-5"

# API keys per provider. Environment variables work too:
#   OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY, DEEPSEEK_API_KEY, ...
api_keys: {}

# Override (or disable with "") the fallback model of a provider
# fallback_models:
#   openai: "gpt-5-mini"

# ── Title updates ────────────────────────────────────────
# Update the title every N idle events
update_threshold: 1

# Only the most recent N turns are sent to the model
max_turns: 5

# Each message is truncated to this many characters
max_chars_per_message: 500

# sessions_dir: "~/.smart-title/sessions"
"""


def _registry(cfg: Config) -> ProviderRegistry:
    from .summarize.providers import ProviderRegistry
    return ProviderRegistry(cfg.api_keys, timeout=cfg.llm_timeout)


# ── Status ────────────────────────────────────────────────────────────────────

def status() -> Dict[str, Any]:
    """Config diagnostics and authenticated providers."""
    from .core.config import Config, config_path

    cfg = Config.load()
    path = config_path()
    return {
        "config_path": str(path),
        "config_exists": path.exists(),
        "enabled": cfg.enabled,
        "model": cfg.model,
        "update_threshold": cfg.update_threshold,
        "max_turns": cfg.max_turns,
        "max_chars_per_message": cfg.max_chars_per_message,
        "sessions_dir": str(cfg.resolved_sessions_dir),
        "providers": sorted(_registry(cfg).list_authenticated()),
    }


def providers() -> List[Dict[str, str]]:
    """Authenticated providers with their key source."""
    from .core.config import Config

    cfg = Config.load()
    return [
        {"id": info.id, "name": info.name, "source": info.source}
        for info in _registry(cfg).list_authenticated().values()
    ]


def select(model: Optional[str] = None) -> Dict[str, Any]:
    """Run model selection without generating anything."""
    from .core.config import Config
    from .summarize.selector import select_model

    cfg = Config.load()
    result = select_model(
        _registry(cfg),
        model or cfg.model,
        fallback_models=cfg.fallback_models,
    )
    return {
        "model": str(result.ref),
        "source": result.source,
        "reason": result.reason,
        "failed_model": str(result.failed_model) if result.failed_model else None,
    }


# ── Titles ────────────────────────────────────────────────────────────────────

def context(
    session_file: str,
    *,
    max_turns: Optional[int] = None,
    max_chars: Optional[int] = None,
) -> Dict[str, Any]:
    """Show the context that would be sent for a session file."""
    from .core.config import Config
    from .ingest.extractor import extract_turns
    from .ingest.loader import load_messages
    from .summarize.context import format_context

    path = Path(session_file)
    if not path.exists():
        return {"error": f"File not found: {session_file}"}

    cfg = Config.load()
    turns = extract_turns(load_messages(path))
    return {
        "turns": len(turns),
        "context": format_context(
            turns,
            max_turns or cfg.max_turns,
            max_chars or cfg.max_chars_per_message,
        ),
    }


def title(
    session_file: str,
    *,
    model: Optional[str] = None,
    apply: bool = False,
) -> Dict[str, Any]:
    """Generate a title for a session file, optionally writing it back."""
    from .core.config import Config
    from .core.host import FileSessionHost
    from .coordinator import UpdateCoordinator
    from .ingest.extractor import extract_turns
    from .ingest.loader import load_messages
    from .summarize.context import format_context

    path = Path(session_file)
    if not path.exists():
        return {"error": f"File not found: {session_file}"}

    cfg = Config.load()
    if model:
        cfg.model = model

    turns = extract_turns(load_messages(path))
    if not turns:
        return {"error": "No conversation turns found"}

    host = FileSessionHost(path.parent)
    coordinator = UpdateCoordinator(host, _registry(cfg), cfg)
    try:
        text = format_context(turns, cfg.max_turns, cfg.max_chars_per_message)
        new_title, selection = coordinator.generate_title(text)
        if apply:
            host.update_title(path.stem, new_title)
    finally:
        coordinator.shutdown()

    return {
        "title": new_title,
        "model": str(selection.ref),
        "source": selection.source,
        "failed_model": str(selection.failed_model) if selection.failed_model else None,
        "applied": apply,
    }


def idle(
    session_id: str,
    *,
    times: int = 1,
    sessions_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """Deliver ``times`` idle events for a stored session and wait for updates."""
    coordinator = create_coordinator(sessions_dir=sessions_dir)
    titles = []
    try:
        for _ in range(times):
            future = coordinator.on_idle(session_id)
            if future is not None:
                titles.append(future.result())
    finally:
        coordinator.shutdown()

    return {
        "session_id": session_id,
        "idle_count": coordinator.idle_count(session_id),
        "updates": len(titles),
        "title": next((t for t in reversed(titles) if t), None),
    }


def create_coordinator(
    *,
    config: Optional[Config] = None,
    host: Optional[SessionHost] = None,
    sessions_dir: Optional[str] = None,
) -> UpdateCoordinator:
    """Build a coordinator wired to the configured providers and host."""
    from .core.config import Config
    from .core.host import FileSessionHost
    from .coordinator import UpdateCoordinator

    cfg = config or Config.load()
    if host is None:
        host = FileSessionHost(Path(sessions_dir) if sessions_dir else cfg.resolved_sessions_dir)
    return UpdateCoordinator(host, _registry(cfg), cfg)
