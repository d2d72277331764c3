"""
Model selection with fallback.

Selection order:
1. The configured model ("provider/model"), if any.
2. The fallback model of each authenticated provider, in PROVIDER_PRIORITY
   order.

Candidates are tried one at a time. The first one that resolves wins, so
providers that are never needed are never called.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from ..core.models import ModelReference, SelectionResult

logger = logging.getLogger(__name__)

MODEL_SEPARATOR = "/"

FALLBACK_MODELS: Dict[str, str] = {
    "openai": "gpt-5-mini",
    "anthropic": "claude-haiku-4-5",
    "google": "gemini-2.5-flash",
    "deepseek": "deepseek-chat",
    "xai": "grok-4-fast",
    "alibaba": "qwen3-coder-flash",
    "zai": "glm-4.5-flash",
    "opencode": "big-pickle",
}

PROVIDER_PRIORITY: List[str] = [
    "openai",
    "anthropic",
    "google",
    "deepseek",
    "xai",
    "alibaba",
    "zai",
    "opencode",
]


class NoUsableModelError(Exception):
    """Neither the configured model nor any fallback could be resolved."""


def parse_model_string(value: str) -> Optional[ModelReference]:
    """
    Split "provider/model" on the first separator.

    The model part keeps any further separators, so namespaced ids such as
    "nvidia/meta/llama-3.3-70b-instruct" parse as provider "nvidia" and
    model "meta/llama-3.3-70b-instruct". Returns None when malformed.
    """
    parts = value.strip().split(MODEL_SEPARATOR)
    if len(parts) < 2:
        return None

    provider_id = parts[0].strip()
    model_id = MODEL_SEPARATOR.join(parts[1:]).strip()
    if not provider_id or not model_id:
        return None

    return ModelReference(provider_id, model_id)


def select_model(
    registry,
    configured_model: Optional[str] = None,
    *,
    fallback_models: Optional[Mapping[str, str]] = None,
    priority: Optional[Sequence[str]] = None,
) -> SelectionResult:
    """
    Resolve one usable model handle.

    Args:
        registry: Provider registry (list_authenticated / resolve)
        configured_model: Model string in "provider/model" format
        fallback_models: Per-provider overrides of FALLBACK_MODELS; an empty
            value disables fallback for that provider
        priority: Provider order for fallback (defaults to PROVIDER_PRIORITY)

    Raises:
        NoUsableModelError: when every candidate was skipped or failed
    """
    logger.info(f"Model selection started: configured={configured_model!r}")

    failed: Optional[ModelReference] = None

    if configured_model:
        ref = parse_model_string(configured_model)
        if ref is None:
            logger.warning(
                f"Invalid model format {configured_model!r}, expected \"provider/model\"; "
                "using fallback models"
            )
        else:
            try:
                handle = registry.resolve(ref.provider_id, ref.model_id)
            except Exception as e:
                logger.warning(f"Configured model {ref} failed, falling back: {e}")
                failed = ref
            else:
                logger.info(f"Using configured model {ref}")
                return SelectionResult(
                    model=handle,
                    ref=ref,
                    source="config",
                    reason="Using model specified in config",
                )

    models = dict(FALLBACK_MODELS)
    models.update(fallback_models or {})

    authenticated = registry.list_authenticated()
    logger.info(
        f"Authenticated providers: {sorted(authenticated) or 'none'}"
    )

    for provider_id in priority or PROVIDER_PRIORITY:
        if provider_id not in authenticated:
            logger.debug(f"Skipping {provider_id} (not authenticated)")
            continue

        model_id = models.get(provider_id)
        if not model_id:
            logger.debug(f"Skipping {provider_id} (no fallback model configured)")
            continue

        ref = ModelReference(provider_id, model_id)
        try:
            handle = registry.resolve(provider_id, model_id)
        except Exception as e:
            logger.warning(f"Fallback model {ref} failed: {e}")
            continue

        logger.info(f"Using fallback model {ref}")
        return SelectionResult(
            model=handle,
            ref=ref,
            source="fallback",
            reason=f"Using {ref}",
            failed_model=failed,
        )

    raise NoUsableModelError(
        "No available models for title generation. "
        "Please authenticate with at least one provider."
    )
