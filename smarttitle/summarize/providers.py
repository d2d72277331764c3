"""
Provider registry — authentication lookup, model resolution and text
generation via litellm.

litellm handles provider routing based on the model string:
    "openai/gpt-5-mini"            -> OpenAI API
    "anthropic/claude-haiku-4-5"   -> Anthropic API
    "gemini/gemini-2.5-flash"      -> Google AI Studio
    etc.

Provider ids used here are the host's ids ("google", "alibaba", ...);
PROVIDERS maps each one to its litellm prefix and API key variables.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

import litellm

from ..core.models import ModelReference, ProviderInfo

logger = logging.getLogger(__name__)


class ModelResolutionError(Exception):
    """A (provider, model) pair cannot be turned into a usable handle."""


class GenerationError(Exception):
    """The model call failed or returned nothing usable."""


@dataclass(frozen=True)
class ProviderSpec:
    name: str
    litellm_prefix: str
    env_keys: Tuple[str, ...]
    api_base: Optional[str] = None


PROVIDERS: Dict[str, ProviderSpec] = {
    "openai": ProviderSpec("OpenAI", "openai", ("OPENAI_API_KEY",)),
    "anthropic": ProviderSpec("Anthropic", "anthropic", ("ANTHROPIC_API_KEY",)),
    "google": ProviderSpec("Google", "gemini", ("GEMINI_API_KEY", "GOOGLE_API_KEY")),
    "deepseek": ProviderSpec("DeepSeek", "deepseek", ("DEEPSEEK_API_KEY",)),
    "xai": ProviderSpec("xAI", "xai", ("XAI_API_KEY",)),
    "alibaba": ProviderSpec("Alibaba", "dashscope", ("DASHSCOPE_API_KEY",)),
    "zai": ProviderSpec("Z.AI", "zai", ("ZAI_API_KEY", "ZHIPUAI_API_KEY")),
    # OpenCode Zen speaks the OpenAI chat completions protocol
    "opencode": ProviderSpec(
        "OpenCode Zen", "openai", ("OPENCODE_API_KEY",),
        api_base="https://opencode.ai/zen/v1",
    ),
    "groq": ProviderSpec("Groq", "groq", ("GROQ_API_KEY",)),
    "openrouter": ProviderSpec("OpenRouter", "openrouter", ("OPENROUTER_API_KEY",)),
    "nvidia": ProviderSpec("NVIDIA NIM", "nvidia_nim", ("NVIDIA_NIM_API_KEY", "NVIDIA_API_KEY")),
    "moonshot": ProviderSpec("Moonshot", "moonshot", ("MOONSHOT_API_KEY",)),
}


@dataclass(frozen=True)
class ModelHandle:
    """Everything needed to call one model through litellm."""

    ref: ModelReference
    litellm_model: str
    api_key: str
    api_base: Optional[str] = None


class ProviderRegistry:
    """Authenticated providers, backed by config keys and the environment."""

    def __init__(
        self,
        api_keys: Optional[Mapping[str, str]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        timeout: float = 60.0,
        max_tokens: int = 1024,
    ):
        self.api_keys = {k: v.strip() for k, v in (api_keys or {}).items() if v and v.strip()}
        self.environ = environ if environ is not None else os.environ
        self.timeout = timeout
        self.max_tokens = max_tokens

    # ── Authentication ────────────────────────────────────────────────────

    def _credentials(self, provider_id: str) -> Optional[Tuple[str, str]]:
        """Return (api_key, source) for a provider, or None."""
        if provider_id in self.api_keys:
            return self.api_keys[provider_id], "config"

        spec = PROVIDERS.get(provider_id)
        if spec is None:
            return None
        for var in spec.env_keys:
            value = (self.environ.get(var) or "").strip()
            if value:
                return value, "env"
        return None

    def list_authenticated(self) -> Dict[str, ProviderInfo]:
        """Providers that currently have an API key available."""
        result: Dict[str, ProviderInfo] = {}
        for provider_id, spec in PROVIDERS.items():
            creds = self._credentials(provider_id)
            if creds:
                result[provider_id] = ProviderInfo(
                    id=provider_id, name=spec.name, source=creds[1]
                )
        return result

    # ── Resolution ────────────────────────────────────────────────────────

    def resolve(self, provider_id: str, model_id: str) -> ModelHandle:
        """Build an invocable handle, or raise ModelResolutionError."""
        spec = PROVIDERS.get(provider_id)
        if spec is None:
            raise ModelResolutionError(f"Unknown provider: {provider_id}")

        creds = self._credentials(provider_id)
        if creds is None:
            raise ModelResolutionError(
                f"Provider {provider_id} is not authenticated "
                f"(set api_keys.{provider_id} or export {spec.env_keys[0]})"
            )

        litellm_model = f"{spec.litellm_prefix}/{model_id}"
        try:
            litellm.get_llm_provider(model=litellm_model, api_base=spec.api_base)
        except Exception as e:
            raise ModelResolutionError(f"litellm rejected {litellm_model}: {e}") from e

        return ModelHandle(
            ref=ModelReference(provider_id, model_id),
            litellm_model=litellm_model,
            api_key=creds[0],
            api_base=spec.api_base,
        )

    # ── Generation ────────────────────────────────────────────────────────

    def generate(self, handle: ModelHandle, prompt: str) -> str:
        """Send a single user message and return the raw text response."""
        logger.debug(f"LLM call: model={handle.litellm_model} prompt_chars={len(prompt)}")
        start = time.time()

        try:
            response = litellm.completion(
                model=handle.litellm_model,
                messages=[{"role": "user", "content": prompt}],
                api_key=handle.api_key,
                api_base=handle.api_base,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except Exception as e:
            elapsed = time.time() - start
            raise GenerationError(
                f"LLM call failed: model={handle.litellm_model} error={e} elapsed={elapsed:.1f}s"
            ) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        if not content.strip():
            raise GenerationError(f"Empty response from {handle.ref}")

        logger.debug(
            f"LLM success: model={handle.litellm_model} elapsed={time.time() - start:.1f}s"
        )
        return content
