"""
provider.py – Network-backed completion backend with provider routing and validation.
-------------------------------------------------------------------------------------
In the overall data-flow this file sits at the infrastructure layer.
It is the single place where we talk to an external LLM platform (Nebius/OpenAI endpoints).

Why a *provider* module?
• Keeps third-party SDK initialisation separate from the orchestration logic.
• Offers a tiny, easily mockable `get_client()` function instead of a global
  singleton. Tests can monkey-patch this function or inject a fake client.
• The orchestrator simply calls `complete(history, lane)`; it does not need to know
  about base URLs, API keys, system prompts or retries.

Provider routing logic:
- "nebius": Uses the Nebius OpenAI-compatible API with LLM_API_KEY/NEBIUS_API_KEY
- "openai": Uses OpenAI's official API with OPENAI_API_KEY
- Unsupported providers raise ValueError with a clear error message

Retries and request timeouts are delegated to the OpenAI SDK (`max_retries`,
`timeout`); once they are exhausted the SDK error is wrapped into
`CompletionBackendError`, which the orchestrator treats as an opaque failure.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI, OpenAIError

from config import CONFIG
from shared.models import Direction, Lane, Message
from .base import CompletionBackend, CompletionBackendError

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
NEBIUS_BASE_URL = "https://api.studio.nebius.com/v1/"


def require_any_env(var_names: List[str]) -> Tuple[str, str]:
    """
    Check that at least one of the specified environment variables is present and non-empty.

    The function never logs or returns anything but the variable *name* for diagnostics;
    the secret value is handed back to the caller only.

    Args:
        var_names (List[str]): Environment variable names to check, in order of preference.
            Examples: ["LLM_API_KEY", "NEBIUS_API_KEY"] or ["OPENAI_API_KEY"]

    Returns:
        Tuple[str, str]: (selected_var_name, value) for the first variable found.

    Raises:
        RuntimeError: If none of the specified environment variables are present or are empty.
    """
    for var_name in var_names:
        value = os.getenv(var_name, "")
        if value:
            return var_name, value

    var_list = ", ".join(var_names)
    raise RuntimeError(
        f"Missing required environment variable. Set one of: {var_list}"
    )


def resolve_endpoint(provider: str, llm_config: Dict[str, Any]) -> Tuple[str, str]:
    """
    Pick the base URL and API key for a provider.

    Args:
        provider (str): "nebius" or "openai" (case-insensitive).
        llm_config (Dict[str, Any]): The `llm` section of CONFIG.

    Returns:
        Tuple[str, str]: (base_url, api_key)

    Raises:
        ValueError: If the provider is unsupported.
        RuntimeError: If the provider's API key variable is missing.
    """
    provider = provider.strip().lower()
    if provider == "nebius":
        # Accept either the generic convention (LLM_API_KEY) or the vendor one (NEBIUS_API_KEY)
        selected_var, api_key = require_any_env(["LLM_API_KEY", "NEBIUS_API_KEY"])
        base_url = llm_config.get("base_url", NEBIUS_BASE_URL)
    elif provider == "openai":
        selected_var, api_key = require_any_env(["OPENAI_API_KEY"])
        base_url = OPENAI_BASE_URL
    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    logger.info("LLM provider selected: %s | base_url=%s | key from %s", provider, base_url, selected_var)
    return base_url, api_key


def get_client(provider: str, config: Optional[Dict[str, Any]] = None) -> AsyncOpenAI:
    """
    Build and return a configured async OpenAI-compatible client.

    Args:
        provider (str): "nebius" or "openai".
        config (Optional[Dict[str, Any]]): Global configuration mapping; defaults to CONFIG.

    Returns:
        AsyncOpenAI: A ready-to-use client with the configured timeout and retry budget.
    """
    config = config if config is not None else CONFIG
    llm_config = config.get("llm", {})
    base_url, api_key = resolve_endpoint(provider, llm_config)
    return AsyncOpenAI(
        base_url=base_url,
        api_key=api_key,
        timeout=llm_config.get("timeout", 30),  # seconds – explicit is better than implicit
        max_retries=llm_config.get("max_retries", 2),
    )


class OpenAICompletionBackend(CompletionBackend):
    """
    Completion backend for OpenAI-compatible chat completion endpoints.

    The lane decides which system prompt is prepended; conversation messages are
    mapped to chat roles (inbound -> "user", outbound -> "assistant").

    Args:
        provider (str): "nebius" or "openai".
        client (Optional[AsyncOpenAI]): Pre-built client, mainly for tests. Built
            with `get_client` when omitted.
        config (Optional[Dict[str, Any]]): Global configuration; defaults to CONFIG.
    """

    def __init__(self, provider: str = "openai", client: Optional[AsyncOpenAI] = None,
                 config: Optional[Dict[str, Any]] = None) -> None:
        self.config = config if config is not None else CONFIG
        self.provider = provider.strip().lower()
        self.name = self.provider
        self.client = client if client is not None else get_client(self.provider, self.config)
        self.llm_config = self.config.get("llm", {})
        self.prompts = self.config.get("prompts", {})

    def build_messages(self, history: List[Message], lane: Lane) -> List[Dict[str, str]]:
        messages = []
        system_prompt = self.prompts.get(lane.value)
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        for message in history:
            role = "user" if message.direction is Direction.INBOUND else "assistant"
            messages.append({"role": role, "content": message.content})
        return messages

    async def complete(self, history: List[Message], lane: Lane) -> str:
        model = self.llm_config.get("model")
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=self.build_messages(history, lane),
                max_tokens=self.llm_config.get("max_tokens", 1024),
                temperature=self.llm_config.get("temperature", 0.7),
            )
        except OpenAIError as exc:
            logger.error(f"[OpenAICompletionBackend] Completion request to {self.provider} failed: {exc}")
            raise CompletionBackendError(self.name, str(exc)) from exc

        if not response.choices:
            raise CompletionBackendError(self.name, "response contained no choices")

        content = response.choices[0].message.content or ""
        logger.debug(f"[OpenAICompletionBackend] Received {len(content)} characters from model '{model}'")
        return content
