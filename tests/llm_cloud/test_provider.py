"""
Unit tests for `llm_cloud/provider.py` – endpoint routing, key validation and the
OpenAI-compatible completion backend.

The `AsyncOpenAI` client is replaced with a MagicMock whose
`chat.completions.create` is an AsyncMock, so no HTTP request is ever made.
"""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from openai import OpenAIError

from llm_cloud.base import CompletionBackendError
from llm_cloud.factory import build_backend
from llm_cloud.mock_backend import MockCompletionBackend
from llm_cloud.provider import (
    NEBIUS_BASE_URL,
    OPENAI_BASE_URL,
    OpenAICompletionBackend,
    get_client,
    require_any_env,
    resolve_endpoint,
)
from shared.models import Direction, Lane, Message

CONFIG = {
    "llm": {"model": "test-model", "max_tokens": 64, "temperature": 0.1, "timeout": 5, "max_retries": 1},
    "prompts": {"strategic": "Think first.", "implementation": "Be concrete."},
}


def _client_returning(text):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


class TestEndpointResolution(unittest.TestCase):

    @patch.dict("os.environ", {"LLM_API_KEY": "", "NEBIUS_API_KEY": "nebius-key"})
    def test_nebius_accepts_vendor_variable(self):
        self.assertEqual(require_any_env(["LLM_API_KEY", "NEBIUS_API_KEY"]), ("NEBIUS_API_KEY", "nebius-key"))
        base_url, api_key = resolve_endpoint("Nebius", {})
        self.assertEqual(base_url, NEBIUS_BASE_URL)
        self.assertEqual(api_key, "nebius-key")

    @patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"})
    def test_openai_endpoint(self):
        self.assertEqual(resolve_endpoint("openai", {"base_url": "ignored"}), (OPENAI_BASE_URL, "sk-test"))

    @patch.dict("os.environ", {"OPENAI_API_KEY": ""})
    def test_missing_key(self):
        with self.assertRaisesRegex(RuntimeError, "OPENAI_API_KEY"):
            resolve_endpoint("openai", {})

    def test_unsupported_provider(self):
        with self.assertRaises(ValueError):
            resolve_endpoint("anthropic", {})

    @patch("llm_cloud.provider.AsyncOpenAI")
    @patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"})
    def test_get_client_passes_timeout_and_retries(self, mock_client_cls):
        get_client("openai", CONFIG)
        mock_client_cls.assert_called_once_with(
            base_url=OPENAI_BASE_URL, api_key="sk-test", timeout=5, max_retries=1
        )


class TestOpenAICompletionBackend(unittest.IsolatedAsyncioTestCase):

    async def test_complete_maps_history_and_prompt(self):
        client = _client_returning("answer")
        backend = OpenAICompletionBackend(provider="nebius", client=client, config=CONFIG)
        history = [
            Message(direction=Direction.INBOUND, content="hi"),
            Message(direction=Direction.OUTBOUND, content="hello", lane=Lane.STRATEGIC),
            Message(direction=Direction.INBOUND, content="build it"),
        ]

        result = await backend.complete(history, Lane.IMPLEMENTATION)

        self.assertEqual(result, "answer")
        self.assertEqual(backend.name, "nebius")
        kwargs = client.chat.completions.create.await_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertEqual(kwargs["max_tokens"], 64)
        self.assertEqual(kwargs["messages"], [
            {"role": "system", "content": "Be concrete."},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "user", "content": "build it"},
        ])

    async def test_sdk_error_wrapped(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
        backend = OpenAICompletionBackend(provider="openai", client=client, config=CONFIG)

        with self.assertRaises(CompletionBackendError) as ctx:
            await backend.complete([Message(direction=Direction.INBOUND, content="hi")], Lane.STRATEGIC)
        self.assertEqual(ctx.exception.backend, "openai")
        self.assertIsInstance(ctx.exception.__cause__, OpenAIError)

    async def test_empty_choices(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[]))
        backend = OpenAICompletionBackend(provider="openai", client=client, config=CONFIG)

        with self.assertRaises(CompletionBackendError):
            await backend.complete([Message(direction=Direction.INBOUND, content="hi")], Lane.STRATEGIC)

    async def test_null_content_becomes_empty_string(self):
        backend = OpenAICompletionBackend(provider="openai", client=_client_returning(None), config=CONFIG)
        self.assertEqual(await backend.complete([Message(direction=Direction.INBOUND, content="hi")], Lane.STRATEGIC), "")


class TestBuildBackend(unittest.TestCase):

    def test_mock_provider(self):
        backend = build_backend({"backend": {"provider": "mock", "mock": {"response_delay": 0}}})
        self.assertIsInstance(backend, MockCompletionBackend)
        self.assertEqual(backend.response_delay, 0)

    @patch("llm_cloud.provider.get_client")
    def test_network_provider(self, mock_get_client):
        backend = build_backend({"backend": {"provider": "openai"}, "llm": {}})
        self.assertIsInstance(backend, OpenAICompletionBackend)
        mock_get_client.assert_called_once()

    def test_unknown_provider(self):
        with self.assertRaises(ValueError):
            build_backend({"backend": {"provider": "carrier-pigeon"}})


if __name__ == "__main__":
    unittest.main()
