"""Unit tests for `llm_cloud/mock_backend.py` – deterministic canned completions."""

import unittest

from core.command_gate import CommandGate
from llm_cloud.base import CompletionBackendError
from llm_cloud.mock_backend import MockCompletionBackend
from shared.models import Direction, Lane, Message


def _history(text):
    return [Message(direction=Direction.INBOUND, content=text)]


class TestMockCompletionBackend(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.backend = MockCompletionBackend(response_delay=0)

    async def test_install_request_proposes_fenced_command(self):
        reply = await self.backend.complete(_history("Install express with npm"), Lane.IMPLEMENTATION)
        self.assertEqual(CommandGate.extract(reply), "npm install express")

    async def test_strategic_replies_contain_no_commands(self):
        for text in ("How should I structure this?", "What is the best practice?", "Design a REST api", "hello"):
            with self.subTest(text=text):
                reply = await self.backend.complete(_history(text), Lane.STRATEGIC)
                self.assertFalse(CommandGate.detect(reply))

    async def test_code_samples_are_not_commands(self):
        for text in ("Create a function", "Implement a REST endpoint", "Debug this", "Do something"):
            with self.subTest(text=text):
                reply = await self.backend.complete(_history(text), Lane.IMPLEMENTATION)
                self.assertFalse(CommandGate.detect(reply))

    async def test_same_input_same_output(self):
        history = _history("Create a function")
        first = await self.backend.complete(history, Lane.IMPLEMENTATION)
        second = await self.backend.complete(history, Lane.IMPLEMENTATION)
        self.assertEqual(first, second)

    async def test_answers_latest_message(self):
        history = _history("Install express") + [
            Message(direction=Direction.OUTBOUND, content="...", lane=Lane.IMPLEMENTATION),
            Message(direction=Direction.INBOUND, content="Now create a function"),
        ]
        reply = await self.backend.complete(history, Lane.IMPLEMENTATION)
        self.assertIn("def process_data", reply)

    async def test_empty_history_is_an_error(self):
        with self.assertRaises(CompletionBackendError) as ctx:
            await self.backend.complete([], Lane.STRATEGIC)
        self.assertEqual(ctx.exception.backend, "mock")


if __name__ == "__main__":
    unittest.main()
