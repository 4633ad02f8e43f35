"""
Tests for the extensions shipped with the orchestrator.

Each extension is installed into a real `Orchestrator` driven by a scripted
backend, so the tests check what the extension observes on the event feed rather
than how it subscribes.
"""

import logging
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from config import CONFIG, validate_config
from core.events import Event
from core.orchestrator import Orchestrator
from extensions.factory import build_extensions
from extensions.logger_extension import LoggerExtension
from extensions.metrics_extension import MetricsExtension
from extensions.openai_extension import OpenAIBackendExtension
from llm_cloud.mock_backend import MockCompletionBackend

FENCED_REPLY = "Run:\n```bash\nls -la\n```\n"


class StaticBackend:
    name = "static"

    def __init__(self, reply="Plain answer."):
        self.reply = reply

    async def complete(self, history, lane):
        return self.reply


async def approve_all(request):
    return True


async def deny_all(request):
    return False


class TestLoggerExtension(unittest.IsolatedAsyncioTestCase):

    async def test_logs_messages_and_approvals(self):
        orchestrator = Orchestrator(backend=StaticBackend(FENCED_REPLY), approver=approve_all, config={})
        orchestrator.install_extension(LoggerExtension())

        with self.assertLogs("extensions.logger_extension", level="INFO") as logs:
            await orchestrator.chat("list files")

        output = "\n".join(logs.output)
        self.assertIn("Approval request: ls -la (Risk: low)", output)
        self.assertIn("Approval decision: APPROVED", output)
        self.assertIn("outbound", output)

    async def test_log_file_attached_and_detached(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "conversation.log")
            extension = LoggerExtension(log_file=path)
            orchestrator = Orchestrator(backend=StaticBackend("Plain answer."), approver=approve_all, config={})
            orchestrator.install_extension(extension)
            logging.getLogger("extensions.logger_extension").setLevel(logging.INFO)

            await orchestrator.chat("hello")
            orchestrator.uninstall_extension("logger")

            with open(path, encoding="utf-8") as f:
                self.assertIn("Plain answer.", f.read())
            self.assertEqual(orchestrator.events.listener_count(Event.MESSAGE), 0)
            handlers = logging.getLogger("extensions.logger_extension").handlers
            self.assertFalse(any(isinstance(h, logging.FileHandler) for h in handlers))

    async def test_second_install_closes_previous_file_handler(self):
        named_logger = logging.getLogger("extensions.logger_extension")
        with tempfile.TemporaryDirectory() as tmp:
            extension = LoggerExtension(log_file=os.path.join(tmp, "conversation.log"))
            first = Orchestrator(backend=StaticBackend(), approver=approve_all, config={})
            second = Orchestrator(backend=StaticBackend(), approver=approve_all, config={})

            first.install_extension(extension)
            first_handler = extension._file_handler
            second.install_extension(extension)

            self.assertIsNone(first_handler.stream)
            self.assertNotIn(first_handler, named_logger.handlers)
            file_handlers = [h for h in named_logger.handlers if isinstance(h, logging.FileHandler)]
            self.assertEqual(file_handlers, [extension._file_handler])

            second.uninstall_extension("logger")
            first.uninstall_extension("logger")
            self.assertFalse(any(isinstance(h, logging.FileHandler) for h in named_logger.handlers))


class TestMetricsExtension(unittest.IsolatedAsyncioTestCase):

    async def test_counts_messages_and_decisions(self):
        metrics = MetricsExtension()
        orchestrator = Orchestrator(backend=StaticBackend(FENCED_REPLY), approver=deny_all,
                                    extensions=[metrics], config={})

        await orchestrator.chat("@forge list files")
        await orchestrator.chat("@strategic list files")

        self.assertEqual(metrics.get_metrics(), {
            'messages_total': 2,
            'messages_strategic': 1,
            'messages_implementation': 1,
            'approval_requests': 2,
            'approval_approved': 0,
            'approval_denied': 2,
        })

    async def test_get_metrics_returns_copy(self):
        metrics = MetricsExtension()
        Orchestrator(backend=StaticBackend(), approver=approve_all, extensions=[metrics], config={})
        snapshot = metrics.get_metrics()
        snapshot['messages_total'] = 99
        self.assertEqual(metrics.get_metrics()['messages_total'], 0)

    async def test_metrics_action(self):
        metrics = MetricsExtension()
        orchestrator = Orchestrator(backend=StaticBackend(), approver=approve_all, extensions=[metrics], config={})
        await orchestrator.chat("hello")

        with self.assertLogs("extensions.metrics_extension", level="INFO") as logs:
            self.assertTrue(orchestrator.execute_action("metrics"))
        self.assertIn("Messages: 1", logs.output[0])

    async def test_uninstall_removes_action_and_listeners(self):
        metrics = MetricsExtension()
        orchestrator = Orchestrator(backend=StaticBackend(), approver=approve_all, extensions=[metrics], config={})

        orchestrator.uninstall_extension("metrics")
        await orchestrator.chat("hello")

        self.assertFalse(orchestrator.execute_action("metrics"))
        self.assertEqual(metrics.get_metrics()['messages_total'], 0)


class TestOpenAIBackendExtension(unittest.IsolatedAsyncioTestCase):

    def _client(self, text):
        client = MagicMock()
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = text
        client.chat.completions.create = AsyncMock(return_value=response)
        return client

    async def test_swaps_and_restores_backend(self):
        original = MockCompletionBackend(response_delay=0)
        orchestrator = Orchestrator(backend=original, approver=approve_all, config={})
        client = self._client("network answer")
        config = {"llm": {"model": "test-model"}, "prompts": {}}

        orchestrator.install_extension(OpenAIBackendExtension(provider="openai", client=client, config=config))
        self.assertEqual(orchestrator.backend.name, "openai")

        reply = await orchestrator.chat("hello")
        self.assertEqual(reply.content, "network answer")
        client.chat.completions.create.assert_awaited_once()

        orchestrator.uninstall_extension("openai-backend")
        self.assertIs(orchestrator.backend, original)


class TestBuildExtensions(unittest.TestCase):

    def test_enabled_in_order(self):
        extensions = build_extensions({"extensions": {"enabled": ["metrics", "logger"]}})
        self.assertEqual([type(e) for e in extensions], [MetricsExtension, LoggerExtension])
        self.assertIsNone(extensions[1].log_file)

    def test_logger_file_and_openai_provider_from_config(self):
        config = {"extensions": {
            "enabled": ["logger", "openai-backend"],
            "logger": {"log_file": "/var/log/conversation.log"},
            "openai_backend": {"provider": "nebius"},
        }}
        logger_ext, openai_ext = build_extensions(config)
        self.assertEqual(logger_ext.log_file, "/var/log/conversation.log")
        self.assertIsInstance(openai_ext, OpenAIBackendExtension)
        self.assertEqual(openai_ext.provider, "nebius")
        self.assertIs(openai_ext.config, config)

    def test_nothing_enabled(self):
        self.assertEqual(build_extensions({}), [])

    def test_unknown_name(self):
        with self.assertRaises(ValueError):
            build_extensions({"extensions": {"enabled": ["telemetry"]}})

    def test_configuration_rejects_unknown_or_repeated_names(self):
        for enabled in (["telemetry"], ["metrics", "metrics"]):
            section = {"enabled": enabled, "openai_backend": {"provider": "openai"}}
            with self.subTest(enabled=enabled), patch.dict(CONFIG, {"extensions": section}):
                with self.assertRaises(ValueError):
                    validate_config()


if __name__ == "__main__":
    unittest.main()
