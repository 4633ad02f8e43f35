"""
core/__init__.py

Core orchestration modules.

This package contains the central coordination logic for the assistant:
- conversation: ordered, append-only message log
- classifier: lane routing by tags and keyword patterns
- command_gate: embedded command detection, risk assessment and approval requests
- events: per-orchestrator publish/subscribe feed
- orchestrator: the chat round and the handle extensions install against

These modules handle the high-level flow of one inbound message through the system.
"""
