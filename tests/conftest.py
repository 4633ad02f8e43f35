"""
conftest.py – central pytest configuration and test bootstrap.

Pytest imports this module before it collects any test files, which lets us prepare
the environment so that imports and collection behave the same locally and in CI:

1) Extend `sys.path` with the project root directory so absolute-style imports like
   `from core ...` and `from shared ...` resolve without an editable install.
2) Define safe environment defaults read by `config/__init__.py` at import time:
   the deterministic mock backend with no artificial delay, and the non-interactive
   policy approver, so no test ever waits on stdin or the network.
"""

import os
import sys
from pathlib import Path

# Ensure project root is on sys.path for direct imports like `core`, `shared`, etc.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Provide environment defaults for tests
os.environ.setdefault("COMPLETION_BACKEND", "mock")
os.environ.setdefault("MOCK_RESPONSE_DELAY", "0")
os.environ.setdefault("APPROVAL_MODE", "policy")
os.environ.setdefault("MAX_AUTO_APPROVE_RISK", "low")
os.environ.setdefault("ORCHESTRATOR_CONCURRENCY", "serialize")
