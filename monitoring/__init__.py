"""
monitoring/__init__.py

Prometheus metrics shared by the orchestrator, backends and extensions.
"""
