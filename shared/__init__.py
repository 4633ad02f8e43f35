"""
shared/__init__.py

Data models shared by the orchestration core, its extensions and the HTTP surface.
"""
