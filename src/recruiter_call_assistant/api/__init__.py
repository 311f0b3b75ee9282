"""
HTTP surface: the turn endpoint (`/api/chat`) and the synthesis endpoint (`/api/speech`).
"""

from recruiter_call_assistant.api.app import app, create_app

__all__ = ["app", "create_app"]
