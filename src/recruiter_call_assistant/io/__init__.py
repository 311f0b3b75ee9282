"""
I/O module for user-facing interfaces.
"""

from recruiter_call_assistant.io.text_interface import AssistantInterface, TextInterface

__all__ = ["AssistantInterface", "TextInterface"]
