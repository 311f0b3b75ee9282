"""
Error taxonomy shared across the assistant.

Tool-specific errors live in `recruiter_call_assistant.tools.registry`.
"""

from typing import Any


class AssistantError(Exception):
    """Base class for all assistant errors."""


class ValidationError(AssistantError):
    """Malformed or missing input; always user-correctable."""

    status_code = 400


class ProviderError(AssistantError):
    """Exception raised when an upstream language-model or synthesis call fails."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PermissionDeniedError(AssistantError):
    """Microphone access was refused."""


class UnsupportedPlatformError(AssistantError):
    """No speech-to-text capability is available on this platform."""


class PlaybackError(AssistantError):
    """Synthesized audio failed to load or play."""
