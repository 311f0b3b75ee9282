"""
Text-based assistant interface.

Provides a command-line chat loop that drives the turn engine in-process and
prints assistant text as it streams.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod

from recruiter_call_assistant.agent.events import (
    TextAppended,
    ToolInputAvailable,
    ToolOutputAvailable,
    ToolOutputError,
    TurnErrored,
)
from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.conversation.store import ConversationStore

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("quit", "exit", "end")


class AssistantInterface(ABC):
    """Abstract base class for assistant interfaces."""

    @abstractmethod
    async def run(self) -> None:
        """Run the interface until the user leaves."""
        ...

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


class TextInterface(AssistantInterface):
    """
    Command-line text interface for the recruitment assistant.

    Type `clear` to start over, `quit` to leave.
    """

    def __init__(
        self,
        engine: TurnEngine,
        store: ConversationStore | None = None,
        show_tools: bool = True,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            engine: Turn engine used for assistant replies.
            store: Conversation to continue (a fresh one by default).
            show_tools: Print tool calls and their results as they happen.
        """
        self._engine = engine
        self._store = store or ConversationStore()
        self._show_tools = show_tools

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def run(self) -> None:
        """Run the interactive chat session."""
        print("\n" + "=" * 60)
        print("Recruitment Assistant")
        print("=" * 60)

        greeting = self._store.last()
        if greeting is not None:
            await self.send_message(f"Assistant: {greeting.content}")

        while True:
            user_input = await self.receive_input()
            command = user_input.strip().lower()

            if command in EXIT_COMMANDS:
                print("\nGoodbye.")
                break
            if command == "clear":
                self._store.clear()
                print("\nConversation cleared.\n")
                continue
            if not user_input.strip():
                continue

            self._store.add_user_message(user_input.strip())
            await self.respond()

    async def respond(self) -> None:
        """Run one assistant turn, printing text fragments as they arrive."""
        print("\nAssistant: ", end="", flush=True)
        async for event in self._engine.run_turn(self._store):
            if isinstance(event, TextAppended):
                print(event.delta, end="", flush=True)
            elif isinstance(event, TurnErrored):
                print(f"\n{event.error_text}", end="", flush=True)
            elif self._show_tools and isinstance(event, ToolInputAvailable):
                print(f"\n  [tool] {event.tool_name}({json.dumps(event.arguments, default=str)})", flush=True)
            elif self._show_tools and isinstance(event, ToolOutputAvailable):
                print("  [tool] done", flush=True)
            elif self._show_tools and isinstance(event, ToolOutputError):
                print(f"  [tool] failed: {event.error_text}", flush=True)
        print("\n")

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        """
        Get input from the terminal.

        Returns:
            User's input string.
        """
        try:
            return await asyncio.to_thread(input, "You: ")
        except EOFError:
            return "exit"
