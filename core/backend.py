from abc import ABC, abstractmethod

from core.config import Config
from core.types import ActionEntry, ActionRecord, CommentEntry, DialogResult, DialogTurn, GenerationResult


class GenerationBackend(ABC):
    """Turns a program description plus history into interface HTML."""

    name: str = "backend"

    @abstractmethod
    async def generate(self, model_id: str, description: str) -> GenerationResult:
        """Produce the initial interface for a description."""

    @abstractmethod
    async def interact(
        self,
        model_id: str,
        description: str,
        current_html: str,
        action: ActionRecord,
        actions: list[ActionEntry],
        comments: list[CommentEntry],
    ) -> GenerationResult:
        """Produce the interface after one user action.

        `actions` already ends with the current action.
        """

    @abstractmethod
    async def dialog(
        self,
        model_id: str,
        description: str,
        current_html: str,
        transcript: list[DialogTurn],
    ) -> DialogResult:
        """Answer a chat message; `transcript` ends with that message."""


def create_backend(config: Config) -> GenerationBackend:
    if config.llm.backend == "mock":
        from mock.interpreter import MockInterpreter

        return MockInterpreter(config.mock)

    from llm.client import LLMClient
    from llm.remote import RemoteBackend

    return RemoteBackend(LLMClient(config.llm))
