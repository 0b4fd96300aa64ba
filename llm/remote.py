import logging

from core.backend import GenerationBackend
from core.context import build_dialog_messages, build_generate_messages, build_interact_messages
from core.types import ActionEntry, ActionRecord, CommentEntry, DialogResult, DialogTurn, GenerationResult
from llm.client import LLMClient
from llm.extract import extract_html

logger = logging.getLogger(__name__)


class RemoteBackend(GenerationBackend):
    """Generation through an OpenAI-compatible chat-completion service."""

    name = "api"

    def __init__(self, llm_client: LLMClient):
        self.llm = llm_client

    async def generate(self, model_id: str, description: str) -> GenerationResult:
        raw = await self.llm.complete(model_id, build_generate_messages(description))
        return GenerationResult(html=extract_html(raw))

    async def interact(
        self,
        model_id: str,
        description: str,
        current_html: str,
        action: ActionRecord,
        actions: list[ActionEntry],
        comments: list[CommentEntry],
    ) -> GenerationResult:
        messages = build_interact_messages(description, current_html, action, actions, comments)
        logger.debug("Interact context: %d messages", len(messages))
        raw = await self.llm.complete(model_id, messages)
        return GenerationResult(html=extract_html(raw))

    async def dialog(
        self,
        model_id: str,
        description: str,
        current_html: str,
        transcript: list[DialogTurn],
    ) -> DialogResult:
        raw = await self.llm.complete(model_id, build_dialog_messages(description, current_html, transcript))
        return DialogResult(response=raw, html=extract_html(raw))
