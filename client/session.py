import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx

from client.capture import FrameEventCapturer
from core.types import ActionRecord, Role
from mock.dom import Document

logger = logging.getLogger(__name__)


class ClientState(StrEnum):
    IDLE = "idle"
    BUSY = "busy"


class Outcome(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    IGNORED = "ignored"  # another request was already in flight


@dataclass
class RequestResult:
    outcome: Outcome
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


def inject_html(current_html: str, fragment: str) -> str:
    """Append a fragment at the end of the document body; without a body the document is returned as is."""
    document = Document.parse(current_html)
    body = document.soup.body
    if body is None or not document.append_markup(body, fragment):
        return current_html
    return document.serialize()


class FrameSession:
    """Client side of the loop: one rendered document plus the controls around it.

    State machine: IDLE -> BUSY -> IDLE. Only one request runs at a time;
    stop() cancels it. Whatever the outcome, the session returns to IDLE,
    and a cancelled request never replaces the document.
    """

    def __init__(self, http: httpx.AsyncClient):
        self.http = http
        self.capturer = FrameEventCapturer()
        self.state = ClientState.IDLE
        self.description = ""
        self.model_id = ""
        self.can_regenerate = False
        self.transcript: list[dict[str, str]] = []
        self._task: asyncio.Task | None = None

        # Set by the embedding UI
        self.on_state_change: Callable[[ClientState], None] | None = None
        self.on_status: Callable[[Outcome, str], None] | None = None

    @property
    def html(self) -> str:
        return self.capturer.current_html()

    def _set_state(self, state: ClientState, can_regenerate: bool = False) -> None:
        self.state = state
        self.can_regenerate = can_regenerate and state == ClientState.IDLE
        if self.on_state_change:
            self.on_state_change(state)

    def _report(self, result: RequestResult, label: str) -> RequestResult:
        if result.outcome == Outcome.FAILED:
            logger.warning("%s failed: %s", label, result.error)
        if self.on_status:
            self.on_status(result.outcome, result.error or label)
        return result

    def update_interface(self, html: str) -> None:
        """Replace the whole document and reinstall listeners on the new one."""
        self.capturer.install(html)

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.http.post(path, json=payload)
        if response.is_error:
            try:
                error = response.json().get("error")
            except ValueError:
                error = None
            raise httpx.HTTPStatusError(
                error or f"Request to {path} failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
        data: dict[str, Any] = response.json()
        return data

    async def _run(self, request: Callable[[], Awaitable[dict[str, Any]]]) -> RequestResult:
        self._set_state(ClientState.BUSY)
        self._task = asyncio.ensure_future(request())
        try:
            data = await self._task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if not self._task.cancelled() or (current is not None and current.cancelling()):
                raise
            return RequestResult(Outcome.CANCELLED)
        except httpx.HTTPError as e:
            return RequestResult(Outcome.FAILED, error=str(e))
        finally:
            self._task = None
        return RequestResult(Outcome.SUCCESS, data=data)

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def load_models(self) -> list[dict[str, Any]]:
        response = await self.http.get("/api/models")
        response.raise_for_status()
        models: list[dict[str, Any]] = response.json()
        return models

    async def load_history(self) -> dict[str, Any]:
        response = await self.http.get("/api/history")
        response.raise_for_status()
        history: dict[str, Any] = response.json()
        self.transcript = [
            {"role": m["role"], "content": m["content"]} for m in history.get("dialogHistory") or []
        ]
        return history

    async def generate(self, description: str, model_id: str) -> RequestResult:
        description = description.strip()
        if self.state == ClientState.BUSY:
            return RequestResult(Outcome.IGNORED)
        if not description:
            return self._report(RequestResult(Outcome.FAILED, error="Enter a program description"), "generate")
        if not model_id:
            return self._report(RequestResult(Outcome.FAILED, error="Select a model"), "generate")

        self.description = description
        self.model_id = model_id
        result = await self._run(
            lambda: self._post("/api/generate", {"systemPrompt": description, "modelId": model_id})
        )
        if result.outcome == Outcome.SUCCESS:
            self.update_interface(result.data.get("html", ""))
        self._set_state(ClientState.IDLE, can_regenerate=result.outcome == Outcome.SUCCESS)
        return self._report(result, "generate")

    async def regenerate(self) -> RequestResult:
        if not (self.description and self.model_id):
            return RequestResult(Outcome.IGNORED)
        return await self.generate(self.description, self.model_id)

    async def handle_action(self, action: ActionRecord) -> RequestResult:
        if self.state == ClientState.BUSY:
            return RequestResult(Outcome.IGNORED)
        current_html = self.html
        payload = {
            "systemPrompt": self.description,
            "modelId": self.model_id,
            "currentHtml": current_html,
            "action": action.to_json(),
        }
        result = await self._run(lambda: self._post("/api/interact", payload))
        if result.outcome == Outcome.SUCCESS:
            self.update_interface(result.data.get("html", ""))
        self._set_state(ClientState.IDLE, can_regenerate=True)
        return self._report(result, "interact")

    async def click(self, element_id: str) -> RequestResult:
        return await self.handle_action(self.capturer.click(element_id))

    async def change(self, element_id: str, value: str) -> RequestResult:
        return await self.handle_action(self.capturer.change(element_id, value))

    async def send_message(self, message: str) -> RequestResult:
        message = message.strip()
        if self.state == ClientState.BUSY:
            return RequestResult(Outcome.IGNORED)
        if not message:
            return self._report(RequestResult(Outcome.FAILED, error="Enter a message"), "dialog")
        if not (self.description and self.model_id):
            return self._report(RequestResult(Outcome.FAILED, error="Generate an interface first"), "dialog")

        self.transcript.append({"role": Role.USER.value, "content": message})
        payload = {
            "systemPrompt": self.description,
            "modelId": self.model_id,
            "message": message,
            "currentHtml": self.html,
        }
        result = await self._run(lambda: self._post("/api/dialog", payload))
        if result.outcome == Outcome.SUCCESS:
            self.transcript.append({"role": Role.ASSISTANT.value, "content": result.data.get("response", "")})
            if result.data.get("html"):
                self.update_interface(inject_html(self.html, result.data["html"]))
        self._set_state(ClientState.IDLE, can_regenerate=True)
        return self._report(result, "dialog")

    async def reset_history(self) -> RequestResult:
        response = await self.http.post("/api/history/reset")
        if response.is_error:
            return self._report(RequestResult(Outcome.FAILED, error="History reset failed"), "reset")
        self.transcript = []
        return self._report(RequestResult(Outcome.SUCCESS, data=response.json()), "reset")

    async def add_comment(self, comment: str) -> RequestResult:
        response = await self.http.post("/api/history/comment", json={"comment": comment})
        if response.is_error:
            return self._report(RequestResult(Outcome.FAILED, error=response.json().get("error")), "comment")
        return self._report(RequestResult(Outcome.SUCCESS, data=response.json()), "comment")
