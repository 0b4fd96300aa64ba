import json
import logging
import time
from typing import Any

from core.backend import GenerationBackend
from core.config import Config, ModelEntry
from core.errors import PolicyError, RequestValidationError
from core.history import SessionStore
from core.types import ActionEntry, ActionRecord, DialogTurn, Role

logger = logging.getLogger(__name__)

PAID_DISABLED = "Paid models are disabled"
PAID_INSTRUCTION = "To use paid models set ENABLE_PAID_MODELS=true in the environment"


class SessionController:
    """Runs one request/response cycle against a session's history.

    History is only written after the backend returns, so a request that
    fails or is cancelled while waiting on generation leaves no trace.
    """

    def __init__(self, config: Config, backend: GenerationBackend, sessions: SessionStore | None = None):
        self.config = config
        self.backend = backend
        self.sessions = sessions or SessionStore(
            max_actions=config.history.max_actions,
            max_dialog=config.history.max_dialog,
        )

    def list_models(self) -> list[dict[str, Any]]:
        enable_paid = self.config.models.enable_paid
        return [
            {
                "id": m.id,
                "name": m.name,
                "description": m.description,
                "isPaid": m.is_paid,
                "disabled": m.is_paid and not enable_paid,
            }
            for m in self.config.models.available
        ]

    def _check_model(self, model_id: str | None) -> ModelEntry:
        model = self.config.models.find(model_id)
        if model is None:
            raise RequestValidationError("modelId", f"Model '{model_id}' is not available")
        if model.is_paid and not self.config.models.enable_paid:
            raise PolicyError(PAID_DISABLED, PAID_INSTRUCTION)
        return model

    @staticmethod
    def _require(**fields: Any) -> None:
        for name, value in fields.items():
            if not value:
                raise RequestValidationError(name)

    @staticmethod
    def _parse_action(raw: str | dict[str, Any]) -> ActionRecord:
        try:
            return ActionRecord.from_json(raw)
        except (ValueError, TypeError, json.JSONDecodeError) as e:
            raise RequestValidationError("action", f"Field 'action' is not a valid action record: {e}") from e

    async def generate(self, key: str, description: str | None, model_id: str | None) -> dict[str, str]:
        self._require(systemPrompt=description)
        model = self._check_model(model_id)

        t0 = time.time()
        result = await self.backend.generate(model.id, description or "")
        logger.info(
            "Generated interface for session %s via %s in %.0fms",
            key, self.backend.name, (time.time() - t0) * 1000,
        )
        return {"html": result.html}

    async def interact(
        self,
        key: str,
        description: str | None,
        model_id: str | None,
        current_html: str | None,
        action: str | dict[str, Any] | None,
    ) -> dict[str, str]:
        self._require(systemPrompt=description, currentHtml=current_html, action=action)
        model = self._check_model(model_id)
        record = self._parse_action(action or "")

        # The current action is part of the history the backend sees, but it is
        # committed only once generation has succeeded.
        history = self.sessions.get(key)
        entry = ActionEntry(action=record)
        staged = (history.actions + [entry])[-history.max_actions :]

        t0 = time.time()
        result = await self.backend.interact(
            model.id,
            description or "",
            current_html or "",
            record,
            staged,
            list(history.comments),
        )
        self.sessions.append_action(key, record, entry.timestamp)
        logger.info(
            "Processed %s on %s for session %s via %s in %.0fms",
            record.type, record.id or record.element, key, self.backend.name, (time.time() - t0) * 1000,
        )
        return {"html": result.html}

    async def dialog(
        self,
        key: str,
        description: str | None,
        model_id: str | None,
        message: str | None,
        current_html: str | None,
    ) -> dict[str, str]:
        self._require(systemPrompt=description, message=message)
        model = self._check_model(model_id)

        history = self.sessions.get(key)
        user_turn = DialogTurn(role=Role.USER, content=message or "")
        transcript = (history.dialog_history + [user_turn])[-history.max_dialog :]

        t0 = time.time()
        result = await self.backend.dialog(model.id, description or "", current_html or "", transcript)
        self.sessions.append_dialog_turns(key, user_turn, DialogTurn(role=Role.ASSISTANT, content=result.response))
        logger.info(
            "Answered dialog message for session %s via %s in %.0fms",
            key, self.backend.name, (time.time() - t0) * 1000,
        )
        return {"response": result.response, "html": result.html}

    def history(self, key: str) -> dict[str, Any]:
        return self.sessions.get(key).snapshot()

    def reset(self, key: str) -> dict[str, Any]:
        self.sessions.reset(key)
        return {"success": True, "message": "History reset"}

    def comment(self, key: str, comment: str | None) -> dict[str, Any]:
        self._require(comment=comment)
        self.sessions.append_comment(key, comment or "")
        return {"success": True, "message": "Comment added"}
