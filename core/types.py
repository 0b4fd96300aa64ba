import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any


class ActionType(StrEnum):
    CLICK = "click"
    CHANGE = "change"


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_dataset(raw: Any) -> dict[str, str]:
    if not raw:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return {}
    if not isinstance(raw, dict):
        return {}
    return {str(k): str(v) for k, v in raw.items()}


@dataclass
class ActionRecord:
    """One normalized user interaction with the rendered interface."""

    type: ActionType
    element: str
    id: str | None = None
    class_: str | None = None
    text: str | None = None  # click only
    value: str | None = None
    dataset: dict[str, str] = field(default_factory=dict)  # click only
    position: str | None = None  # only for elements carrying data-cell

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionRecord":
        action_type = ActionType(data.get("type", ActionType.CLICK))
        value = data.get("value")
        return cls(
            type=action_type,
            element=str(data.get("element") or "").lower(),
            id=data.get("id") or None,
            class_=data.get("class") or None,
            text=data.get("text") or None if action_type == ActionType.CLICK else None,
            value=None if value is None else str(value),
            dataset=_parse_dataset(data.get("dataset")) if action_type == ActionType.CLICK else {},
            position=data.get("position") or None if action_type == ActionType.CLICK else None,
        )

    @classmethod
    def from_json(cls, raw: str | dict[str, Any]) -> "ActionRecord":
        """Accept the serialized form the browser sends, or an already-decoded dict."""
        if isinstance(raw, dict):
            return cls.from_dict(raw)
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("action must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "element": self.element}
        if self.id:
            data["id"] = self.id
        if self.class_:
            data["class"] = self.class_
        if self.text:
            data["text"] = self.text
        if self.value is not None:
            data["value"] = self.value
        if self.dataset:
            data["dataset"] = json.dumps(self.dataset)
        if self.position:
            data["position"] = self.position
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class ActionEntry:
    action: ActionRecord
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action.to_dict(), "timestamp": self.timestamp}


@dataclass
class CommentEntry:
    text: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "timestamp": self.timestamp}


@dataclass
class DialogTurn:
    role: Role
    content: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "timestamp": self.timestamp}

    def to_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class GenerationResult:
    html: str


@dataclass
class DialogResult:
    response: str
    html: str = ""
