import logging
from typing import Any

from core.types import ActionEntry, ActionRecord, CommentEntry, DialogTurn, utc_timestamp

logger = logging.getLogger(__name__)


class HistoryStore:
    """Per-session record of actions, comments and the dialog transcript.

    Caps are applied on insert: actions and dialog turns are independent
    FIFO queues, comments are unbounded.
    """

    def __init__(self, max_actions: int = 20, max_dialog: int = 20, last_reset: str | None = None):
        self.max_actions = max_actions
        self.max_dialog = max_dialog
        self.actions: list[ActionEntry] = []
        self.comments: list[CommentEntry] = []
        self.dialog_history: list[DialogTurn] = []
        self.last_reset = last_reset

    def append_action(self, action: ActionRecord, timestamp: str | None = None) -> ActionEntry:
        entry = ActionEntry(action=action, timestamp=timestamp or utc_timestamp())
        self.actions.append(entry)
        if len(self.actions) > self.max_actions:
            self.actions = self.actions[-self.max_actions :]
        return entry

    def append_comment(self, text: str, timestamp: str | None = None) -> CommentEntry:
        entry = CommentEntry(text=text, timestamp=timestamp or utc_timestamp())
        self.comments.append(entry)
        return entry

    def append_dialog_turn(self, turn: DialogTurn) -> None:
        self.dialog_history.append(turn)
        if len(self.dialog_history) > self.max_dialog:
            self.dialog_history = self.dialog_history[-self.max_dialog :]

    def snapshot(self) -> dict[str, Any]:
        return {
            "actions": [a.to_dict() for a in self.actions],
            "comments": [c.to_dict() for c in self.comments],
            "dialogHistory": [t.to_dict() for t in self.dialog_history],
            "lastReset": self.last_reset,
        }


class SessionStore:
    """Process-lifetime map of session key to HistoryStore.

    Reads never create entries; the first mutation does. There is no
    per-key lock, so concurrent writers on one key interleave and the last
    write wins.
    """

    def __init__(self, max_actions: int = 20, max_dialog: int = 20):
        self.max_actions = max_actions
        self.max_dialog = max_dialog
        self._sessions: dict[str, HistoryStore] = {}

    def _new_store(self, last_reset: str | None = None) -> HistoryStore:
        return HistoryStore(max_actions=self.max_actions, max_dialog=self.max_dialog, last_reset=last_reset)

    def _get_or_create(self, key: str) -> HistoryStore:
        store = self._sessions.get(key)
        if store is None:
            store = self._new_store()
            self._sessions[key] = store
        return store

    def get(self, key: str) -> HistoryStore:
        return self._sessions.get(key) or self._new_store()

    def __contains__(self, key: str) -> bool:
        return key in self._sessions

    def reset(self, key: str) -> HistoryStore:
        store = self._new_store(last_reset=utc_timestamp())
        self._sessions[key] = store
        logger.info("History reset for session %s", key)
        return store

    def append_action(self, key: str, action: ActionRecord, timestamp: str | None = None) -> ActionEntry:
        return self._get_or_create(key).append_action(action, timestamp)

    def append_comment(self, key: str, text: str) -> CommentEntry:
        return self._get_or_create(key).append_comment(text)

    def append_dialog_turns(self, key: str, *turns: DialogTurn) -> None:
        store = self._get_or_create(key)
        for turn in turns:
            store.append_dialog_turn(turn)
