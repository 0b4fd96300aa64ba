from core.history import HistoryStore, SessionStore
from core.types import ActionRecord, ActionType, DialogTurn, Role


def _click(i: int) -> ActionRecord:
    return ActionRecord(type=ActionType.CLICK, element="button", id=f"b{i}")


def test_empty_store_shape():
    store = HistoryStore()
    assert store.snapshot() == {"actions": [], "comments": [], "dialogHistory": [], "lastReset": None}


def test_action_cap_keeps_most_recent_in_order():
    store = HistoryStore()
    for i in range(25):
        store.append_action(_click(i))
    assert len(store.actions) == 20
    assert [e.action.id for e in store.actions] == [f"b{i}" for i in range(5, 25)]


def test_dialog_cap_independent_of_actions():
    store = HistoryStore(max_actions=2, max_dialog=3)
    for i in range(5):
        store.append_dialog_turn(DialogTurn(role=Role.USER, content=str(i)))
    store.append_action(_click(0))
    assert [t.content for t in store.dialog_history] == ["2", "3", "4"]
    assert len(store.actions) == 1


def test_comments_are_unbounded():
    store = HistoryStore(max_actions=1, max_dialog=1)
    for i in range(50):
        store.append_comment(f"c{i}")
    assert len(store.comments) == 50


def test_get_does_not_persist():
    sessions = SessionStore()
    store = sessions.get("1.2.3.4")
    store.append_comment("lost")
    assert "1.2.3.4" not in sessions
    assert sessions.get("1.2.3.4").comments == []


def test_first_mutation_persists():
    sessions = SessionStore()
    sessions.append_comment("k", "hello")
    assert "k" in sessions
    assert sessions.get("k").comments[0].text == "hello"


def test_sessions_are_isolated():
    sessions = SessionStore()
    sessions.append_action("a", _click(1))
    sessions.append_action("b", _click(2))
    assert [e.action.id for e in sessions.get("a").actions] == ["b1"]
    assert [e.action.id for e in sessions.get("b").actions] == ["b2"]


def test_reset_clears_everything_and_stamps():
    sessions = SessionStore()
    sessions.append_action("k", _click(1))
    sessions.append_comment("k", "note")
    sessions.append_dialog_turns("k", DialogTurn(role=Role.USER, content="hi"))
    sessions.reset("k")
    snap = sessions.get("k").snapshot()
    assert snap["actions"] == []
    assert snap["comments"] == []
    assert snap["dialogHistory"] == []
    assert snap["lastReset"] is not None


def test_reset_is_idempotent():
    sessions = SessionStore()
    sessions.append_comment("k", "note")
    sessions.reset("k")
    once = sessions.get("k").snapshot()
    sessions.reset("k")
    twice = sessions.get("k").snapshot()
    once.pop("lastReset")
    twice.pop("lastReset")
    assert once == twice


def test_session_store_caps_come_from_store():
    sessions = SessionStore(max_actions=2, max_dialog=2)
    for i in range(4):
        sessions.append_action("k", _click(i))
    sessions.append_dialog_turns(
        "k",
        DialogTurn(role=Role.USER, content="1"),
        DialogTurn(role=Role.ASSISTANT, content="2"),
        DialogTurn(role=Role.USER, content="3"),
    )
    history = sessions.get("k")
    assert [e.action.id for e in history.actions] == ["b2", "b3"]
    assert [t.content for t in history.dialog_history] == ["2", "3"]


def test_append_action_keeps_given_timestamp():
    sessions = SessionStore()
    entry = sessions.append_action("k", _click(0), "2024-01-01T00:00:00.000Z")
    assert entry.timestamp == "2024-01-01T00:00:00.000Z"
    assert sessions.get("k").snapshot()["actions"][0]["timestamp"] == "2024-01-01T00:00:00.000Z"
