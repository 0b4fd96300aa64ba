from core.formatter import format_action
from core.types import ActionEntry, ActionRecord, CommentEntry, DialogTurn
from llm.prompts import build_dialog_prompt, build_generate_prompt, build_interact_prompt


def format_action_history(actions: list[ActionEntry]) -> list[dict]:
    """One system message listing past actions oldest first, or nothing at all."""
    if not actions:
        return []
    lines = [
        f"{index}. {format_action(entry.action)} ({entry.timestamp})"
        for index, entry in enumerate(actions, start=1)
    ]
    return [
        {
            "role": "system",
            "content": "User action history (oldest to newest):\n" + "\n".join(lines),
        }
    ]


def format_comments(comments: list[CommentEntry]) -> list[dict]:
    return [
        {"role": "user", "content": f"User comment ({c.timestamp}): {c.text}"}
        for c in comments
    ]


def format_dialog_history(transcript: list[DialogTurn]) -> list[dict]:
    return [turn.to_message() for turn in transcript]


def build_generate_messages(description: str) -> list[dict]:
    return [
        {"role": "system", "content": build_generate_prompt()},
        {"role": "user", "content": f"Create an interface for the following program: {description}"},
    ]


def build_interact_messages(
    description: str,
    current_html: str,
    action: ActionRecord,
    actions: list[ActionEntry],
    comments: list[CommentEntry],
) -> list[dict]:
    """Assemble the context for an action-driven update.

    Order: system instruction, action history (if any), one message per
    comment, then the current turn carrying the HTML and the action.
    """
    messages: list[dict] = [{"role": "system", "content": build_interact_prompt(description)}]
    messages.extend(format_action_history(actions))
    messages.extend(format_comments(comments))
    messages.append(
        {
            "role": "user",
            "content": (
                f"Current interface HTML:\n\n{current_html}\n\n"
                f"User action:\n{format_action(action)}\n\n"
                "Update the interface HTML according to this action and the program's algorithm. "
                "Make sure every element keeps its attributes and classes so it stays clickable."
            ),
        }
    )
    return messages


def build_dialog_messages(description: str, current_html: str, transcript: list[DialogTurn]) -> list[dict]:
    """The caller appends the new user message to the transcript first, so it is the final turn."""
    messages: list[dict] = [{"role": "system", "content": build_dialog_prompt(description, current_html)}]
    messages.extend(format_dialog_history(transcript))
    return messages
