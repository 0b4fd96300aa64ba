from core.types import ActionRecord, ActionType


def format_action(action: ActionRecord) -> str:
    """Render one action as a sentence the model can read.

    Clauses are appended in a fixed order and only for fields that are set,
    so the same record always yields the same text.
    """
    if action.type == ActionType.CHANGE:
        parts = [f"User changed the value of element {action.element}"]
        if action.id:
            parts.append(f'with id="{action.id}"')
        if action.class_:
            parts.append(f'with class "{action.class_}"')
        parts.append(f'to "{action.value if action.value is not None else ""}"')
        return " ".join(parts)

    parts = [f"User clicked on element {action.element}"]
    if action.id:
        parts.append(f'with id="{action.id}"')
    if action.class_:
        parts.append(f'with class "{action.class_}"')
    if action.text:
        parts.append(f'with text "{action.text}"')
    if action.value:
        parts.append(f'with value "{action.value}"')
    for key, value in action.dataset.items():
        parts.append(f'with data-{key}="{value}"')
    if action.position:
        parts.append(f'with position "{action.position}"')
    return " ".join(parts)
