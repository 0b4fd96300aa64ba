import asyncio
import logging
import math
import re
from collections.abc import Callable
from decimal import Decimal
from enum import StrEnum

from core.backend import GenerationBackend
from core.config import MockConfig
from core.types import ActionEntry, ActionRecord, ActionType, CommentEntry, DialogResult, DialogTurn, GenerationResult, Role
from llm.extract import extract_html
from mock.dom import Document
from mock.templates import Template, render_template, select_template

logger = logging.getLogger(__name__)

DIVISION_BY_ZERO = "Error: division by zero"
FORM_SUCCESS = "Message sent successfully!"
FORM_INCOMPLETE = "Please fill in all fields."
GUESS_NOT_A_NUMBER = "Please enter a number."
GUESS_CORRECT = "Congratulations! You guessed the number!"
GUESS_HIGHER = "The secret number is higher."
GUESS_LOWER = "The secret number is lower."
DEMO_EMPTY = "Please enter some text."

_FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^\s*[+-]?\d+")


class ActionId(StrEnum):
    """Every element id the mock templates react to."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    ADD_TASK = "add-task"
    SEND = "send"
    CHECK_GUESS = "check-guess"
    ACTION_BUTTON = "action-button"

    @property
    def template(self) -> Template:
        return ACTION_TEMPLATES[self]

    @classmethod
    def parse(cls, value: str | None) -> "ActionId | None":
        try:
            return cls(value)
        except ValueError:
            return None


ACTION_TEMPLATES: dict[ActionId, Template] = {
    ActionId.ADD: Template.CALCULATOR,
    ActionId.SUBTRACT: Template.CALCULATOR,
    ActionId.MULTIPLY: Template.CALCULATOR,
    ActionId.DIVIDE: Template.CALCULATOR,
    ActionId.ADD_TASK: Template.TODO_LIST,
    ActionId.SEND: Template.CONTACT_FORM,
    ActionId.CHECK_GUESS: Template.GUESS_GAME,
    ActionId.ACTION_BUTTON: Template.GENERIC,
}


def parse_number(raw: str) -> float:
    """Leading decimal number of the text; 0 when there is none."""
    match = _FLOAT_PREFIX_RE.match(raw)
    return float(match.group(0)) if match else 0.0


def parse_integer(raw: str) -> int | None:
    match = _INT_PREFIX_RE.match(raw)
    return int(match.group(0)) if match else None


def format_number(value: float) -> str:
    """Render a number the way a browser prints it: 2 not 2.0, 1e-7, 1e+21, Infinity."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # repr gives the shortest round-tripping digits; Decimal splits them from the exponent.
    parsed = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(map(str, parsed.digits))
    k = len(digits)
    n = int(parsed.exponent) + k  # position of the decimal point

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    exponent = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if exponent >= 0 else '-'}{abs(exponent)}"


def secret_for(guess: int) -> int:
    """The number the game "picked", derived from the guess itself."""
    return ((guess + 10) % 100) + 1


class MockInterpreter(GenerationBackend):
    """Deterministic stand-in for the model.

    Picks one of five fixed templates from the description and mutates the
    submitted document according to the clicked element id. The template is
    re-derived from the description on every call; nothing is stored.
    """

    name = "mock"

    def __init__(self, config: MockConfig | None = None):
        self.config = config or MockConfig()
        self._handlers: dict[ActionId, Callable[[Document, ActionId], bool]] = {
            ActionId.ADD: self._calculate,
            ActionId.SUBTRACT: self._calculate,
            ActionId.MULTIPLY: self._calculate,
            ActionId.DIVIDE: self._calculate,
            ActionId.ADD_TASK: self._add_task,
            ActionId.SEND: self._send_form,
            ActionId.CHECK_GUESS: self._check_guess,
            ActionId.ACTION_BUTTON: self._run_demo,
        }

    async def generate(self, model_id: str, description: str) -> GenerationResult:
        await asyncio.sleep(self.config.generate_delay)
        template = select_template(description)
        logger.debug("Mock generate: template=%s", template)
        return GenerationResult(html=render_template(template))

    async def interact(
        self,
        model_id: str,
        description: str,
        current_html: str,
        action: ActionRecord,
        actions: list[ActionEntry],
        comments: list[CommentEntry],
    ) -> GenerationResult:
        await asyncio.sleep(self.config.interact_delay)
        return GenerationResult(html=self.apply(description, current_html, action))

    def apply(self, description: str, current_html: str, action: ActionRecord) -> str:
        """Return the document after the action; unrecognized actions return it unchanged."""
        if action.type != ActionType.CLICK:
            return current_html
        action_id = ActionId.parse(action.id)
        if action_id is None:
            return current_html

        template = select_template(description)
        if action_id.template != template:
            logger.debug("Action %s belongs to %s but description selects %s", action_id, action_id.template, template)

        document = Document.parse(current_html)
        if not self._handlers[action_id](document, action_id):
            return current_html
        logger.debug("Mock interact: template=%s action=%s", template, action_id)
        return document.serialize()

    def _calculate(self, document: Document, action_id: ActionId) -> bool:
        num1 = parse_number(document.value("num1"))
        num2 = parse_number(document.value("num2"))
        if action_id == ActionId.ADD:
            result = format_number(num1 + num2)
        elif action_id == ActionId.SUBTRACT:
            result = format_number(num1 - num2)
        elif action_id == ActionId.MULTIPLY:
            result = format_number(num1 * num2)
        elif num2 == 0:
            result = DIVISION_BY_ZERO
        else:
            result = format_number(num1 / num2)
        return document.set_text("result", f"Result: {result}")

    def _add_task(self, document: Document, action_id: ActionId) -> bool:
        task = document.value("task-input").strip()
        if not task:
            return False
        if not document.append_child("task-list", "li", task):
            return False
        document.set_value("task-input", "")
        return True

    def _send_form(self, document: Document, action_id: ActionId) -> bool:
        fields = [document.value(name).strip() for name in ("name", "email", "message")]
        text = FORM_SUCCESS if all(fields) else FORM_INCOMPLETE
        return document.set_text("form-result", text)

    def _check_guess(self, document: Document, action_id: ActionId) -> bool:
        guess = parse_integer(document.value("guess"))
        if guess is None:
            text = GUESS_NOT_A_NUMBER
        else:
            secret = secret_for(guess)
            if guess == secret:
                text = GUESS_CORRECT
            elif guess < secret:
                text = GUESS_HIGHER
            else:
                text = GUESS_LOWER
        return document.set_text("game-result", text)

    def _run_demo(self, document: Document, action_id: ActionId) -> bool:
        entered = document.value("input").strip()
        text = f"You entered: {entered}" if entered else DEMO_EMPTY
        return document.set_text("demo-result", text)

    async def dialog(
        self,
        model_id: str,
        description: str,
        current_html: str,
        transcript: list[DialogTurn],
    ) -> DialogResult:
        await asyncio.sleep(self.config.dialog_delay)
        message = next((t.content for t in reversed(transcript) if t.role == Role.USER), "")
        response = reply_to(message)
        return DialogResult(response=response, html=extract_html(response))


COLOR_CODES: list[tuple[tuple[str, ...], str]] = [
    (("red", "красн"), "#e74c3c"),
    (("green", "зелен"), "#2ecc71"),
    (("yellow", "желт"), "#f1c40f"),
    (("orange", "оранж"), "#e67e22"),
    (("purple", "violet", "фиолет"), "#9b59b6"),
]
DEFAULT_COLOR = ("blue", "#3498db")

DIALOG_HELP = """I understand your request, but I can't produce suitable HTML for it. Try a more specific request, for example:

- Add a button for [action]
- Change the color to [color]
- Add a heading "[text]"

That helps me understand what you want to change in the interface."""


def _fenced(html: str) -> str:
    return f"```html\n{html}\n```"


def reply_to(message: str) -> str:
    """Keyword-driven chat reply; the HTML, when there is any, sits in one fenced block."""
    lowered = message.lower()

    if any(k in lowered for k in ("add button", "add a button", "добавь кнопку", "добавить кнопку")):
        match = re.search(r"(?:button for|кнопку для)\s+([\w ]+)", message, re.IGNORECASE)
        label = match.group(1).strip() if match else "New button"
        html = (
            '<button id="new-button" style="background-color: #4CAF50; color: white; border: none; '
            f'padding: 10px 15px; margin: 5px; border-radius: 4px; cursor: pointer;">{label}</button>'
        )
        return f"I'll add a button for {label}. Here is the HTML:\n\n{_fenced(html)}\n\nThe button has been added to the interface."

    if any(k in lowered for k in ("change color", "change the color", "изменить цвет", "поменять цвет")):
        match = re.search(r"(?:\bto|\bна)\s+([^\W\d_]+)", message, re.IGNORECASE)
        color = match.group(1) if match else DEFAULT_COLOR[0]
        code = DEFAULT_COLOR[1]
        for names, candidate in COLOR_CODES:
            if any(name in color.lower() for name in names):
                code = candidate
                break
        html = f"<style>\n  .container {{\n    background-color: {code};\n    color: white;\n  }}\n</style>"
        return f"I'll change the color to {color}. Here is the HTML to update the style:\n\n{_fenced(html)}\n\nThe container color is now {color}."

    if any(k in lowered for k in ("add heading", "add a heading", "add title", "add a title", "добавь заголовок", "добавить заголовок")):
        match = re.search(r'(?:heading|title|заголовок)\s+"([^"]+)"', message, re.IGNORECASE)
        title = match.group(1) if match else "New heading"
        html = f'<h2 style="color: #333; margin-top: 20px;">{title}</h2>'
        return f'I\'ll add the heading "{title}". Here is the HTML:\n\n{_fenced(html)}\n\nThe heading has been added to the interface.'

    return DIALOG_HELP
