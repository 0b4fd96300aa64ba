import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from core.types import ActionRecord, ActionType
from mock.dom import Document

logger = logging.getLogger(__name__)

CLICK_TAGS = ("button", "a")
CHANGE_TAGS = ("input", "textarea", "select")
# Containers that become clickable only when they carry a clickability marker.
MARKED_TAGS = ("div", "td", "th", "span", "li")
CLICKABLE_CLASSES = ("cell", "clickable")
CELL_ATTR = "data-cell"
ACTION_ATTR = "data-action"

_POINTER_RE = re.compile(r"(?:^|;)\s*cursor\s*:\s*pointer\s*(?:;|$)", re.IGNORECASE)


class CaptureError(LookupError):
    """No listener is installed for the requested element."""


@dataclass
class CaptureTarget:
    element: Tag
    event: ActionType
    prevent_default: bool = False

    @property
    def element_id(self) -> str:
        return str(self.element.get("id") or "")


def _class_name(element: Tag) -> str:
    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def _dataset(element: Tag) -> dict[str, str]:
    """data-* attributes keyed the way the DOM exposes them (data-foo-bar -> fooBar)."""
    dataset: dict[str, str] = {}
    for name, value in element.attrs.items():
        if not name.startswith("data-"):
            continue
        head, *rest = name[5:].split("-")
        key = head + "".join(part[:1].upper() + part[1:] for part in rest)
        dataset[key] = value if isinstance(value, str) else " ".join(value)
    return dataset


def is_clickable(element: Tag) -> bool:
    if element.has_attr(CELL_ATTR) or element.has_attr(ACTION_ATTR):
        return True
    classes = _class_name(element).split()
    if any(c in classes for c in CLICKABLE_CLASSES):
        return True
    return bool(_POINTER_RE.search(str(element.get("style") or "")))


class FrameEventCapturer:
    """Installs listeners over a freshly replaced interface document.

    Every install() discards the previous document and its targets; nothing
    carries across a replacement. Clicks are reported with prevent_default
    set, so the server decides what a click means.
    """

    def __init__(self) -> None:
        self.document: Document | None = None
        self.targets: list[CaptureTarget] = []

    def install(self, html: str) -> list[CaptureTarget]:
        self.document = Document.parse(html)
        return self._collect(self.document.soup)

    def _collect(self, soup: BeautifulSoup) -> list[CaptureTarget]:
        self.targets = []
        for element in soup.find_all(list(CLICK_TAGS + CHANGE_TAGS)):
            if element.name in CLICK_TAGS:
                self.targets.append(CaptureTarget(element, ActionType.CLICK, prevent_default=True))
            else:
                self.targets.append(CaptureTarget(element, ActionType.CHANGE))
        for element in soup.find_all(list(MARKED_TAGS)):
            if is_clickable(element):
                self.targets.append(CaptureTarget(element, ActionType.CLICK, prevent_default=True))
        return self.targets

    @property
    def click_targets(self) -> list[CaptureTarget]:
        return [t for t in self.targets if t.event == ActionType.CLICK]

    @property
    def change_targets(self) -> list[CaptureTarget]:
        return [t for t in self.targets if t.event == ActionType.CHANGE]

    def find(self, element_id: str, event: ActionType) -> CaptureTarget:
        for target in self.targets:
            if target.event == event and target.element_id == element_id:
                return target
        raise CaptureError(f"No {event} listener on element with id '{element_id}'")

    def click(self, target: CaptureTarget | str) -> ActionRecord:
        if isinstance(target, str):
            target = self.find(target, ActionType.CLICK)
        element = target.element
        record = ActionRecord(
            type=ActionType.CLICK,
            element=element.name.lower(),
            id=target.element_id or None,
            class_=_class_name(element) or None,
            text=element.get_text().strip() or None,
        )
        if element.name in CLICK_TAGS:
            value = element.get("value")
            record.value = str(value) if value else None
        else:
            record.dataset = _dataset(element)
            if element.has_attr(CELL_ATTR):
                record.position = str(element[CELL_ATTR])
        return record

    def change(self, target: CaptureTarget | str, value: str) -> ActionRecord:
        """Record a new control value and reflect it into the document."""
        if isinstance(target, str):
            target = self.find(target, ActionType.CHANGE)
        element = target.element
        record = ActionRecord(
            type=ActionType.CHANGE,
            element=element.name.lower(),
            id=target.element_id or None,
            class_=_class_name(element) or None,
            value=value,
        )
        if self.document is not None:
            if not self.document.set_control_value(element, value):
                logger.warning("Could not write the value of <%s> back into the document", element.name)
            # Edits re-parse the document, so the old element handles are stale.
            self._collect(self.document.soup)
        return record

    def current_html(self) -> str:
        if self.document is None:
            return ""
        return self.document.serialize()
