import logging
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution

logger = logging.getLogger(__name__)

_TAG_OPEN_RE = re.compile(r"<([a-zA-Z][^\s/>]*)")
_ATTR_RE = re.compile(r"""(\s+[^\s"'>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")
_TAG_END_RE = re.compile(r"\s*(/?)>")


@dataclass
class _Attr:
    name: str
    start: int
    end: int
    prefix: str  # leading whitespace and the name as written


@dataclass
class _StartTag:
    start: int
    end: int
    attrs_end: int
    self_closing: bool
    attrs: list[_Attr] = field(default_factory=list)

    def attr(self, name: str) -> _Attr | None:
        return next((a for a in self.attrs if a.name == name), None)


def _scan_start_tag(source: str, start: int) -> _StartTag | None:
    match = _TAG_OPEN_RE.match(source, start)
    if match is None:
        return None
    pos = match.end()
    attrs: list[_Attr] = []
    while pos < len(source):
        attr = _ATTR_RE.match(source, pos)
        if attr:
            name = attr.group(1).strip().lower()
            attrs.append(_Attr(name, attr.start(), attr.end(), attr.group(1)))
            pos = attr.end()
            continue
        end = _TAG_END_RE.match(source, pos)
        if end:
            return _StartTag(start, end.end(), pos, bool(end.group(1)), attrs)
        pos += 1  # stray character inside the tag
    return None


def _is_blank(node: object) -> bool:
    return type(node) is NavigableString and not node.strip()


def _text(value: str) -> str:
    return EntitySubstitution.substitute_xml(value)


def _quoted(value: str) -> str:
    return EntitySubstitution.substitute_xml(value, make_quoted_attribute=True)


class Document:
    """An interface document owned by a single call.

    BeautifulSoup locates elements and reads values; every mutation is
    spliced into the original source at the element's position, so markup
    outside the edited spans comes back byte for byte. Lookups are by
    element id, and serialize() is the only way state leaves the object.
    """

    def __init__(self, source: str):
        self.source = source
        self._parse()

    @classmethod
    def parse(cls, html: str) -> "Document":
        return cls(html)

    def _parse(self) -> None:
        self.soup = BeautifulSoup(self.source, "html.parser")
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", self.source)]

    def find(self, element_id: str) -> Tag | None:
        node = self.soup.find(id=element_id)
        return node if isinstance(node, Tag) else None

    def value(self, element_id: str) -> str:
        """Current value of a form control, or "" when the element is missing."""
        node = self.find(element_id)
        if node is None:
            return ""
        if node.name == "textarea":
            return node.get_text()
        if node.name == "select":
            option = node.find("option", selected=True) or node.find("option")
            if not isinstance(option, Tag):
                return ""
            value = option.get("value")
            return str(value) if value is not None else option.get_text()
        value = node.get("value")
        return str(value) if value is not None else ""

    # --- source positions ---

    def _start_tag(self, node: Tag) -> _StartTag | None:
        if node.sourceline is None or node.sourcepos is None:
            return None
        start = self._line_starts[node.sourceline - 1] + node.sourcepos
        return _scan_start_tag(self.source, start)

    def _close_tag(self, node: Tag) -> tuple[int, int] | None:
        """Span of the element's end tag, or None for void and unclosed elements."""
        start_tag = self._start_tag(node)
        if start_tag is None or start_tag.self_closing or node.can_be_empty_element:
            return None
        search_from = start_tag.end
        children = node.find_all(True, recursive=False)
        if children:
            child_end = self._outer_end(children[-1])
            if child_end is None:
                return None
            search_from = child_end

        # The end tag has to come before the first element that follows this one.
        descendants = node.find_all(True)
        following = (descendants[-1] if descendants else node).find_next(True)
        bound = len(self.source)
        if isinstance(following, Tag):
            following_tag = self._start_tag(following)
            if following_tag is not None:
                bound = following_tag.start

        pattern = re.compile(r"</%s\s*>" % re.escape(node.name), re.IGNORECASE)
        match = pattern.search(self.source, search_from, bound)
        return (match.start(), match.end()) if match else None

    def _outer_end(self, node: Tag) -> int | None:
        start_tag = self._start_tag(node)
        if start_tag is None:
            return None
        if start_tag.self_closing or node.can_be_empty_element:
            return start_tag.end
        close = self._close_tag(node)
        return close[1] if close else None

    def _apply(self, edits: list[tuple[int, int, str]]) -> None:
        for start, end, text in sorted(edits, key=lambda e: e[0], reverse=True):
            self.source = self.source[:start] + text + self.source[end:]
        self._parse()

    # --- edits on elements ---

    def _attribute_edit(self, node: Tag, name: str, value: str | None) -> tuple[int, int, str] | None:
        start_tag = self._start_tag(node)
        if start_tag is None:
            return None
        rendered = "" if value is None else "=" + _quoted(value)
        attr = start_tag.attr(name)
        if attr is None:
            return (start_tag.attrs_end, start_tag.attrs_end, f" {name}{rendered}")
        return (attr.start, attr.end, attr.prefix + rendered)

    def set_attribute(self, node: Tag, name: str, value: str | None = None) -> bool:
        """Set an attribute in place; value=None writes a bare boolean attribute."""
        edit = self._attribute_edit(node, name, value)
        if edit is None:
            logger.warning("Cannot locate <%s> in the document source", node.name)
            return False
        self._apply([edit])
        return True

    def replace_content(self, node: Tag, markup: str) -> bool:
        start_tag = self._start_tag(node)
        close = self._close_tag(node)
        if start_tag is None or close is None:
            logger.warning("Cannot locate the content of <%s> in the document source", node.name)
            return False
        self._apply([(start_tag.end, close[0], markup)])
        return True

    def append_markup(self, node: Tag, markup: str) -> bool:
        """Insert markup just before the element's end tag."""
        close = self._close_tag(node)
        if close is None:
            logger.warning("Cannot locate the end tag of <%s> in the document source", node.name)
            return False
        self._apply([(close[0], close[0], markup)])
        return True

    def set_control_value(self, node: Tag, value: str) -> bool:
        """Write a form control's value the way a browser serializes it back."""
        if node.name == "textarea":
            return self.replace_content(node, _text(value))
        if node.name != "select":
            return self.set_attribute(node, "value", value)

        edits = []
        for option in node.find_all("option"):
            option_value = option.get("value", option.get_text())
            selected = option.has_attr("selected")
            if option_value == value and not selected:
                edit = self._attribute_edit(option, "selected", None)
            elif option_value != value and selected:
                start_tag = self._start_tag(option)
                attr = start_tag.attr("selected") if start_tag else None
                edit = (attr.start, attr.end, "") if attr else None
            else:
                continue
            if edit is None:
                logger.warning("Cannot locate <option> in the document source")
                return False
            edits.append(edit)
        self._apply(edits)
        return True

    # --- id based helpers ---

    def set_value(self, element_id: str, value: str) -> bool:
        node = self.find(element_id)
        return node is not None and self.set_control_value(node, value)

    def set_text(self, element_id: str, text: str) -> bool:
        node = self.find(element_id)
        return node is not None and self.replace_content(node, _text(text))

    def append_child(self, element_id: str, tag_name: str, text: str) -> bool:
        parent = self.find(element_id)
        if parent is None:
            return False
        markup = f"<{tag_name}>{_text(text)}</{tag_name}>"
        close = self._close_tag(parent)
        if close is None:
            logger.warning("Cannot locate the end tag of <%s> in the document source", parent.name)
            return False
        # Indent like the existing children when the container is laid out over lines.
        leading = parent.contents[0] if parent.contents else None
        trailing = parent.contents[-1] if parent.contents else None
        at = close[0]
        if _is_blank(leading) and _is_blank(trailing) and leading is not trailing:
            at -= len(str(trailing))
            markup = str(leading) + markup
        self._apply([(at, at, markup)])
        return True

    def serialize(self) -> str:
        return self.source
