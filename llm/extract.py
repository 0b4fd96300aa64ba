import re

HTML_BLOCK_RE = re.compile(r"```html\n([\s\S]*?)```")


def extract_html(text: str) -> str:
    """Join the bodies of all ```html fenced blocks, in order, with newlines.

    Returns an empty string when the text holds no such block.
    """
    if not text:
        return ""
    return "\n".join(HTML_BLOCK_RE.findall(text))
