"""Parse indented "- item" outlines into nested task texts."""

from dataclasses import dataclass, field

ITEM_MARKERS = ("- ", "* ")


@dataclass
class OutlineItem:
    """One parsed outline entry."""

    text: str
    level: int = 0
    children: list["OutlineItem"] = field(default_factory=list)


def _parse_line(line: str) -> tuple[int, str | None]:
    """Return (indent, content) where content is None for non-item lines."""
    stripped = line.lstrip(" ")
    indent = len(line) - len(stripped)
    stripped = stripped.strip()
    for marker in ITEM_MARKERS:
        if stripped.startswith(marker):
            return indent, stripped[len(marker):].strip()
    return indent, None


def parse_outline(text: str, tab_width: int = 4, min_indent: int = 2) -> list[OutlineItem]:
    """Parse outline text into a forest of items.

    Indentation divided by ``min_indent`` gives the nesting level. Lines
    without a marker continue the previous item's text. Text with no
    markers at all becomes a single item.
    """
    roots: list[OutlineItem] = []
    stack: list[OutlineItem] = []

    for raw in text.replace("\t", " " * tab_width).splitlines():
        indent, content = _parse_line(raw)
        if content is None:
            if stack and raw.strip():
                stack[-1].text = f"{stack[-1].text}\n{raw.strip()}"
            continue

        level = min(indent // max(min_indent, 1), len(stack))
        item = OutlineItem(text=content, level=level)
        del stack[level:]
        if stack:
            stack[-1].children.append(item)
        else:
            item.level = 0
            roots.append(item)
        stack.append(item)

    if not roots and text.strip():
        return [OutlineItem(text=text.strip())]
    return roots
