"""Lossless tokenizer for SSML embedded in utterance text.

Utterance text is an editable string with tags mixed into it. To edit it
safely the string is parsed into an ordered list of nodes:

  Text     plain characters, counted in visible offsets
  Element  a tag span holding its own ordered children
  Raw      a tag that could not be paired (stray ``</speak>``, unclosed
           start tag); kept verbatim and zero characters wide

Every element remembers the exact source of its start and end tags, so
rendering an untouched tree gives back the input byte-for-byte. Offsets
used by callers are always *visible* offsets, i.e. positions in the text
with all markup removed.
"""

import re
from dataclasses import dataclass, field
from xml.sax.saxutils import escape, unescape

from podcast_ssml.errors import InvalidSelectionError

_TAG_RE = re.compile(
    r"<(/)?([A-Za-z][\w:.-]*)"
    r"((?:\s+[^\s=/>]+\s*=\s*(?:\"[^\"]*\"|'[^']*'))*)"
    r"\s*(/)?>"
)
_ATTR_RE = re.compile(r"([^\s=/>]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")

_ENTITIES = {"&quot;": '"', "&apos;": "'"}
# Entities counted as one visible character each
_ENTITY_RE = re.compile(r"&(?:amp|lt|gt|quot|apos);")


@dataclass
class Text:
    value: str


@dataclass
class Raw:
    value: str


@dataclass
class Element:
    name: str
    attributes: dict = field(default_factory=dict)
    children: list = field(default_factory=list)
    start_tag: str = ""        # original source; "" means render from attributes
    end_tag: str = ""
    self_closing: bool = False

    def set_attributes(self, attributes: dict) -> None:
        self.attributes = dict(attributes)
        self.start_tag = ""


def _parse_attributes(source: str) -> dict:
    attrs = {}
    for m in _ATTR_RE.finditer(source):
        value = m.group(2) if m.group(2) is not None else m.group(3)
        attrs[m.group(1)] = unescape(value, _ENTITIES)
    return attrs


def _quote(value) -> str:
    return escape(str(value), {'"': "&quot;"})


def parse_markup(text: str) -> list:
    """Parse ``text`` into a node list. Never raises on unbalanced markup."""
    root: list = []
    stack: list[tuple[Element | None, list]] = [(None, root)]

    def unwind(depth: int) -> None:
        # Elements above ``depth`` were never closed: demote their start tag
        # to Raw and splice their children into the parent.
        while len(stack) > depth:
            element, _ = stack.pop()
            parent = stack[-1][1]
            parent.pop()
            parent.append(Raw(element.start_tag))
            parent.extend(element.children)

    pos = 0
    for m in _TAG_RE.finditer(text):
        if m.start() > pos:
            stack[-1][1].append(Text(text[pos:m.start()]))
        pos = m.end()

        closing, name, attr_source, self_closing = m.groups()
        if closing:
            depth = None
            for i in range(len(stack) - 1, 0, -1):
                if stack[i][0].name.lower() == name.lower():
                    depth = i
                    break
            if depth is None:
                stack[-1][1].append(Raw(m.group(0)))
                continue
            unwind(depth + 1)
            element, _ = stack.pop()
            element.end_tag = m.group(0)
            continue

        element = Element(
            name=name,
            attributes=_parse_attributes(attr_source),
            start_tag=m.group(0),
            self_closing=bool(self_closing),
        )
        stack[-1][1].append(element)
        if not element.self_closing:
            stack.append((element, element.children))

    if pos < len(text):
        stack[-1][1].append(Text(text[pos:]))
    unwind(1)
    return root


def start_tag(element: Element) -> str:
    if element.start_tag:
        return element.start_tag
    attrs = "".join(f' {name}="{_quote(value)}"' for name, value in element.attributes.items())
    return f"<{element.name}{attrs}{'/' if element.self_closing else ''}>"


def end_tag(element: Element) -> str:
    if element.self_closing:
        return ""
    return element.end_tag or f"</{element.name}>"


def render(nodes: list) -> str:
    """Serialize a node list back to markup text."""
    parts = []
    for node in nodes:
        if isinstance(node, Element):
            parts.append(start_tag(node))
            parts.append(render(node.children))
            parts.append(end_tag(node))
        else:
            parts.append(node.value)
    return "".join(parts)


def _unescape_text(value: str) -> str:
    return unescape(value, _ENTITIES)


def _source_index(value: str, visible: int) -> int:
    """Index into escaped ``value`` of its ``visible``-th visible character."""
    pos = count = 0
    for m in _ENTITY_RE.finditer(value):
        run = m.start() - pos
        if count + run >= visible:
            break
        count += run + 1
        pos = m.end()
    return pos + visible - count


def plain_text(nodes: list) -> str:
    """Visible text: every Text node with entities decoded, no markup."""
    parts = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(_unescape_text(node.value))
        elif isinstance(node, Element):
            parts.append(plain_text(node.children))
    return "".join(parts)


def visible_text(text: str) -> str:
    return plain_text(parse_markup(text))


def node_length(node) -> int:
    if isinstance(node, Text):
        return len(_unescape_text(node.value))
    if isinstance(node, Element):
        return sum(node_length(child) for child in node.children)
    return 0


def iter_elements(nodes: list, offset: int = 0, depth: int = 0):
    """Yield ``(element, start, end, depth)`` in document order.

    ``start``/``end`` are visible offsets of the element's content.
    """
    pos = offset
    for node in nodes:
        length = node_length(node)
        if isinstance(node, Element):
            yield node, pos, pos + length, depth
            yield from iter_elements(node.children, pos, depth + 1)
        pos += length


def locate(plain: str, selection: str, start: int | None = None) -> tuple[int, int]:
    """Visible range of ``selection``; ``start`` pins a specific occurrence."""
    if not selection:
        raise InvalidSelectionError("Selection is empty")
    if start is None:
        start = plain.find(selection)
        if start == -1:
            raise InvalidSelectionError(f"Selection {selection!r} not found in text")
    elif plain[start:start + len(selection)] != selection:
        raise InvalidSelectionError(f"Selection {selection!r} does not occur at offset {start}")
    return start, start + len(selection)


def innermost_covering(nodes: list, name: str, start: int, end: int) -> Element | None:
    """Deepest element named ``name`` whose content covers [start, end)."""
    best, best_depth = None, -1
    for element, a, b, depth in iter_elements(nodes):
        if element.name.lower() != name.lower() or b <= a:
            continue
        if a <= start and end <= b and depth > best_depth:
            best, best_depth = element, depth
    return best


def wrap_range(nodes: list, start: int, end: int, element: Element) -> None:
    """Wrap visible range [start, end) of ``nodes`` in ``element``, in place.

    Raises InvalidSelectionError when a boundary falls inside an element
    that the other boundary is outside of.
    """
    if start >= end:
        raise InvalidSelectionError("Selection is empty")

    spans = []
    pos = 0
    for node in nodes:
        length = node_length(node)
        spans.append((node, pos, pos + length))
        pos += length

    # Descend into the one element that strictly contains the selection.
    for node, a, b in spans:
        if (
            isinstance(node, Element)
            and b > a
            and a <= start
            and end <= b
            and (a < start or end < b)
        ):
            wrap_range(node.children, start - a, end - a, element)
            return

    before, inside, after = [], [], []
    for node, a, b in spans:
        if a == b:
            if a <= start:
                before.append(node)
            elif a >= end:
                after.append(node)
            else:
                inside.append(node)
        elif b <= start:
            before.append(node)
        elif a >= end:
            after.append(node)
        elif start <= a and b <= end:
            inside.append(node)
        elif isinstance(node, Text):
            value = node.value
            lo = _source_index(value, max(start, a) - a)
            hi = _source_index(value, min(end, b) - a)
            if a < start:
                before.append(Text(value[:lo]))
            inside.append(Text(value[lo:hi]))
            if b > end:
                after.append(Text(value[hi:]))
        else:
            raise InvalidSelectionError(
                f"Selection crosses the boundary of an existing <{node.name}> tag"
            )

    element.children = inside
    nodes[:] = before + [element] + after


def unwrap(nodes: list, names: set) -> int:
    """Replace every element whose name is in ``names`` by its children.

    Returns the number of elements removed.
    """
    names = {n.lower() for n in names}
    removed = 0
    result = []
    for node in nodes:
        if isinstance(node, Element):
            removed += unwrap(node.children, names)
            if node.name.lower() in names:
                result.extend(node.children)
                removed += 1
                continue
        result.append(node)
    nodes[:] = result
    return removed


def has_crossing_spans(text: str) -> bool:
    """True if any start/end tag pair in ``text`` overlaps another pair.

    A close tag with no open counterpart (the trailing ``</speak>`` of
    exported lines) pairs with nothing and is skipped, as is an unclosed
    ``<speak>`` wrapper.
    """
    stack = []
    for m in _TAG_RE.finditer(text):
        closing, name, _, self_closing = m.groups()
        name = name.lower()
        if self_closing:
            continue
        if not closing:
            stack.append(name)
        elif name not in stack:
            continue
        elif stack.pop() != name:
            return True
    return any(name != "speak" for name in stack)
