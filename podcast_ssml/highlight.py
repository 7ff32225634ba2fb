"""Display-only decoration of SSML spans."""

import re
from dataclasses import dataclass

from podcast_ssml import markup
from podcast_ssml.constants import DEFAULT_THEME


@dataclass(frozen=True)
class TagColors:
    bg: str
    text: str


TAG_COLORS = {
    "light": {
        "prosody": TagColors("#FFB3BA", "#000000"),
        "emphasis": TagColors("#BAFFC9", "#000000"),
        "break": TagColors("#BAE1FF", "#000000"),
        "say-as": TagColors("#FFFFBA", "#000000"),
        "sub": TagColors("#FFD9BA", "#000000"),
        "phoneme": TagColors("#E0BAFF", "#000000"),
    },
    "dark": {
        "prosody": TagColors("#800020", "#FFFFFF"),
        "emphasis": TagColors("#006400", "#FFFFFF"),
        "break": TagColors("#00008B", "#FFFFFF"),
        "say-as": TagColors("#808000", "#FFFFFF"),
        "sub": TagColors("#8B4513", "#FFFFFF"),
        "phoneme": TagColors("#4B0082", "#FFFFFF"),
    },
}

_DECORATION_STYLE_RE = re.compile(r"^background-color: #[0-9A-Fa-f]{6}; color: #[0-9A-Fa-f]{6};$")
_DECORATION_START_RE = re.compile(r"^<span style=\"background-color: #[0-9A-Fa-f]{6}; color: #[0-9A-Fa-f]{6};\">$")


def color_scheme(theme: str = DEFAULT_THEME) -> dict[str, TagColors]:
    """Color scheme for ``theme``; anything but "dark" gets the light one."""
    return TAG_COLORS["dark"] if theme == "dark" else TAG_COLORS["light"]


def _decorate(nodes: list, scheme: dict) -> str:
    parts = []
    for node in nodes:
        if not isinstance(node, markup.Element):
            parts.append(node.value)
            continue
        inner = markup.start_tag(node) + _decorate(node.children, scheme) + markup.end_tag(node)
        colors = scheme.get(node.name.lower())
        if colors is None:
            parts.append(inner)
        else:
            parts.append(
                f'<span style="background-color: {colors.bg}; color: {colors.text};">{inner}</span>'
            )
    return "".join(parts)


def project(text: str, scheme: dict[str, TagColors]) -> str:
    """Wrap every span whose tag is in ``scheme`` in a colored <span>.

    The result is for display only; ``strip_highlight`` undoes it.
    """
    return _decorate(markup.parse_markup(text), scheme)


def _is_decoration(node) -> bool:
    if isinstance(node, markup.Raw):
        return bool(_DECORATION_START_RE.match(node.value))
    return (
        isinstance(node, markup.Element)
        and node.name.lower() == "span"
        and list(node.attributes) == ["style"]
        and bool(_DECORATION_STYLE_RE.match(node.attributes["style"]))
    )


def _undecorate(nodes: list) -> None:
    result = []
    for node in nodes:
        if isinstance(node, markup.Element):
            _undecorate(node.children)
        if _is_decoration(node):
            if isinstance(node, markup.Element):
                result.extend(node.children)
            continue
        result.append(node)
    nodes[:] = result


def strip_highlight(text: str) -> str:
    """Remove the spans added by ``project``; any other <span> is kept."""
    nodes = markup.parse_markup(text)
    _undecorate(nodes)
    return markup.render(nodes)
