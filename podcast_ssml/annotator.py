"""Apply, update and remove SSML tags on utterances, plus the other block edits."""

import logging

from podcast_ssml import markup
from podcast_ssml.errors import InvalidNameError, NotFoundError, UnknownTagError
from podcast_ssml.highlight import strip_highlight
from podcast_ssml.models import Utterance
from podcast_ssml.registry import DEFAULT_REGISTRY, TagRegistry, resolve_attributes

logger = logging.getLogger(__name__)


def apply_tag(
    utterance: Utterance,
    selection: str,
    tag_name: str,
    attributes: dict | None = None,
    start: int | None = None,
    registry: TagRegistry = DEFAULT_REGISTRY,
) -> dict[str, str]:
    """Add or update a ``tag_name`` span over ``selection``.

    ``selection`` is a slice of the utterance's visible text (markup
    removed); ``start`` is its visible offset when the same substring
    occurs more than once. If a span of the same tag already covers the
    selection its attributes are merged and its extent kept; otherwise a
    new span wraps exactly the selection.

    Returns the attributes of the resulting span. On any error the
    utterance is left unchanged.
    """
    definition = registry.lookup(tag_name)
    if definition is None:
        raise UnknownTagError(f"Unknown SSML tag: {tag_name}")
    resolved = resolve_attributes(definition, attributes)

    nodes = markup.parse_markup(utterance.text)
    begin, end = markup.locate(markup.plain_text(nodes), selection, start)

    existing = markup.innermost_covering(nodes, definition.name, begin, end)
    if existing is not None:
        merged = {**existing.attributes, **resolved}
        existing.set_attributes(merged)
        logger.debug("Updated <%s> over %r: %s", definition.name, selection, merged)
    else:
        merged = resolved
        markup.wrap_range(nodes, begin, end, markup.Element(definition.name, dict(resolved)))
        logger.debug("Added <%s> over %r: %s", definition.name, selection, merged)

    utterance.text = markup.render(nodes)
    return dict(merged)


def find_tag(
    utterance: Utterance,
    tag_name: str,
    selection: str | None = None,
    start: int | None = None,
) -> dict[str, str] | None:
    """Attributes of the existing ``tag_name`` span covering ``selection``.

    Without a selection, the first such span in the text is used. Returns
    None when there is no matching span.
    """
    nodes = markup.parse_markup(utterance.text)
    if selection is None:
        for element, _, _, _ in markup.iter_elements(nodes):
            if element.name.lower() == tag_name.lower():
                return dict(element.attributes)
        return None
    begin, end = markup.locate(markup.plain_text(nodes), selection, start)
    element = markup.innermost_covering(nodes, tag_name, begin, end)
    return dict(element.attributes) if element is not None else None


def remove_tags(utterance: Utterance, tag_names) -> int:
    """Unwrap every span whose name is in ``tag_names``, keeping its content.

    Returns the number of spans removed. Raises NotFoundError (text
    unchanged) when none of the names is present.
    """
    names = set(tag_names)
    nodes = markup.parse_markup(utterance.text)
    removed = markup.unwrap(nodes, names)
    if not removed:
        raise NotFoundError(f"No {', '.join(sorted(names))} tag found to remove")
    utterance.text = markup.render(nodes)
    return removed


def remove_tag(utterance: Utterance, tag_name: str) -> int:
    return remove_tags(utterance, {tag_name})


def toggle_pause(utterance: Utterance) -> bool:
    utterance.add_pause = not utterance.add_pause
    return utterance.add_pause


def _clean_name(name: str) -> str:
    if name is None or not name.strip():
        raise InvalidNameError("Speaker name must not be empty")
    return name.strip()


def rename_speaker(utterance: Utterance, new_name: str) -> None:
    utterance.speaker = _clean_name(new_name)


def edit_text(utterance: Utterance, new_text: str) -> None:
    """Store edited text, dropping any highlight decoration left in it."""
    utterance.text = strip_highlight(new_text)


def add_utterance(sequence: list[Utterance], speaker: str, text: str = "") -> Utterance:
    """Append a new speaker block to the end of the transcript."""
    utterance = Utterance(speaker=_clean_name(speaker), text=text, add_pause=True)
    sequence.append(utterance)
    return utterance


def remove_utterance(sequence: list[Utterance], index: int) -> Utterance:
    """Delete the speaker block at ``index`` and return it."""
    if not 0 <= index < len(sequence):
        raise IndexError(f"No utterance at index {index}")
    return sequence.pop(index)
