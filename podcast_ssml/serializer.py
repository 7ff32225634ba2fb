"""Render utterances into the line-oriented "Speaker: ...</speak>" SSML form."""

import re

from podcast_ssml.constants import DEFAULT_PAUSE_SECONDS
from podcast_ssml.models import Utterance
from podcast_ssml.registry import format_number

_TRAILING_SPEAK_RE = re.compile(r"\s*</speak>\s*$")
_TRAILING_BREAK_RE = re.compile(r"<break[^>]*>\s*$")


def pause_marker(seconds: float) -> str:
    return f'<break time="{format_number(seconds)}s"/>'


def serialize_utterance(utterance: Utterance, pause_seconds: float | None) -> str:
    """One export line. ``pause_seconds`` None means no break is appended."""
    text = _TRAILING_SPEAK_RE.sub("", utterance.text)
    if pause_seconds is not None and utterance.add_pause and not _TRAILING_BREAK_RE.search(text):
        text += pause_marker(pause_seconds)
    return f"{utterance.speaker}: {text}</speak>"


def serialize(sequence: list[Utterance], default_pause_seconds: float = DEFAULT_PAUSE_SECONDS) -> str:
    """Serialize the transcript for export and synthesis.

    Utterances are separated by a blank line. Every utterance except the
    last gets a trailing break when ``add_pause`` is set and its text does
    not already end in one.
    """
    last = len(sequence) - 1
    lines = [
        serialize_utterance(u, default_pause_seconds if i < last else None)
        for i, u in enumerate(sequence)
    ]
    return "\n\n".join(lines).strip()
