"""Data models for transcript editing and synthesis."""

from dataclasses import dataclass


@dataclass
class Utterance:
    speaker: str
    text: str              # may embed SSML tags
    add_pause: bool = True  # emit a break after this utterance on export


@dataclass
class TranscriptSegment:
    speaker: str
    text: str
    pause_seconds: float = 0.0  # silence spliced after this segment's audio
