"""Interchangeable importers: plain transcript text or exported SSML."""

from typing import Protocol

from podcast_ssml.models import Utterance
from podcast_ssml.parser import parse_transcript
from podcast_ssml.reparser import reparse, reparse_document


class TranscriptSource(Protocol):
    name: str

    def parse(self, text: str) -> list[Utterance]:
        ...


class PlainTranscriptSource:
    name = "transcript"

    def parse(self, text: str) -> list[Utterance]:
        return parse_transcript(text)


class SsmlTranscriptSource:
    name = "ssml"

    def parse(self, text: str) -> list[Utterance]:
        return reparse(text)


class SsmlDocumentSource:
    """Structured <speak><p><s>...</s></p></speak> documents; raises on malformed XML."""

    name = "document"

    def parse(self, text: str) -> list[Utterance]:
        return reparse_document(text)


SOURCES = {
    PlainTranscriptSource.name: PlainTranscriptSource(),
    SsmlTranscriptSource.name: SsmlTranscriptSource(),
    SsmlDocumentSource.name: SsmlDocumentSource(),
}


def source_for(kind: str) -> TranscriptSource:
    """Importer registered under ``kind`` ("transcript", "ssml" or "document")."""
    try:
        return SOURCES[kind]
    except KeyError:
        raise ValueError(f"Unknown transcript source: {kind!r} (expected one of: {', '.join(SOURCES)})") from None
