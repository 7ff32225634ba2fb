"""Tests for reading exported SSML back into utterances (Layer 2c)."""

import pytest

from podcast_ssml.errors import MalformedMarkupError
from podcast_ssml.models import Utterance
from podcast_ssml.reparser import reparse, reparse_document
from podcast_ssml.serializer import serialize


EXPORTED = 'Alice: Hello there<break time="1s"/></speak>\n\nBob: Hi Alice</speak>'


def test_reparse_infers_pause_from_break():
    result = reparse(EXPORTED)
    assert [u.speaker for u in result] == ["Alice", "Bob"]
    assert result[0].add_pause is True
    assert result[1].add_pause is False


def test_reparse_keeps_markup_verbatim():
    result = reparse(EXPORTED)
    assert result[0].text == 'Hello there<break time="1s"/></speak>'
    assert result[1].text == "Hi Alice</speak>"


def test_reparse_then_serialize_is_stable():
    assert serialize(reparse(EXPORTED)) == EXPORTED


def test_reparse_after_serialize_keeps_speakers_and_pauses(sample_utterances):
    sample_utterances[1].add_pause = False
    result = reparse(serialize(sample_utterances))
    assert [(u.speaker, u.add_pause) for u in result] == [("Alice", True), ("Bob", False)]


def test_reparse_joins_continuation_lines():
    result = reparse("Alice: first part\nsecond part</speak>")
    assert result == [Utterance("Alice", "first part second part</speak>", add_pause=False)]


def test_reparse_break_on_continuation_line():
    result = reparse('Alice: first\nsecond<break time="1s"/></speak>\n\nBob: x</speak>')
    assert result[0].add_pause is True


def test_reparse_drops_speaker_without_text():
    assert reparse("Alice:\n\nBob: hi</speak>") == [Utterance("Bob", "hi</speak>", add_pause=False)]


def test_reparse_empty():
    assert reparse("") == []


# --- structured documents ---

DOCUMENT = (
    '<speak>'
    '<p><s>Alice: Hello <emphasis level="strong">there</emphasis></s><break time="1s"/></p>'
    '<p><s>Bob: Hi</s></p>'
    '</speak>'
)


def test_reparse_document_paragraphs():
    result = reparse_document(DOCUMENT)
    assert result == [
        Utterance("Alice", 'Hello <emphasis level="strong">there</emphasis>', add_pause=True),
        Utterance("Bob", "Hi", add_pause=False),
    ]


def test_reparse_document_sentence_without_speaker_continues_previous():
    result = reparse_document("<speak><p><s>Alice: One.</s><s>Two.</s></p></speak>")
    assert [(u.speaker, u.text) for u in result] == [("Alice", "One."), ("Alice", "Two.")]


def test_reparse_document_first_sentence_without_speaker():
    result = reparse_document("<speak><s>Just words</s></speak>")
    assert result == [Utterance("Speaker 1", "Just words", add_pause=False)]


def test_reparse_document_collapses_whitespace():
    result = reparse_document("<speak><p><s>Alice:\n   lots   of\n space</s></p></speak>")
    assert result[0].text == "lots of space"


def test_reparse_document_not_well_formed():
    with pytest.raises(MalformedMarkupError):
        reparse_document("<speak><p>unclosed")


def test_reparse_document_requires_speak_root():
    with pytest.raises(MalformedMarkupError, match="speak"):
        reparse_document("<document><s>Alice: hi</s></document>")


def test_reparse_document_rejects_entities():
    with pytest.raises(MalformedMarkupError):
        reparse_document('<!DOCTYPE speak [<!ENTITY a "boom">]><speak><s>Alice: &a;</s></speak>')
