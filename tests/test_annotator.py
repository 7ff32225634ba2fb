"""Tests for the SSML annotator (Layer 2a)."""

import pytest

from podcast_ssml.annotator import (
    add_utterance,
    apply_tag,
    edit_text,
    find_tag,
    remove_tag,
    remove_tags,
    remove_utterance,
    rename_speaker,
    toggle_pause,
)
from podcast_ssml.errors import (
    InvalidAttributeError,
    InvalidNameError,
    InvalidSelectionError,
    NotFoundError,
    UnknownTagError,
)
from podcast_ssml.highlight import color_scheme, project
from podcast_ssml.markup import has_crossing_spans, visible_text
from podcast_ssml.models import Utterance


# --- apply_tag: add ---

def test_apply_tag_wraps_selection():
    u = Utterance("Alice", "Hello there friend")
    attrs = apply_tag(u, "there", "prosody", {"rate": "slow"})
    assert u.text == 'Hello <prosody rate="slow">there</prosody> friend'
    assert attrs == {"rate": "slow"}


def test_apply_tag_numeric_rate_snaps_to_label():
    u = Utterance("Alice", "Hello there")
    apply_tag(u, "Hello", "prosody", {"rate": 140})
    assert u.text == '<prosody rate="fast">Hello</prosody> there'


def test_apply_tag_uses_start_offset_for_repeats():
    u = Utterance("Alice", "no no no")
    apply_tag(u, "no", "emphasis", {"level": "strong"}, start=3)
    assert u.text == 'no <emphasis level="strong">no</emphasis> no'


def test_apply_tag_selection_inside_existing_span():
    u = Utterance("Alice", '<prosody rate="slow">Hello there</prosody>')
    apply_tag(u, "there", "emphasis", {"level": "moderate"})
    assert u.text == '<prosody rate="slow">Hello <emphasis level="moderate">there</emphasis></prosody>'


def test_apply_tag_offsets_ignore_markup():
    """Selections are matched against visible text, not raw markup."""
    u = Utterance("Alice", 'Say <sub alias="W3C">WWW</sub> now')
    apply_tag(u, "WWW now", "emphasis")
    assert u.text == 'Say <emphasis><sub alias="W3C">WWW</sub> now</emphasis>'


# --- apply_tag: update ---

def test_apply_tag_updates_existing_span():
    """Same tag over covered text merges attributes and keeps the extent."""
    u = Utterance("Alice", 'Hello <prosody rate="slow">there friend</prosody>')
    attrs = apply_tag(u, "there", "prosody", {"pitch": "high"})
    assert u.text == 'Hello <prosody rate="slow" pitch="high">there friend</prosody>'
    assert attrs == {"rate": "slow", "pitch": "high"}


def test_apply_tag_update_overrides_same_attribute():
    u = Utterance("Alice", '<prosody rate="slow">Hello</prosody>')
    apply_tag(u, "Hello", "prosody", {"rate": "x-fast"})
    assert u.text == '<prosody rate="x-fast">Hello</prosody>'


def test_apply_tag_updates_innermost_span():
    u = Utterance("Alice", '<emphasis level="reduced">a <emphasis level="strong">b</emphasis></emphasis>')
    apply_tag(u, "b", "emphasis", {"level": "moderate"})
    assert u.text == '<emphasis level="reduced">a <emphasis level="moderate">b</emphasis></emphasis>'


def test_break_tag_round_trip():
    """break time=500ms reads back through existing-span detection."""
    u = Utterance("Alice", "Hello there")
    apply_tag(u, "there", "break", {"time": "500ms"})
    assert find_tag(u, "break", "there") == {"time": "500ms"}
    assert find_tag(u, "break") == {"time": "500ms"}


# --- apply_tag: failures leave text unchanged ---

def test_apply_tag_crossing_selection_rejected():
    original = 'Hello <prosody rate="slow">there friend</prosody>'
    u = Utterance("Alice", original)
    with pytest.raises(InvalidSelectionError):
        apply_tag(u, "Hello there", "emphasis", {"level": "strong"})
    assert u.text == original


def test_apply_tag_missing_selection_rejected():
    u = Utterance("Alice", "Hello")
    with pytest.raises(InvalidSelectionError):
        apply_tag(u, "Goodbye", "emphasis")
    with pytest.raises(InvalidSelectionError):
        apply_tag(u, "", "emphasis")
    assert u.text == "Hello"


def test_apply_tag_unknown_tag():
    u = Utterance("Alice", "Hello")
    with pytest.raises(UnknownTagError):
        apply_tag(u, "Hello", "audio")
    assert u.text == "Hello"


def test_apply_tag_bad_attribute():
    u = Utterance("Alice", "Hello")
    with pytest.raises(InvalidAttributeError):
        apply_tag(u, "Hello", "emphasis", {"level": "loud"})
    assert u.text == "Hello"


def test_apply_tag_sequence_never_crosses():
    """Successful applies in any order keep spans properly nested."""
    u = Utterance("Alice", "The quick brown fox jumps over the lazy dog")
    edits = [
        ("quick brown fox", "prosody", {"rate": "fast"}),
        ("brown", "emphasis", {"level": "strong"}),
        ("fox jumps", "sub", {"alias": "x"}),
        ("jumps over", "say-as", {"interpret-as": "characters"}),
        ("The quick brown fox jumps", "break", {"time": "200ms"}),
        ("lazy", "phoneme", {"alphabet": "ipa", "ph": "ˈleɪzi"}),
        ("brown fox", "prosody", {"pitch": "low"}),
    ]
    for selection, tag, attrs in edits:
        try:
            apply_tag(u, selection, tag, attrs)
        except InvalidSelectionError:
            pass
        assert not has_crossing_spans(u.text)
    assert visible_text(u.text) == "The quick brown fox jumps over the lazy dog"


# --- find_tag ---

def test_find_tag_absent():
    u = Utterance("Alice", "Hello")
    assert find_tag(u, "prosody") is None
    assert find_tag(u, "prosody", "Hello") is None


# --- remove ---

def test_remove_tag_unwraps_all_spans():
    u = Utterance("Alice", '<emphasis>a</emphasis> b <emphasis level="strong">c</emphasis>')
    assert remove_tag(u, "emphasis") == 2
    assert u.text == "a b c"


def test_remove_tag_keeps_other_tags():
    u = Utterance("Alice", '<prosody rate="slow">a <emphasis>b</emphasis></prosody>')
    remove_tag(u, "prosody")
    assert u.text == "a <emphasis>b</emphasis>"


def test_remove_tag_absent_raises_not_found():
    u = Utterance("Alice", "Hello there")
    with pytest.raises(NotFoundError):
        remove_tag(u, "prosody")
    assert u.text == "Hello there"


def test_remove_tag_idempotent():
    u = Utterance("Alice", 'Hi<break time="1s"/> <break time="2s">there</break>')
    remove_tag(u, "break")
    once = u.text
    with pytest.raises(NotFoundError):
        remove_tag(u, "break")
    assert u.text == once == "Hi there"


def test_remove_tags_several_names():
    u = Utterance("Alice", '<prosody rate="slow">a</prosody> <sub alias="x">b</sub> <emphasis>c</emphasis>')
    assert remove_tags(u, {"prosody", "sub"}) == 2
    assert u.text == "a b <emphasis>c</emphasis>"


def test_remove_tags_none_present():
    u = Utterance("Alice", "plain")
    with pytest.raises(NotFoundError):
        remove_tags(u, {"prosody", "sub"})


# --- block edits ---

def test_toggle_pause():
    u = Utterance("Alice", "Hi")
    assert toggle_pause(u) is False
    assert toggle_pause(u) is True


def test_rename_speaker():
    u = Utterance("Alice", "Hi")
    rename_speaker(u, "  Carol ")
    assert u.speaker == "Carol"


def test_rename_speaker_rejects_blank():
    u = Utterance("Alice", "Hi")
    with pytest.raises(InvalidNameError):
        rename_speaker(u, "   ")
    assert u.speaker == "Alice"


def test_add_and_remove_utterance(sample_utterances):
    added = add_utterance(sample_utterances, "Carol")
    assert sample_utterances[-1] is added
    assert added.add_pause is True and added.text == ""
    removed = remove_utterance(sample_utterances, 0)
    assert removed.speaker == "Alice"
    assert [u.speaker for u in sample_utterances] == ["Bob", "Carol"]


def test_add_utterance_rejects_blank(sample_utterances):
    with pytest.raises(InvalidNameError):
        add_utterance(sample_utterances, "")
    assert len(sample_utterances) == 2


def test_remove_utterance_out_of_range(sample_utterances):
    with pytest.raises(IndexError):
        remove_utterance(sample_utterances, 5)


def test_edit_text_strips_highlight():
    text = '<emphasis level="strong">Hey</emphasis> you'
    u = Utterance("Alice", "")
    edit_text(u, project(text, color_scheme("dark")))
    assert u.text == text


def test_apply_tag_selection_with_escaped_ampersand():
    """Imported text stores & as &amp;; selections use the visible form."""
    u = Utterance("A", "Tom &amp; Jerry")
    apply_tag(u, "Tom & Jerry", "emphasis")
    assert u.text == "<emphasis>Tom &amp; Jerry</emphasis>"
    assert find_tag(u, "emphasis", "&") == {}
