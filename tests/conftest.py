"""Shared fixtures for podcast SSML tests."""

import pytest

from podcast_ssml.models import Utterance


@pytest.fixture
def raw_transcript():
    """Plain transcript with two speakers and a wrapped line."""
    return (
        "Alice: Welcome to the show.\n"
        "Today we talk about markup.\n"
        "\n"
        "Bob: Thanks for having me.\n"
        "\n"
        "Alice: Let's begin.\n"
    )


@pytest.fixture
def sample_utterances():
    """Pre-built utterances for annotator/serializer/synthesis tests."""
    return [
        Utterance(speaker="Alice", text="Hello there", add_pause=True),
        Utterance(speaker="Bob", text="Hi Alice", add_pause=True),
    ]
