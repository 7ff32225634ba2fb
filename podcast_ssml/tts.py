"""Speech synthesis: provider clients and transcript-to-audio assembly."""

import asyncio
import logging
import os
import re
from typing import Protocol

import edge_tts
import numpy as np
import requests

from podcast_ssml.constants import (
    AUDIO_MIME_TYPE,
    DEFAULT_SIMILARITY_BOOST,
    DEFAULT_STABILITY,
    ELEVENLABS_API_KEY_ENV,
    ELEVENLABS_API_URL,
    ELEVENLABS_MODEL_ID,
    REQUEST_TIMEOUT_SECONDS,
    SILENCE_SAMPLE_RATE,
)
from podcast_ssml.errors import SynthesisError
from podcast_ssml.markup import visible_text
from podcast_ssml.models import TranscriptSegment

logger = logging.getLogger(__name__)

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_SPEAK_TAG_RE = re.compile(r"</?speak\b[^>]*>")
_TRAILING_BREAK_RE = re.compile(r'<break\s+time="(\d+(?:\.\d+)?)(ms|s)"\s*/>\s*$')


class Synthesizer(Protocol):
    def synthesize(self, text: str, voice_id: str, stability: float, similarity_boost: float) -> bytes:
        ...


def resolve_api_key(api_key: str | None = None) -> str:
    """Explicit key, else the ELEVENLABS_API_KEY environment variable."""
    key = api_key or os.environ.get(ELEVENLABS_API_KEY_ENV)
    if not key:
        raise SynthesisError(f"No ElevenLabs API key: set {ELEVENLABS_API_KEY_ENV} or pass --api-key")
    return key


class ElevenLabsSynthesizer:
    """POST /v1/text-to-speech/{voice_id}; returns MP3 bytes."""

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str = ELEVENLABS_MODEL_ID,
        base_url: str = ELEVENLABS_API_URL,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.api_key = resolve_api_key(api_key)
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def synthesize(
        self,
        text: str,
        voice_id: str,
        stability: float = DEFAULT_STABILITY,
        similarity_boost: float = DEFAULT_SIMILARITY_BOOST,
    ) -> bytes:
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {"stability": stability, "similarity_boost": similarity_boost},
        }
        headers = {
            "Content-Type": "application/json",
            "Accept": AUDIO_MIME_TYPE,
            "xi-api-key": self.api_key,
        }
        try:
            response = self.session.post(
                f"{self.base_url}/text-to-speech/{voice_id}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"ElevenLabs API error: {e}") from e

        if not response.ok:
            raise SynthesisError(
                f"ElevenLabs API error. Status: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content


class EdgeSynthesizer:
    """Synthesis through edge-tts.

    edge-tts reads markup literally, so tags are stripped and only the
    visible text is spoken. ``stability`` and ``similarity_boost`` have no
    edge-tts equivalent and are ignored.
    """

    def __init__(self, rate: str = "+0%"):
        self.rate = rate

    async def _collect(self, text: str, voice_id: str) -> bytes:
        communicate = edge_tts.Communicate(text, voice_id, rate=self.rate)
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)

    def synthesize(
        self,
        text: str,
        voice_id: str,
        stability: float = DEFAULT_STABILITY,
        similarity_boost: float = DEFAULT_SIMILARITY_BOOST,
    ) -> bytes:
        spoken = visible_text(text)
        try:
            audio = asyncio.run(self._collect(spoken, voice_id))
        except Exception as e:
            raise SynthesisError(f"edge-tts error: {e}") from e
        # 0-byte output counts as failure
        if not audio:
            raise SynthesisError(f"TTS produced no audio for: {spoken[:50]}...")
        return audio


def silence_bytes(seconds: float) -> bytes:
    """Raw 16-bit mono silence at 44.1 kHz: round(seconds * 44100) * 2 bytes."""
    samples = round(seconds * SILENCE_SAMPLE_RATE)
    return np.zeros(max(samples, 0), dtype=np.int16).tobytes()


def split_segments(transcript: str) -> list[TranscriptSegment]:
    """Split a serialized transcript into per-speaker synthesis segments.

    Blocks are separated by blank lines. ``<speak>`` wrappers are dropped
    and a trailing timed break becomes the segment's ``pause_seconds``.
    """
    segments = []
    for block in _BLOCK_SPLIT_RE.split(transcript):
        block = block.strip()
        if not block:
            continue
        speaker, sep, text = block.partition(":")
        if not sep:
            raise SynthesisError(f"Invalid segment format: {block}")
        speaker = speaker.strip()
        text = _SPEAK_TAG_RE.sub("", text).strip()

        pause = 0.0
        match = _TRAILING_BREAK_RE.search(text)
        if match:
            pause = float(match.group(1))
            if match.group(2) == "ms":
                pause /= 1000
            text = text[:match.start()].strip()

        if not text:
            raise SynthesisError(f"Empty text for speaker: {speaker}")
        segments.append(TranscriptSegment(speaker=speaker, text=text, pause_seconds=pause))
    return segments


def synthesize_transcript(
    transcript: str,
    voice_ids: dict[str, str],
    synthesizer: Synthesizer,
    stability: float = DEFAULT_STABILITY,
    similarity_boost: float = DEFAULT_SIMILARITY_BOOST,
) -> bytes:
    """Synthesize every segment in order and concatenate the audio bytes.

    Silence is spliced after segments that ended in a break. Any failure
    aborts the whole transcript; no partial audio is returned.
    """
    segments = split_segments(transcript)
    for seg in segments:
        if not voice_ids.get(seg.speaker):
            raise SynthesisError(f"No voice ID provided for speaker: {seg.speaker}")

    chunks = []
    total = len(segments)
    for i, seg in enumerate(segments):
        logger.info("Generating segment %d/%d: %s", i + 1, total, seg.speaker)
        chunks.append(synthesizer.synthesize(seg.text, voice_ids[seg.speaker], stability, similarity_boost))
        if seg.pause_seconds > 0:
            chunks.append(silence_bytes(seg.pause_seconds))

    return b"".join(chunks)


async def generate_audio(
    transcript: str,
    voice_ids: dict[str, str],
    synthesizer: Synthesizer,
    stability: float = DEFAULT_STABILITY,
    similarity_boost: float = DEFAULT_SIMILARITY_BOOST,
) -> bytes:
    """Run ``synthesize_transcript`` off the event loop and resolve once with the audio.

    Concurrent calls are not serialized.
    """
    return await asyncio.to_thread(
        synthesize_transcript, transcript, voice_ids, synthesizer, stability, similarity_boost,
    )
