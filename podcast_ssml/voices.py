"""Voice directories and speaker-to-voice assignment."""

import asyncio
import logging

import edge_tts
import requests

from podcast_ssml.constants import ELEVENLABS_API_URL, REQUEST_TIMEOUT_SECONDS
from podcast_ssml.errors import SynthesisError
from podcast_ssml.models import Utterance
from podcast_ssml.tts import resolve_api_key

logger = logging.getLogger(__name__)

# Hardcoded English voice pool (avoids network call at startup)
VOICE_POOL = [
    "en-US-AriaNeural",
    "en-US-DavisNeural",
    "en-US-TonyNeural",
    "en-US-JennyNeural",
    "en-US-SaraNeural",
    "en-GB-SoniaNeural",
    "en-GB-ThomasNeural",
    "en-AU-NatashaNeural",
    "en-AU-WilliamNeural",
    "en-CA-ClaraNeural",
    "en-CA-LiamNeural",
    "en-IN-NeerjaNeural",
    "en-IN-PrabhatNeural",
    "en-IE-EmilyNeural",
]


class StaticVoiceDirectory:
    """Fixed name → voice id mapping; defaults to the built-in edge-tts pool."""

    def __init__(self, voices: dict[str, str] | None = None):
        self._voices = dict(voices) if voices is not None else {v: v for v in VOICE_POOL}

    def list_voices(self) -> dict[str, str]:
        return dict(self._voices)


class EdgeVoiceDirectory:
    """Voices from the edge-tts catalog, optionally limited to a locale prefix."""

    def __init__(self, locale: str | None = "en-"):
        self.locale = locale

    def list_voices(self) -> dict[str, str]:
        catalog = asyncio.run(edge_tts.list_voices())
        voices = {}
        for entry in catalog:
            short_name = entry["ShortName"]
            if self.locale and not entry.get("Locale", short_name).startswith(self.locale):
                continue
            voices[entry.get("FriendlyName") or short_name] = short_name
        logger.info("Loaded %d edge-tts voices", len(voices))
        return voices


class ElevenLabsVoiceDirectory:
    """Voices available to an ElevenLabs account (GET /v1/voices)."""

    def __init__(self, api_key: str | None = None, base_url: str = ELEVENLABS_API_URL,
                 session: requests.Session | None = None):
        self.api_key = resolve_api_key(api_key)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def list_voices(self) -> dict[str, str]:
        try:
            response = self.session.get(
                f"{self.base_url}/voices",
                headers={"xi-api-key": self.api_key},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"Failed to fetch voice IDs from ElevenLabs: {e}") from e
        if not response.ok:
            raise SynthesisError(
                f"Failed to fetch voice IDs from ElevenLabs. Status: {response.status_code}",
                status_code=response.status_code,
            )
        voices = {v["name"]: v["voice_id"] for v in response.json().get("voices", [])}
        logger.info("Loaded %d ElevenLabs voices", len(voices))
        return voices


def filter_voices(voices: dict[str, str], substring: str | None) -> dict[str, str]:
    """Entries whose name or id contains ``substring`` (case-insensitive)."""
    if not substring:
        return dict(voices)
    needle = substring.lower()
    return {name: vid for name, vid in voices.items() if needle in name.lower() or needle in vid.lower()}


def speakers_in_order(utterances: list[Utterance]) -> list[str]:
    """Distinct speakers in order of first appearance."""
    return list(dict.fromkeys(u.speaker for u in utterances))


def assign_speaker_voices(utterances: list[Utterance], voices: dict[str, str]) -> dict[str, str]:
    """Map each distinct speaker to a voice id.

    The first speaker gets the directory's first voice, the second the
    second, and so on. Speakers beyond the directory size stay unassigned
    and are logged.
    """
    voice_ids = list(voices.values())
    mapping = {}
    for index, speaker in enumerate(speakers_in_order(utterances)):
        if index < len(voice_ids):
            mapping[speaker] = voice_ids[index]
            logger.info("Assigned voice %s to %s", voice_ids[index], speaker)
        else:
            logger.warning("No voice available for speaker: %s", speaker)
    return mapping
