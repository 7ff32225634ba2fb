"""All magic numbers and configuration constants."""

DEFAULT_PAUSE_SECONDS = 1                    # pause appended between utterances on export
SILENCE_SAMPLE_RATE = 44100                  # Hz, 16-bit mono silence spliced between segments
ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1"
ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"
ELEVENLABS_DEFAULT_VOICE_ID = "oESd0nQBbi2O04iJOxNn"  # single-text "say" voice
ELEVENLABS_API_KEY_ENV = "ELEVENLABS_API_KEY"
DEFAULT_STABILITY = 0.65
DEFAULT_SIMILARITY_BOOST = 0.87
REQUEST_TIMEOUT_SECONDS = 60
EXPORT_FILENAME = "transcript.xml"
EXPORT_MIME_TYPE = "text/xml"
AUDIO_FILENAME = "generated_podcast.mp3"
SPEECH_FILENAME = "speech.mp3"
AUDIO_MIME_TYPE = "audio/mpeg"
DEFAULT_THEME = "light"
VERSION = "0.1.0"
