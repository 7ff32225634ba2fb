"""Write exported SSML and generated audio to disk."""

import os

from podcast_ssml.constants import AUDIO_FILENAME, EXPORT_FILENAME


def export_ssml(ssml: str, output_dir: str, filename: str = EXPORT_FILENAME) -> str:
    """Write the serialized transcript verbatim (UTF-8, no newline translation).

    Returns the path to the written file.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(ssml)
    return path


def export_audio(audio: bytes, output_dir: str, filename: str = AUDIO_FILENAME) -> str:
    """Write generated audio bytes. Returns the path to the written file."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    with open(path, "wb") as f:
        f.write(audio)
    return path
