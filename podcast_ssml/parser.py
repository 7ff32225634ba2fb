"""Parse plain-text transcripts into speaker utterances."""

from podcast_ssml.models import Utterance


def _split_speaker_line(line: str) -> tuple[str, str] | None:
    """Split "Speaker: text" at the first colon, or None if there is no colon."""
    speaker, sep, text = line.partition(":")
    if not sep:
        return None
    return speaker.strip(), text.strip()


def parse_transcript(text: str) -> list[Utterance]:
    """Parse a plain transcript into a list of Utterances.

    A line with a colon starts a new speaker turn; lines without one are
    joined onto the current turn with a space. A blank line closes the
    turn once it has both a speaker and some text. Lines that appear
    before any speaker are dropped.
    """
    utterances = []
    speaker = ""
    body = ""

    def flush():
        if speaker and body:
            utterances.append(Utterance(speaker=speaker, text=body.strip(), add_pause=True))
            return True
        return False

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            if flush():
                speaker, body = "", ""
            continue

        split = _split_speaker_line(line)
        if split is not None:
            flush()
            speaker, body = split
        elif speaker:
            body = f"{body} {line}" if body else line

    flush()
    return utterances
