"""Rebuild utterances from previously exported SSML."""

import re
from xml.etree.ElementTree import ParseError
from xml.sax.saxutils import escape, quoteattr

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

from podcast_ssml.errors import MalformedMarkupError
from podcast_ssml.models import Utterance

_SPEAKER_LINE_RE = re.compile(r"^(.*?):\s*(.*)$")


def reparse(text: str) -> list[Utterance]:
    """Parse the "Speaker: ...</speak>" export format back into Utterances.

    Line-based and permissive: markup is carried along untouched and never
    validated. An utterance gets ``add_pause`` when any of its lines
    contains a break tag.
    """
    utterances = []
    speaker = ""
    body = ""
    add_pause = False

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue

        match = _SPEAKER_LINE_RE.match(line)
        if match:
            if speaker and body.strip():
                utterances.append(Utterance(speaker=speaker, text=body.strip(), add_pause=add_pause))
            speaker = match.group(1).strip()
            body = match.group(2).strip()
            add_pause = False
        else:
            body = f"{body} {line}"

        if "<break" in line:
            add_pause = True

    if speaker and body.strip():
        utterances.append(Utterance(speaker=speaker, text=body.strip(), add_pause=add_pause))
    return utterances


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].lower()


def _inner_markup(element) -> str:
    """Content of ``element`` as markup text, without break tags."""
    parts = [escape(element.text or "")]
    for child in element:
        name = _local_name(child.tag)
        if name and name != "break":
            attrs = "".join(f' {_local_name(k)}={quoteattr(v)}' for k, v in child.attrib.items())
            parts.append(f"<{name}{attrs}>{_inner_markup(child)}</{name}>")
        parts.append(escape(child.tail or ""))
    return "".join(parts)


def reparse_document(xml_text: str) -> list[Utterance]:
    """Parse a structured ``<speak><p><s>Speaker: text</s><break/></p></speak>`` document.

    Raises MalformedMarkupError when the document is not well-formed XML
    or has no ``<speak>`` root.
    """
    try:
        root = DefusedET.fromstring(xml_text)
    except (ParseError, DefusedXmlException) as e:
        raise MalformedMarkupError(f"Invalid XML format: {e}") from e
    if _local_name(root.tag) != "speak":
        raise MalformedMarkupError("Missing <speak> root element")

    paragraphs = [el for el in root.iter() if _local_name(el.tag) == "p"] or [root]
    utterances = []
    for i, paragraph in enumerate(paragraphs):
        for sentence in paragraph.iter():
            if _local_name(sentence.tag) != "s":
                continue
            content = " ".join(_inner_markup(sentence).split())
            speaker, sep, rest = content.partition(":")
            if sep and speaker.strip():
                utterances.append(Utterance(speaker=speaker.strip(), text=rest.strip(), add_pause=False))
            else:
                previous = utterances[-1].speaker if utterances else f"Speaker {i + 1}"
                utterances.append(Utterance(speaker=previous, text=content.strip(), add_pause=False))

        if utterances and any(_local_name(child.tag) == "break" for child in paragraph):
            utterances[-1].add_pause = True

    return [u for u in utterances if u.text]
