"""CLI interface with subcommand routing."""

import argparse
import asyncio
import logging
import os
import sys

from podcast_ssml.annotator import (
    apply_tag,
    find_tag,
    remove_tags,
    remove_utterance,
    rename_speaker,
    toggle_pause,
)
from podcast_ssml.constants import (
    DEFAULT_PAUSE_SECONDS,
    DEFAULT_SIMILARITY_BOOST,
    DEFAULT_STABILITY,
    DEFAULT_THEME,
    ELEVENLABS_DEFAULT_VOICE_ID,
    EXPORT_MIME_TYPE,
    SPEECH_FILENAME,
    VERSION,
)
from podcast_ssml.errors import SSMLError
from podcast_ssml.exporter import export_audio, export_ssml
from podcast_ssml.highlight import TAG_COLORS, color_scheme, project
from podcast_ssml.models import Utterance
from podcast_ssml.registry import DEFAULT_REGISTRY, SELECT_OR_SLIDER
from podcast_ssml.serializer import serialize
from podcast_ssml.sources import SOURCES, source_for
from podcast_ssml.tts import EdgeSynthesizer, ElevenLabsSynthesizer, generate_audio
from podcast_ssml.voices import (
    EdgeVoiceDirectory,
    ElevenLabsVoiceDirectory,
    VOICE_POOL,
    StaticVoiceDirectory,
    assign_speaker_voices,
    filter_voices,
)

PROVIDERS = ("elevenlabs", "edge")
DIRECTORIES = ("static", "edge", "elevenlabs")


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    raise SystemExit(1)


def _read_file(file_path: str) -> str:
    if not os.path.exists(file_path):
        _fail(f"File not found: {file_path}")
    with open(file_path, encoding="utf-8") as f:
        return f.read()


def _load(file_path: str, kind: str) -> list[Utterance]:
    """Read ``file_path`` and parse it with the ``kind`` importer."""
    utterances = source_for(kind).parse(_read_file(file_path))
    if not utterances:
        _fail(f"Could not parse any utterances from: {file_path}")
    return utterances


def _get_utterance(utterances: list[Utterance], index: int) -> Utterance:
    if not 0 <= index < len(utterances):
        _fail(f"No utterance {index} (transcript has {len(utterances)})")
    return utterances[index]


def _emit_ssml(ssml: str, output_dir: str | None) -> None:
    """Print the SSML, or write it as transcript.xml into ``output_dir``."""
    if output_dir:
        path = export_ssml(ssml, output_dir)
        print(f"Wrote {path} ({EXPORT_MIME_TYPE})")
    else:
        print(ssml)


def _parse_attributes(pairs: list[str], tag: str, snap: bool) -> dict:
    """Turn ["rate=fast", "pitch=+10%"] into a dict.

    With ``snap``, numeric values for preset/slider attributes become
    numbers so the registry resolves them to the nearest preset.
    """
    definition = DEFAULT_REGISTRY.lookup(tag)
    attributes = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            _fail(f"Attributes must look like name=value, got: {pair}")
        spec = definition.attributes.get(name) if definition else None
        if snap and spec is not None and spec.kind == SELECT_OR_SLIDER:
            try:
                attributes[name] = float(value)
                continue
            except ValueError:
                pass
        attributes[name] = value
    return attributes


def cmd_convert(args):
    """Convert a plain transcript into SSML."""
    utterances = _load(args.file, "transcript")
    _emit_ssml(serialize(utterances, args.pause), args.output)


def cmd_show(args):
    """List the utterances of a transcript or SSML file."""
    utterances = _load(args.file, args.format)
    for i, u in enumerate(utterances):
        marker = "[pause]" if u.add_pause else "[-----]"
        print(f"  {i:3d} {marker} {u.speaker}: {u.text}")


def cmd_annotate(args):
    """Add, update or remove SSML tags on one utterance of an exported SSML file."""
    if args.tag not in DEFAULT_REGISTRY:
        _fail(f"Unknown SSML tag: {args.tag} (supported: {', '.join(DEFAULT_REGISTRY.names())})")
    utterances = _load(args.file, "ssml")
    utterance = _get_utterance(utterances, args.index)

    if args.remove:
        count = remove_tags(utterance, {args.tag})
        print(f"Removed {count} <{args.tag}> tag(s) from utterance {args.index}", file=sys.stderr)
    else:
        if not args.select:
            _fail("--select is required when adding a tag")
        attributes = _parse_attributes(args.attr, args.tag, args.snap)
        apply_tag(utterance, args.select, args.tag, attributes, start=args.start)
        current = find_tag(utterance, args.tag, args.select, args.start)
        print(f"<{args.tag}> on {args.select!r}: {current}", file=sys.stderr)

    _emit_ssml(serialize(utterances, args.pause), args.output)


def cmd_edit(args):
    """Rename a speaker, toggle its pause, or delete the block."""
    utterances = _load(args.file, "ssml")
    utterance = _get_utterance(utterances, args.index)

    if args.delete:
        removed = remove_utterance(utterances, args.index)
        print(f"Removed block {args.index} ({removed.speaker})", file=sys.stderr)
    else:
        if args.rename is not None:
            rename_speaker(utterance, args.rename)
        if args.toggle_pause:
            toggle_pause(utterance)

    _emit_ssml(serialize(utterances, args.pause), args.output)


def cmd_highlight(args):
    """Print utterances with SSML spans decorated for display."""
    scheme = color_scheme(args.theme)
    for u in _load(args.file, args.format):
        print(f"{u.speaker}: {project(u.text, scheme)}")


def cmd_tags(args):
    """List supported SSML tags and their attributes."""
    print("Supported tags:")
    for definition in DEFAULT_REGISTRY:
        print(f"  <{definition.name}>")
        for attr, spec in definition.attributes.items():
            detail = spec.kind
            if spec.choices:
                detail += f" [{', '.join(spec.choices)}]"
            if spec.min is not None:
                detail += f" {spec.min:g}..{spec.max:g}{spec.unit}"
            elif spec.unit:
                detail += f" ({spec.unit})"
            print(f"      {attr}: {detail}")


def _directory(name: str, api_key: str | None):
    if name == "elevenlabs":
        return ElevenLabsVoiceDirectory(api_key=api_key)
    if name == "edge":
        return EdgeVoiceDirectory()
    return StaticVoiceDirectory()


def cmd_voices(args):
    """List available voices."""
    voices = filter_voices(_directory(args.provider, args.api_key).list_voices(), args.filter)
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for name, voice_id in voices.items():
        print(f"  {name}: {voice_id}" if name != voice_id else f"  {voice_id}")


def cmd_generate(args):
    """Synthesize a transcript into one audio file."""
    utterances = _load(args.file, args.format)

    if args.provider == "elevenlabs":
        synthesizer = ElevenLabsSynthesizer(api_key=args.api_key)
        directory = ElevenLabsVoiceDirectory(api_key=args.api_key)
    else:
        synthesizer = EdgeSynthesizer()
        directory = StaticVoiceDirectory()

    voice_ids = assign_speaker_voices(utterances, directory.list_voices())
    transcript = serialize(utterances, args.pause)

    print(f"Generating audio for {len(utterances)} utterance(s)...")
    audio = asyncio.run(generate_audio(
        transcript, voice_ids, synthesizer,
        stability=args.stability, similarity_boost=args.similarity_boost,
    ))
    path = export_audio(audio, args.output)
    print(f"Wrote {path} ({len(audio)} bytes)")


def cmd_say(args):
    """Synthesize one piece of text with a single voice."""
    text = args.text.strip()
    if not text:
        _fail("Text is required")

    if args.provider == "elevenlabs":
        synthesizer = ElevenLabsSynthesizer(api_key=args.api_key)
        voice_id = args.voice or ELEVENLABS_DEFAULT_VOICE_ID
    else:
        synthesizer = EdgeSynthesizer()
        voice_id = args.voice or VOICE_POOL[0]

    audio = synthesizer.synthesize(text, voice_id, args.stability, args.similarity_boost)
    path = export_audio(audio, args.output, filename=args.filename)
    print(f"Wrote {path} ({len(audio)} bytes)")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="podcast-ssml",
        description="Podcast SSML: turn speaker transcripts into SSML and synthesized audio",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    formats = list(SOURCES)

    def add_pause_option(p):
        p.add_argument("--pause", type=float, default=DEFAULT_PAUSE_SECONDS,
                       help="Pause in seconds between utterances (default: %(default)s)")

    def add_output_option(p):
        p.add_argument("-o", "--output", help="Directory to write transcript.xml into (default: stdout)")

    # convert
    convert_parser = subparsers.add_parser("convert", help="Convert a plain transcript to SSML")
    convert_parser.add_argument("file", help="Path to the transcript text file")
    add_pause_option(convert_parser)
    add_output_option(convert_parser)
    convert_parser.set_defaults(func=cmd_convert)

    # show
    show_parser = subparsers.add_parser("show", help="List utterances in a file")
    show_parser.add_argument("file", help="Transcript or SSML file")
    show_parser.add_argument("--format", choices=formats, default="ssml")
    show_parser.set_defaults(func=cmd_show)

    # annotate
    annotate_parser = subparsers.add_parser("annotate", help="Add, update or remove an SSML tag")
    annotate_parser.add_argument("file", help="Exported SSML file")
    annotate_parser.add_argument("index", type=int, help="Utterance index (see 'show')")
    annotate_parser.add_argument("tag", help="Tag name, e.g. prosody")
    annotate_parser.add_argument("--select", help="Visible text to wrap")
    annotate_parser.add_argument("--start", type=int, help="Offset of the selection in the visible text")
    annotate_parser.add_argument("--attr", action="append", help="Attribute name=value (repeatable)")
    annotate_parser.add_argument("--snap", action="store_true",
                                 help="Snap numeric slider values to the nearest preset")
    annotate_parser.add_argument("--remove", action="store_true", help="Remove every span of this tag")
    add_pause_option(annotate_parser)
    add_output_option(annotate_parser)
    annotate_parser.set_defaults(func=cmd_annotate)

    # edit
    edit_parser = subparsers.add_parser("edit", help="Rename, toggle pause or delete a block")
    edit_parser.add_argument("file", help="Exported SSML file")
    edit_parser.add_argument("index", type=int, help="Utterance index (see 'show')")
    edit_parser.add_argument("--rename", help="New speaker name")
    edit_parser.add_argument("--toggle-pause", action="store_true", help="Flip the trailing pause")
    edit_parser.add_argument("--delete", action="store_true", help="Remove the block")
    add_pause_option(edit_parser)
    add_output_option(edit_parser)
    edit_parser.set_defaults(func=cmd_edit)

    # highlight
    highlight_parser = subparsers.add_parser("highlight", help="Show SSML spans decorated for display")
    highlight_parser.add_argument("file", help="Transcript or SSML file")
    highlight_parser.add_argument("--format", choices=formats, default="ssml")
    highlight_parser.add_argument("--theme", choices=list(TAG_COLORS), default=DEFAULT_THEME)
    highlight_parser.set_defaults(func=cmd_highlight)

    # tags
    tags_parser = subparsers.add_parser("tags", help="List supported SSML tags")
    tags_parser.set_defaults(func=cmd_tags)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--provider", choices=DIRECTORIES, default="static")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.add_argument("--api-key", help="ElevenLabs API key (default: $ELEVENLABS_API_KEY)")
    voices_parser.set_defaults(func=cmd_voices)

    # generate
    generate_parser = subparsers.add_parser("generate", help="Synthesize audio for a transcript")
    generate_parser.add_argument("file", help="Transcript or SSML file")
    generate_parser.add_argument("--format", choices=formats, default="ssml")
    generate_parser.add_argument("--provider", choices=PROVIDERS, default="elevenlabs")
    generate_parser.add_argument("--api-key", help="ElevenLabs API key (default: $ELEVENLABS_API_KEY)")
    generate_parser.add_argument("--stability", type=float, default=DEFAULT_STABILITY)
    generate_parser.add_argument("--similarity-boost", type=float, default=DEFAULT_SIMILARITY_BOOST)
    generate_parser.add_argument("-o", "--output", default=".", help="Directory for the audio file")
    add_pause_option(generate_parser)
    generate_parser.set_defaults(func=cmd_generate)

    # say
    say_parser = subparsers.add_parser("say", help="Synthesize a single text with one voice")
    say_parser.add_argument("text", help="Text (may contain SSML tags)")
    say_parser.add_argument("--provider", choices=PROVIDERS, default="elevenlabs")
    say_parser.add_argument("--voice", help="Voice id (default: provider's default voice)")
    say_parser.add_argument("--api-key", help="ElevenLabs API key (default: $ELEVENLABS_API_KEY)")
    say_parser.add_argument("--stability", type=float, default=DEFAULT_STABILITY)
    say_parser.add_argument("--similarity-boost", type=float, default=DEFAULT_SIMILARITY_BOOST)
    say_parser.add_argument("-o", "--output", default=".", help="Directory for the audio file")
    say_parser.add_argument("--filename", default=SPEECH_FILENAME)
    say_parser.set_defaults(func=cmd_say)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args)
    except SSMLError as e:
        _fail(str(e))
