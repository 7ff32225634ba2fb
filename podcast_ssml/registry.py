"""Supported SSML tags and the value space of their attributes."""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from podcast_ssml.errors import InvalidAttributeError

SELECT = "select"
SELECT_OR_SLIDER = "select-or-slider"
TEXT = "text"
NUMBER = "number"

# Free numeric text accepted for slider attributes: "+20%", "120%", "-3dB", "50Hz", "2st"
_RELATIVE_VALUE_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?\s*(?:%|hz|st|db)?$", re.IGNORECASE)
# Durations accepted for number attributes: "500", "500ms", "1.5s"
_DURATION_RE = re.compile(r"^\d+(?:\.\d+)?(?:ms|s)?$")


@dataclass(frozen=True)
class AttributeSpec:
    kind: str
    choices: tuple[str, ...] = ()
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit: str = ""
    label_to_number: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class TagDefinition:
    name: str
    attributes: Mapping[str, AttributeSpec] = field(default_factory=dict)


def _slider(labels: tuple[tuple[str, int], ...], lo: int, hi: int, step: int, unit: str) -> AttributeSpec:
    return AttributeSpec(
        kind=SELECT_OR_SLIDER,
        choices=tuple(label for label, _ in labels),
        min=lo,
        max=hi,
        step=step,
        unit=unit,
        label_to_number=labels,
    )


_TAGS = (
    TagDefinition("prosody", {
        "rate": _slider(
            (("x-slow", 50), ("slow", 75), ("medium", 100), ("fast", 150), ("x-fast", 200)),
            50, 200, 10, "%",
        ),
        "pitch": _slider(
            (("x-low", -100), ("low", -50), ("medium", 0), ("high", 50), ("x-high", 100)),
            -100, 100, 10, "Hz",
        ),
        "volume": _slider(
            (("silent", -6), ("x-soft", -3), ("soft", -1), ("medium", 0), ("loud", 3), ("x-loud", 6)),
            -6, 6, 1, "dB",
        ),
    }),
    TagDefinition("emphasis", {
        "level": AttributeSpec(SELECT, choices=("strong", "moderate", "reduced")),
    }),
    TagDefinition("break", {
        "time": AttributeSpec(NUMBER, unit="ms"),
        "strength": AttributeSpec(
            SELECT, choices=("none", "x-weak", "weak", "medium", "strong", "x-strong"),
        ),
    }),
    TagDefinition("say-as", {
        "interpret-as": AttributeSpec(SELECT, choices=(
            "characters", "spell-out", "cardinal", "ordinal", "fraction",
            "unit", "date", "time", "telephone", "address",
        )),
    }),
    TagDefinition("sub", {
        "alias": AttributeSpec(TEXT),
    }),
    TagDefinition("phoneme", {
        "alphabet": AttributeSpec(SELECT, choices=("ipa", "x-sampa")),
        "ph": AttributeSpec(TEXT),
    }),
)


class TagRegistry:
    """Immutable lookup table of tag definitions, keyed case-insensitively."""

    def __init__(self, definitions):
        self._tags = MappingProxyType(
            {d.name.lower(): TagDefinition(d.name, MappingProxyType(dict(d.attributes)))
             for d in definitions}
        )

    def lookup(self, name: str) -> TagDefinition | None:
        return self._tags.get(name.lower())

    def names(self) -> list[str]:
        return [d.name for d in self._tags.values()]

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._tags

    def __iter__(self):
        return iter(self._tags.values())


DEFAULT_REGISTRY = TagRegistry(_TAGS)


def nearest_label(spec: AttributeSpec, value: float) -> str:
    """Return the label whose mapped number is closest to ``value``.

    On equal distance the label enumerated first wins (rate 125 → "medium",
    not "fast").
    """
    if not spec.label_to_number:
        raise InvalidAttributeError("attribute has no discrete labels to resolve against")
    best_label, best_number = spec.label_to_number[0]
    for label, number in spec.label_to_number[1:]:
        if abs(number - value) < abs(best_number - value):
            best_label, best_number = label, number
    return best_label


def label_number(spec: AttributeSpec, label: str) -> int | None:
    """Representative number for a discrete label, or None."""
    for candidate, number in spec.label_to_number:
        if candidate == label:
            return number
    return None


def format_number(value: float) -> str:
    """Fixed-point text for ``value``: no exponent, no trailing zeros (1.0 -> "1", 1e-05 -> "0.00001")."""
    return format(Decimal(str(value)).normalize(), "f")


def _resolve_value(tag: str, attr: str, spec: AttributeSpec, value) -> str:
    if isinstance(value, bool):
        raise InvalidAttributeError(f"{tag}.{attr}: boolean is not a valid value")

    if spec.kind == SELECT:
        value = str(value).strip()
        if value not in spec.choices:
            raise InvalidAttributeError(
                f"{tag}.{attr}: {value!r} is not one of {', '.join(spec.choices)}"
            )
        return value

    if spec.kind == SELECT_OR_SLIDER:
        if isinstance(value, (int, float)):
            return nearest_label(spec, value)
        value = str(value).strip()
        if value in spec.choices or _RELATIVE_VALUE_RE.match(value):
            return value
        raise InvalidAttributeError(
            f"{tag}.{attr}: {value!r} is neither a preset ({', '.join(spec.choices)}) "
            f"nor a numeric value"
        )

    if spec.kind == NUMBER:
        if isinstance(value, (int, float)):
            if value < 0:
                raise InvalidAttributeError(f"{tag}.{attr}: must not be negative")
            return f"{format_number(value)}{spec.unit}"
        value = str(value).strip()
        if not _DURATION_RE.match(value):
            raise InvalidAttributeError(f"{tag}.{attr}: {value!r} is not a duration")
        return value

    return str(value)


def resolve_attributes(definition: TagDefinition, attributes: Mapping | None) -> dict[str, str]:
    """Validate caller-supplied attributes and convert them to SSML strings.

    Empty values are dropped. Numbers given for slider attributes are
    snapped to the nearest preset label.
    """
    resolved = {}
    for attr, value in (attributes or {}).items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        spec = definition.attributes.get(attr)
        if spec is None:
            raise InvalidAttributeError(
                f"{definition.name} has no attribute {attr!r} "
                f"(expected one of: {', '.join(definition.attributes) or 'none'})"
            )
        resolved[attr] = _resolve_value(definition.name, attr, spec, value)
    return resolved
