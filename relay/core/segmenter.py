"""Segmenter: split text into display units. Concatenating the units gives back the input."""

from __future__ import annotations

# Closing punctuation stays glued to the word before it.
PUNCTUATION = frozenset(".,!?:;")


def is_delimiter(char: str) -> bool:
    return char in PUNCTUATION or char.isspace()


def segment(text: str) -> list[str]:
    """Split text into units at whitespace and punctuation.

    A delimiter closes the current unit and is appended to it; a delimiter with
    nothing accumulated becomes a unit on its own. Used on each upstream
    fragment independently and on the full text for playback.
    """
    units: list[str] = []
    current: list[str] = []
    for char in text:
        if is_delimiter(char):
            current.append(char)
            units.append("".join(current))
            current = []
        else:
            current.append(char)
    if current:
        units.append("".join(current))
    return units
