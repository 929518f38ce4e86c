"""Typographic helpers for authored story text."""

from __future__ import annotations

from typing import Iterable

FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3
_U64 = (1 << 64) - 1


def linguate(text: str) -> str:
    """Apply typographic substitutions to ``text``.

    ``--`` becomes an em-dash, ``...`` an ellipsis, straight double quotes
    alternate between opening and closing curly quotes and every straight
    single quote becomes a right single quote.
    """

    result = text.replace("--", "—").replace("...", "…")

    characters: list[str] = []
    in_double = False
    for character in result:
        if character == '"':
            characters.append("”" if in_double else "“")
            in_double = not in_double
        elif character == "'":
            characters.append("’")
        else:
            characters.append(character)
    return "".join(characters)


def trim_lines(text: str) -> str:
    """Strip every line and drop blank lines around the content."""

    lines = [line.strip() for line in text.splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def split_braced(text: str) -> list[str]:
    """Split ``text`` on ``[[`` ... ``]]`` markers.

    The result alternates plain and braced segments, starting with a plain
    one (which may be empty), so braced segments sit at odd indices.
    """

    result: list[str] = []
    buffer: list[str] = []
    inside = False
    index = 0
    while index < len(text):
        pair = text[index : index + 2]
        if not inside and pair == "[[":
            result.append("".join(buffer))
            buffer = []
            inside = True
            index += 2
        elif inside and pair == "]]":
            result.append("".join(buffer))
            buffer = []
            inside = False
            index += 2
        else:
            buffer.append(text[index])
            index += 1

    if buffer:
        result.append("".join(buffer))
    return result


def fnv1a_64(text: str) -> int:
    """Return the 64-bit FNV-1a hash of the UTF-8 encoding of ``text``."""

    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & _U64
    return value


def find_hash_match(candidates: Iterable[str], target: int) -> str | None:
    """Return the candidate whose :func:`fnv1a_64` hash equals ``target``."""

    for candidate in candidates:
        if fnv1a_64(candidate) == target:
            return candidate
    return None


__all__ = [
    "linguate",
    "trim_lines",
    "split_braced",
    "fnv1a_64",
    "find_hash_match",
]
