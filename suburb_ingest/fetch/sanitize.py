"""Lenient clean-up of almost-JSON response text.

The upstream regularly emits JavaScript literals (``NaN``, ``Infinity``,
``-Infinity``, ``undefined``) and trailing commas. ``sanitize_json_text`` rewrites
those outside of string literals so that ``json.loads`` has a chance; anything
inside a string literal is copied through untouched.
"""

from __future__ import annotations

NON_JSON_LITERALS = ("-infinity", "infinity", "nan", "undefined")
REPLACEMENT = "null"
CLOSING_BRACKETS = ("}", "]")


def _is_identifier_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char in "_$")


def _match_literal(text: str, index: int) -> int:
    """Length of the standalone non-JSON literal starting at ``index``, or 0."""
    for literal in NON_JSON_LITERALS:
        end = index + len(literal)
        if text[index:end].lower() != literal:
            continue
        before = text[index - 1] if index > 0 else ""
        after = text[end] if end < len(text) else ""
        if (before and _is_identifier_char(before)) or (after and _is_identifier_char(after)):
            return 0
        return len(literal)
    return 0


def _drop_trailing_commas(out: list[str]) -> None:
    """Remove commas from the whitespace/comma run at the end of ``out``.

    The whole run goes, so ``[1,,]`` becomes ``[1]`` rather than ``[1,]``; a
    second pass over the output then finds nothing left to change.
    """
    tail: list[str] = []
    while out and (out[-1] == "," or out[-1].isspace()):
        tail.append(out.pop())
    out.extend(char for char in reversed(tail) if char != ",")


def sanitize_json_text(text: str) -> str:
    if not text:
        return text

    out: list[str] = []
    in_string = False
    escaping = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if in_string:
            out.append(char)
            if escaping:
                escaping = False
            elif char == "\\":
                escaping = True
            elif char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue

        matched = _match_literal(text, i)
        if matched:
            out.append(REPLACEMENT)
            i += matched
            continue

        if char in CLOSING_BRACKETS:
            _drop_trailing_commas(out)

        out.append(char)
        i += 1

    return "".join(out)
