"""Flat SAN token extraction from PGN text, without replaying the game."""

from __future__ import annotations

import re
from typing import List

from .headers import is_header_line
from .sanitizer import normalize_newlines

BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")
MOVE_NUMBER_RE = re.compile(r"\d+\.(?:\.\.)?")
NAG_RE = re.compile(r"\$\d+")
ANNOTATION_SUFFIX_RE = re.compile(r"[!?]+$")
RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "½-½", "*"}


def _strip_headers(pgn: str) -> str:
    parts = BLANK_LINE_RE.split(pgn, maxsplit=1)
    if len(parts) > 1:
        return parts[1]
    lines = pgn.split("\n")
    while lines and is_header_line(lines[0]):
        lines.pop(0)
    return "\n".join(lines)


def _remove_enclosed(text: str, opener: str, closer: str) -> str:
    kept: List[str] = []
    depth = 0
    for char in text:
        if char == opener:
            depth += 1
        elif char == closer:
            depth = max(depth - 1, 0)
        elif not depth:
            kept.append(char)
    return "".join(kept)


def _remove_comments(text: str) -> str:
    """Drop brace and semicolon comments; braces inside a ";" comment do not nest."""
    kept: List[str] = []
    depth = 0
    in_line_comment = False
    for char in text:
        if in_line_comment:
            if char == "\n":
                in_line_comment = False
                kept.append(char)
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif depth:
            continue
        elif char == ";":
            in_line_comment = True
        else:
            kept.append(char)
    return "".join(kept)


def extract_moves(pgn: str) -> List[str]:
    """Return the main-line SAN tokens of a PGN game.

    Comments and variations are discarded, as are move numbers, NAGs,
    results and ``!``/``?`` suffixes.
    """
    movetext = _strip_headers(normalize_newlines(pgn).strip())
    movetext = _remove_comments(movetext)
    movetext = _remove_enclosed(movetext, "(", ")")
    movetext = MOVE_NUMBER_RE.sub(" ", movetext)
    movetext = NAG_RE.sub(" ", movetext)

    tokens: List[str] = []
    for token in movetext.split():
        if token in RESULT_TOKENS:
            continue
        token = ANNOTATION_SUFFIX_RE.sub("", token)
        if token:
            tokens.append(token)
    return tokens
