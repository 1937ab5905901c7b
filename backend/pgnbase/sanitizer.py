"""Normalize raw PGN text into movetext a standard PGN parser accepts.

Handles semicolon comments, nested or unbalanced braces, vendor annotation
tags such as ``[%clk 0:03:00]`` and irregular whitespace. Nothing in here
raises on malformed input; the parser that consumes the output decides whether
the game is valid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from .headers import is_header_line

VENDOR_TAG_RE = re.compile(r"\[%[^\]]*\]")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class SanitizedPgn:
    header_lines: List[str]
    movetext: str
    comments: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        if not self.header_lines:
            return self.movetext
        return "\n".join(self.header_lines) + "\n\n" + self.movetext


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_header_block(text: str) -> Tuple[List[str], List[str]]:
    """Split text into header lines and movetext lines.

    Headers end at the first line that is not a tag pair; from then on every
    line is movetext, so only the first game of a multi-game blob keeps its
    headers here.
    """
    header_lines: List[str] = []
    movetext_lines: List[str] = []
    in_headers = True
    for line in normalize_newlines(text).lstrip("\ufeff").split("\n"):
        if in_headers:
            if is_header_line(line):
                header_lines.append(line.strip())
                continue
            if not line.strip() and not header_lines:
                continue
            in_headers = False
        movetext_lines.append(line)
    return header_lines, movetext_lines


def clean_comment(text: str) -> str:
    """Strip vendor tags and braces, collapse whitespace inside a comment."""
    text = VENDOR_TAG_RE.sub(" ", text).replace("{", " ").replace("}", " ")
    return WHITESPACE_RE.sub(" ", text).strip()


def _scan_movetext(movetext: str) -> Tuple[str, List[str]]:
    out: List[str] = []
    comments: List[str] = []
    buffer: List[str] = []
    depth = 0
    in_line_comment = False

    def emit() -> None:
        cleaned = clean_comment("".join(buffer))
        buffer.clear()
        if cleaned:
            comments.append(cleaned)
            out.append(f" {{{cleaned}}} ")
        else:
            out.append(" ")

    for char in movetext:
        if in_line_comment:
            if char == "\n":
                in_line_comment = False
                emit()
            else:
                buffer.append(char)
            continue
        if depth:
            if char == "{":
                depth += 1
                buffer.append(" ")
            elif char == "}":
                depth -= 1
                if depth:
                    buffer.append(" ")
                else:
                    emit()
            else:
                buffer.append(char)
            continue
        if char == "{":
            depth = 1
        elif char == ";":
            in_line_comment = True
        else:
            # a stray "}" at depth 0 stays as literal text
            out.append(char)

    if depth or in_line_comment:
        emit()
    return WHITESPACE_RE.sub(" ", "".join(out)).strip(), comments


def sanitize_pgn(text: str) -> SanitizedPgn:
    header_lines, movetext_lines = split_header_block(text)
    # "%" opening a line escapes the whole line
    movetext_lines = [line for line in movetext_lines if not line.lstrip().startswith("%")]
    movetext, comments = _scan_movetext("\n".join(movetext_lines))
    # never start an escape line
    movetext = movetext.lstrip("%").lstrip()
    return SanitizedPgn(header_lines=header_lines, movetext=movetext, comments=comments)
