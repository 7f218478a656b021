#!/usr/bin/env python3
"""Typed text syntax ⟶ tokens ⟶ :class:`Message`.

A line such as::

    /synth/freq 440.5 "lead" 3 :quit

is split into whitespace, address, float, int, string and command tokens.
The rules are tried in priority order at every position, so ``3f`` and
``3.`` are floats while ``3`` is an int.  Strings use JSON escapes.
"""

from __future__ import annotations
import json                                   # Unescapes JSON-style string literals
import re
from typing import List, NamedTuple, Optional, Union

from .errors import LexError
from .protocol import Argument, Message

__all__ = ["Token", "Command", "tokenize", "assemble", "parse_line"]

# Token type names
WS = "ws"
ADDRESS = "address"
FLOAT = "float"
INT = "int"
STRING = "string"
COMMAND = "command"

# (name, pattern) in priority order; the first alternative that matches wins
_RULES = [
    (WS,      r"[ ]+"),
    (ADDRESS, r"(?:/[a-z0-9]+)+"),
    (FLOAT,   r"[+-]?(?:\d+\.\d*f?|\.\d+f?|\d+f)"),
    (INT,     r"[+-]?\d+"),
    (STRING,  r'"(?:\\["bfnrt/\\]|\\u[a-fA-F0-9]{4}|[^"\\])*"'),
    (COMMAND, r":\w+"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _RULES),
                       re.ASCII)               # \d and \w mean [0-9] and [A-Za-z0-9_]


class Token(NamedTuple):
    type: str
    value: object     # Parsed value (int, float, str); raw text for ws
    text: str         # Exact source text
    offset: int       # Column where the token starts


class Command(NamedTuple):
    """A shell directive such as ``:quit``; never sent on the wire."""

    name: str


def _value(kind: str, text: str) -> object:
    if kind == FLOAT:
        return float(text.rstrip("f"))
    if kind == INT:
        return int(text)
    if kind == STRING:
        # The pattern only admits JSON escapes, so json can do the unescaping
        return json.loads(text, strict=False)
    if kind == COMMAND:
        return text[1:]
    return text


def tokenize(line: str) -> List[Token]:
    """Split *line* into tokens.

    Raises:
        LexError: no rule matches at some position; the error names the
            first character that could not be consumed.
    """
    tokens: List[Token] = []
    pos = 0
    while pos < len(line):
        match = _TOKEN_RE.match(line, pos)
        if match is None:
            char = line[pos]
            raise LexError(f"Didn't recognize character {char!r} at column {pos}", char, pos)
        kind = match.lastgroup
        text = match.group()
        tokens.append(Token(kind, _value(kind, text), text, pos))
        pos = match.end()
    return tokens


def assemble(tokens: List[Token]) -> Optional[Union[Message, Command]]:
    """Build a Message (or Command) from a token list.

    Whitespace is dropped.  The first token must be an address or a command.
    Later address tokens are sent as plain strings.  Returns ``None`` for a
    blank line.
    """
    significant = [t for t in tokens if t.type != WS]
    if not significant:
        return None

    head, rest = significant[0], significant[1:]
    if head.type == COMMAND:
        if rest:
            extra = rest[0]
            raise LexError(f"Command :{head.value} takes no arguments", extra.text[:1], extra.offset)
        return Command(head.value)
    if head.type != ADDRESS:
        raise LexError(f"Unrecognized address {head.text!r}", head.text[:1], head.offset)

    args: List[Argument] = []
    for token in rest:
        if token.type == COMMAND:
            raise LexError(
                f"Command {token.text} is only allowed at the start of a line",
                token.text[:1], token.offset,
            )
        args.append(token.value)
    return Message.build(head.value, *args)


def parse_line(line: str) -> Optional[Union[Message, Command]]:
    """Tokenize and assemble one line of user input."""
    return assemble(tokenize(line))
