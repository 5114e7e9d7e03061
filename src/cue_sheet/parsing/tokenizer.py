from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from cue_sheet.common.errors import ErrorKind
from cue_sheet.common.types import Position

ErrorSink = Callable[[ErrorKind, Position], None]

BOM = "\ufeff"

_WHITESPACE = frozenset(
    "\t\n\x0b\x0c\r \x85\xa0\u1680"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000"
)


class TokenKind(Enum):
    EOF = "eof"
    LINE_BREAK = "line_break"
    UNQUOTED = "unquoted"
    QUOTED = "quoted"


STRING_KINDS = (TokenKind.UNQUOTED, TokenKind.QUOTED)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: Position


class Tokenizer:
    """
    Single-lookahead token stream over CUE source text.

    `current` is the lookahead token; every consuming method moves it
    forward by exactly one token. Problems are reported through `on_error`
    and never stop the stream.
    """

    def __init__(self, source: str, on_error: ErrorSink) -> None:
        if source.startswith(BOM):
            source = source[1:]
        self._source = source
        self._len = len(source)
        self._offset = 0
        self._line = 1
        self._column = 1
        self._on_error = on_error
        self._current = self._scan()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _location(self) -> Position:
        return Position(self._offset, self._line, self._column)

    def _is_line_break_at(self, i: int) -> bool:
        ch = self._source[i]
        return ch == "\n" or (ch == "\r" and self._source.startswith("\n", i + 1))

    def _skip_whitespace(self) -> None:
        src = self._source
        while (
            self._offset < self._len
            and src[self._offset] in _WHITESPACE
            and not self._is_line_break_at(self._offset)
        ):
            self._offset += 1
            self._column += 1

    def _scan(self) -> Token:
        self._skip_whitespace()
        start = self._location()
        if self._offset >= self._len:
            return Token(TokenKind.EOF, "", start)

        ch = self._source[self._offset]
        if ch == "\n" or ch == "\r":
            # _skip_whitespace leaves only "\n" or "\r\n" here
            text = "\n" if ch == "\n" else "\r\n"
            self._offset += len(text)
            self._line += 1
            self._column = 1
            return Token(TokenKind.LINE_BREAK, text, start)
        if ch == '"':
            return self._scan_quoted(start)
        return self._scan_unquoted(start)

    def _scan_quoted(self, start: Position) -> Token:
        body_start = self._offset + 1
        end = self._source.find('"', body_start)
        terminated = end != -1
        if not terminated:
            end = self._len
        text = self._source[body_start:end]

        self._offset = end
        newlines = text.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(text) - text.rfind("\n")
        else:
            self._column += 1 + len(text)

        if terminated:
            self._offset += 1
            self._column += 1
        else:
            self._on_error(ErrorKind.UNTERMINATED_QUOTED_STRING, self._location())
        return Token(TokenKind.QUOTED, text, start)

    def _scan_unquoted(self, start: Position) -> Token:
        src = self._source
        end = self._offset
        while end < self._len and src[end] not in _WHITESPACE:
            end += 1
        text = src[self._offset : end]
        self._column += end - self._offset
        self._offset = end
        return Token(TokenKind.UNQUOTED, text, start)

    # ------------------------------------------------------------------
    # Lookahead interface
    # ------------------------------------------------------------------

    @property
    def current(self) -> Token:
        return self._current

    def next(self) -> Token:
        """Consume and return the lookahead token. EOF is returned forever."""
        token = self._current
        if token.kind is not TokenKind.EOF:
            self._current = self._scan()
        return token

    def is_eof(self) -> bool:
        return self._current.kind is TokenKind.EOF

    def current_location(self) -> Position:
        return self._current.position

    def eat_line_break(self) -> bool:
        if self._current.kind is TokenKind.LINE_BREAK:
            self.next()
            return True
        return False

    def expect_line_break(self) -> None:
        if not self.eat_line_break():
            self._on_error(ErrorKind.EXPECT_LINE_BREAK, self.current_location())

    def eat_string(self, kind: TokenKind | None = None) -> Token | None:
        token = self._current
        if token.kind in STRING_KINDS and (kind is None or token.kind is kind):
            return self.next()
        return None

    def expect_string(self, kind: TokenKind | None = None) -> Token:
        token = self.eat_string(kind)
        if token is not None:
            return token

        location = self.current_location()
        if kind is TokenKind.QUOTED:
            self._on_error(ErrorKind.EXPECT_TOKEN_QUOTED, location)
        elif kind is TokenKind.UNQUOTED:
            self._on_error(ErrorKind.EXPECT_TOKEN_UNQUOTED, location)
        else:
            self._on_error(ErrorKind.UNEXPECTED_TOKEN, location)
        # tolerant parsing: hand back an empty placeholder
        return Token(kind or TokenKind.UNQUOTED, "", location)
