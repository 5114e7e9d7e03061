"""
Tolerant CUE sheet parser.

Every command handler keeps building the sheet after reporting a problem,
so a single malformed line never discards data from the lines around it.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Flag, auto

from cue_sheet.common.config import ParseOptions
from cue_sheet.common.errors import ErrorKind, ParsingError
from cue_sheet.common.logging import log
from cue_sheet.common.types import (
    FRAMES_PER_SECOND,
    File,
    FileType,
    Flags,
    Index,
    Position,
    Sheet,
    Time,
    Track,
    TrackDataType,
)
from cue_sheet.parsing.tokenizer import Token, Tokenizer, TokenKind


class Command(Flag):
    CATALOG = auto()
    CDTEXTFILE = auto()
    FILE = auto()
    FLAGS = auto()
    INDEX = auto()
    ISRC = auto()
    PERFORMER = auto()
    POSTGAP = auto()
    PREGAP = auto()
    REM = auto()
    SONGWRITER = auto()
    TITLE = auto()
    TRACK = auto()


# cleared by every TRACK command
TRACK_SCOPED = (
    Command.TITLE
    | Command.PERFORMER
    | Command.SONGWRITER
    | Command.INDEX
    | Command.PREGAP
    | Command.POSTGAP
    | Command.ISRC
)

# commands whose single argument is often unquoted prose
FREE_TEXT = Command.TITLE | Command.PERFORMER | Command.SONGWRITER

MAX_TEXT_LENGTH = 80
MAX_FLAGS = 4

RE_CATALOG = re.compile(r"[0-9]{13}")
RE_ISRC = re.compile(r"[A-Za-z0-9]{5}[0-9]{7}")
RE_TIME = re.compile(r"([0-9]{2,}):([0-9]{2}):([0-9]{2})")

FILE_TYPES = {t.value: t for t in FileType if t is not FileType.UNKNOWN}
TRACK_DATA_TYPES = {t.value: t for t in TrackDataType if t is not TrackDataType.UNKNOWN}
FLAG_FIELDS = {
    "DCP": "digital_copy_permitted",
    "4CH": "four_channel_audio",
    "PRE": "pre_emphasis_enabled",
    "SCMS": "scms",
}

_ORIGIN = Position(0, 1, 1)


@dataclass
class ParseResult:
    sheet: Sheet
    errors: list[ParsingError]


@dataclass
class _Context:
    options: ParseOptions
    sheet: Sheet = field(default_factory=Sheet)
    errors: list[ParsingError] = field(default_factory=list)
    # stays current across FILE commands until the next TRACK
    current_track: Track | None = None
    track_attached: bool = False
    # current track was the first TRACK after its FILE
    track_opens_file: bool = False
    last_track_number: int | None = None
    parsed: Command = Command(0)
    command_token: Token | None = None
    tokens: Tokenizer = field(init=False)

    def raise_error(self, kind: ErrorKind, position: Position | None = None) -> None:
        if position is None:
            position = self.command_token.position if self.command_token else _ORIGIN
        error = ParsingError(kind, position)
        if self.options.fatal:
            raise error
        self.errors.append(error)

    def attach_track(self) -> None:
        """Append the current track to the file it was opened under, once."""
        track = self.current_track
        if track is None or self.track_attached:
            return
        self.track_attached = True
        if self.sheet.files:
            self.sheet.files[-1].tracks.append(track)
        else:
            # opened before any FILE, so there is no file to attach it to
            log.warning("track_dropped", track_number=track.track_number)


def parse(source: str, options: ParseOptions | None = None) -> ParseResult:
    """
    Parse CUE sheet text into a Sheet plus every violation found.

    Raises:
        ParsingError: only when `options.fatal` is set, for the first problem.
    """
    ctx = _Context(options=options or ParseOptions())
    ctx.tokens = Tokenizer(source, ctx.raise_error)
    tokens = ctx.tokens

    while True:
        token = tokens.next()
        if token.kind is TokenKind.EOF:
            break
        if token.kind is TokenKind.LINE_BREAK:
            continue
        if token.kind is TokenKind.QUOTED:
            ctx.raise_error(ErrorKind.UNEXPECTED_TOKEN, token.position)
            _skip_line(ctx)
            continue

        command = _lookup_command(token.text)
        if command is None:
            _skip_line(ctx)
            continue

        ctx.command_token = token
        _HANDLERS[command](ctx)
        ctx.parsed |= command
        _finish_line(ctx, command)

    ctx.attach_track()

    if ctx.options.check_at_least_one_track and not any(f.tracks for f in ctx.sheet.files):
        ctx.raise_error(ErrorKind.TRACKS_REQUIRED, _ORIGIN)

    return ParseResult(sheet=ctx.sheet, errors=ctx.errors)


# ----------------------------------------------------------------------
# Line handling
# ----------------------------------------------------------------------


def _lookup_command(text: str) -> Command | None:
    return Command.__members__.get(text.upper())


def _skip_line(ctx: _Context) -> None:
    tokens = ctx.tokens
    while tokens.current.kind not in (TokenKind.EOF, TokenKind.LINE_BREAK):
        tokens.next()


def _finish_line(ctx: _Context, command: Command) -> None:
    tokens = ctx.tokens
    if tokens.is_eof() or tokens.eat_line_break():
        return
    tokens.expect_line_break()
    # a second command on the same line still gets parsed, unless the words
    # are the unquoted tail of a text value such as `TITLE Hidden Track`
    current = tokens.current
    if (
        command not in FREE_TEXT
        and current.kind is TokenKind.UNQUOTED
        and _lookup_command(current.text) is not None
    ):
        return
    _skip_line(ctx)


# ----------------------------------------------------------------------
# Argument helpers
# ----------------------------------------------------------------------


def _parse_number(text: str) -> int | None:
    if text.isascii() and text.isdigit():
        return int(text)
    return None


def _expect_time(ctx: _Context) -> tuple[Time, Token]:
    token = ctx.tokens.expect_string(TokenKind.UNQUOTED)
    match = RE_TIME.fullmatch(token.text)
    if match is None:
        ctx.raise_error(ErrorKind.INVALID_TIME_FORMAT, token.position)
        return Time(), token

    minutes, seconds, frames = (int(g) for g in match.groups())
    if seconds > 59:
        ctx.raise_error(ErrorKind.INVALID_TIME_FORMAT, token.position)
        return Time(), token
    if frames >= FRAMES_PER_SECOND:
        ctx.raise_error(ErrorKind.FRAMES_TOO_LARGE, token.position)
    return Time(minutes, seconds, frames), token


# ----------------------------------------------------------------------
# Command handlers
# ----------------------------------------------------------------------


def _parse_catalog(ctx: _Context) -> None:
    token = ctx.tokens.eat_string(TokenKind.UNQUOTED)
    if token is None:
        ctx.raise_error(ErrorKind.EXPECT_TOKEN_UNQUOTED, ctx.tokens.current_location())
        return

    if Command.CATALOG in ctx.parsed:
        ctx.raise_error(ErrorKind.DUPLICATED_CATALOG)
    if RE_CATALOG.fullmatch(token.text) is None:
        ctx.raise_error(ErrorKind.INVALID_CATALOG_FORMAT, token.position)
    ctx.sheet.catalog = token.text


def _parse_cd_text_file(ctx: _Context) -> None:
    token = ctx.tokens.eat_string()
    if token is None:
        ctx.raise_error(ErrorKind.MISSING_ARGUMENTS, ctx.tokens.current_location())
        return
    ctx.sheet.cd_text_file = token.text


def _parse_file(ctx: _Context) -> None:
    if (
        ctx.options.strict_file_command_position
        and Command.FILE not in ctx.parsed
        and ctx.parsed & ~(Command.CATALOG | Command.CDTEXTFILE)
    ):
        ctx.raise_error(ErrorKind.INVALID_FILE_COMMAND_LOCATION)

    ctx.attach_track()

    tokens = ctx.tokens
    name = tokens.eat_string()
    if name is None:
        ctx.raise_error(ErrorKind.MISSING_ARGUMENTS, tokens.current_location())
        return

    type_token = tokens.expect_string(TokenKind.UNQUOTED)
    file_type = FILE_TYPES.get(type_token.text.upper())
    if file_type is None:
        ctx.raise_error(ErrorKind.UNKNOWN_FILE_TYPE, type_token.position)
        file_type = FileType.UNKNOWN

    ctx.sheet.files.append(File(name=name.text, type=file_type))


def _parse_flags(ctx: _Context) -> None:
    track = ctx.current_track
    if track is None or Command.INDEX in ctx.parsed:
        ctx.raise_error(ErrorKind.INVALID_FLAGS_COMMAND_LOCATION)
    if track is not None and track.flags is not None:
        ctx.raise_error(ErrorKind.DUPLICATED_FLAGS_COMMAND)

    flags = Flags()
    count = 0
    tokens = ctx.tokens
    while (token := tokens.eat_string()) is not None:
        if token.kind is TokenKind.QUOTED:
            # flags are bare words only
            continue
        count += 1
        if count == MAX_FLAGS + 1:
            ctx.raise_error(ErrorKind.TOO_MANY_FLAGS, token.position)
        flag_field = FLAG_FIELDS.get(token.text)
        if flag_field is None:
            ctx.raise_error(ErrorKind.UNKNOWN_FLAG, token.position)
        else:
            setattr(flags, flag_field, True)

    if count == 0:
        ctx.raise_error(ErrorKind.NO_FLAGS, tokens.current_location())

    if track is not None:
        track.flags = flags
    else:
        ctx.sheet.flags = flags


def _parse_index(ctx: _Context) -> None:
    track = ctx.current_track
    if track is None:
        ctx.raise_error(ErrorKind.CURRENT_TRACK_REQUIRED)

    number_token = ctx.tokens.expect_string(TokenKind.UNQUOTED)
    number = _parse_number(number_token.text)
    time, time_token = _expect_time(ctx)
    if track is None:
        return

    first = not track.indexes
    expected = track.indexes[-1].number + 1 if track.indexes else 1
    if number is None or number > 99:
        ctx.raise_error(ErrorKind.INVALID_INDEX_NUMBER_RANGE, number_token.position)
        if number is None:
            number = expected
    elif first and number not in (0, 1):
        ctx.raise_error(ErrorKind.INVALID_FIRST_INDEX_NUMBER, number_token.position)
    elif not first and number != expected:
        ctx.raise_error(ErrorKind.INVALID_INDEX_NUMBER_SEQUENCE, number_token.position)

    if first and ctx.track_opens_file and time != Time():
        ctx.raise_error(ErrorKind.INVALID_FIRST_INDEX_TIME, time_token.position)

    track.indexes.append(Index(number=number, starting_time=time))


def _parse_isrc(ctx: _Context) -> None:
    track = ctx.current_track
    if track is None or Command.INDEX in ctx.parsed:
        ctx.raise_error(ErrorKind.INVALID_ISRC_COMMAND_LOCATION)

    token = ctx.tokens.expect_string(TokenKind.UNQUOTED)
    if RE_ISRC.fullmatch(token.text) is None:
        ctx.raise_error(ErrorKind.INVALID_ISRC_FORMAT, token.position)
    if track is not None:
        track.isrc = token.text


def _text_field(attr: str, too_long: ErrorKind) -> Callable[[_Context], None]:
    def handler(ctx: _Context) -> None:
        token = ctx.tokens.eat_string()
        if token is None:
            ctx.raise_error(ErrorKind.MISSING_ARGUMENTS, ctx.tokens.current_location())
            return
        if len(token.text) > MAX_TEXT_LENGTH:
            ctx.raise_error(too_long, token.position)
        target = ctx.current_track if ctx.current_track is not None else ctx.sheet
        setattr(target, attr, token.text)

    return handler


def _parse_pre_gap(ctx: _Context) -> None:
    track = ctx.current_track
    if track is None:
        ctx.raise_error(ErrorKind.CURRENT_TRACK_REQUIRED)
    else:
        if Command.INDEX in ctx.parsed:
            ctx.raise_error(ErrorKind.INVALID_PRE_GAP_COMMAND_LOCATION)
        if Command.PREGAP in ctx.parsed:
            ctx.raise_error(ErrorKind.DUPLICATED_PRE_GAP_COMMAND)

    time, _ = _expect_time(ctx)
    if track is not None:
        track.pre_gap = time


def _parse_post_gap(ctx: _Context) -> None:
    track = ctx.current_track
    if track is None:
        ctx.raise_error(ErrorKind.CURRENT_TRACK_REQUIRED)
    else:
        if Command.INDEX not in ctx.parsed:
            ctx.raise_error(ErrorKind.INVALID_POST_GAP_COMMAND_LOCATION)
        if Command.POSTGAP in ctx.parsed:
            ctx.raise_error(ErrorKind.DUPLICATED_POST_GAP_COMMAND)

    time, _ = _expect_time(ctx)
    if track is not None:
        track.post_gap = time


def _parse_rem(ctx: _Context) -> None:
    words: list[str] = []
    while (token := ctx.tokens.eat_string()) is not None:
        words.append(token.text)
    ctx.sheet.comments.append(" ".join(words))


def _parse_track(ctx: _Context) -> None:
    tokens = ctx.tokens
    number_token = tokens.expect_string(TokenKind.UNQUOTED)
    number = _parse_number(number_token.text)
    previous = ctx.last_track_number

    if number is None or not 1 <= number <= 99:
        ctx.raise_error(ErrorKind.INVALID_TRACK_NUMBER_RANGE, number_token.position)
        if number is None:
            number = previous + 1 if previous is not None else 1
    elif previous is not None and number != previous + 1:
        ctx.raise_error(ErrorKind.INVALID_TRACK_NUMBER_SEQUENCE, number_token.position)

    type_token = tokens.expect_string(TokenKind.UNQUOTED)
    data_type = TRACK_DATA_TYPES.get(type_token.text.upper())
    if data_type is None:
        ctx.raise_error(ErrorKind.UNKNOWN_TRACK_DATA_TYPE, type_token.position)
        data_type = TrackDataType.UNKNOWN

    ctx.attach_track()
    ctx.track_opens_file = bool(ctx.sheet.files) and not ctx.sheet.files[-1].tracks
    ctx.current_track = Track(track_number=number, data_type=data_type)
    ctx.track_attached = False
    ctx.last_track_number = number
    ctx.parsed &= ~TRACK_SCOPED


_HANDLERS: dict[Command, Callable[[_Context], None]] = {
    Command.CATALOG: _parse_catalog,
    Command.CDTEXTFILE: _parse_cd_text_file,
    Command.FILE: _parse_file,
    Command.FLAGS: _parse_flags,
    Command.INDEX: _parse_index,
    Command.ISRC: _parse_isrc,
    Command.PERFORMER: _text_field("performer", ErrorKind.TOO_LONG_PERFORMER),
    Command.POSTGAP: _parse_post_gap,
    Command.PREGAP: _parse_pre_gap,
    Command.REM: _parse_rem,
    Command.SONGWRITER: _text_field("song_writer", ErrorKind.TOO_LONG_SONG_WRITER),
    Command.TITLE: _text_field("title", ErrorKind.TOO_LONG_TITLE),
    Command.TRACK: _parse_track,
}
