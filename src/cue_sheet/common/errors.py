from __future__ import annotations

from enum import Enum, auto

from cue_sheet.common.types import Position


class ErrorKind(Enum):
    UNTERMINATED_QUOTED_STRING = auto()
    EXPECT_LINE_BREAK = auto()
    EXPECT_TOKEN_EOF = auto()
    EXPECT_TOKEN_UNQUOTED = auto()
    EXPECT_TOKEN_QUOTED = auto()
    UNEXPECTED_TOKEN = auto()
    MISSING_ARGUMENTS = auto()
    INVALID_CATALOG_FORMAT = auto()
    DUPLICATED_CATALOG = auto()
    INVALID_FILE_COMMAND_LOCATION = auto()
    UNKNOWN_FILE_TYPE = auto()
    INVALID_FLAGS_COMMAND_LOCATION = auto()
    DUPLICATED_FLAGS_COMMAND = auto()
    NO_FLAGS = auto()
    TOO_MANY_FLAGS = auto()
    UNKNOWN_FLAG = auto()
    INVALID_INDEX_NUMBER_RANGE = auto()
    INVALID_INDEX_NUMBER_SEQUENCE = auto()
    INVALID_TIME_FORMAT = auto()
    FRAMES_TOO_LARGE = auto()
    INVALID_FIRST_INDEX_NUMBER = auto()
    INVALID_FIRST_INDEX_TIME = auto()
    INVALID_ISRC_COMMAND_LOCATION = auto()
    INVALID_ISRC_FORMAT = auto()
    TOO_LONG_PERFORMER = auto()
    CURRENT_TRACK_REQUIRED = auto()
    INVALID_POST_GAP_COMMAND_LOCATION = auto()
    DUPLICATED_POST_GAP_COMMAND = auto()
    INVALID_PRE_GAP_COMMAND_LOCATION = auto()
    DUPLICATED_PRE_GAP_COMMAND = auto()
    TOO_LONG_SONG_WRITER = auto()
    TOO_LONG_TITLE = auto()
    INVALID_TRACK_NUMBER_RANGE = auto()
    INVALID_TRACK_NUMBER_SEQUENCE = auto()
    UNKNOWN_TRACK_DATA_TYPE = auto()
    TRACKS_REQUIRED = auto()

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNTERMINATED_QUOTED_STRING: "Quoted string isn't terminated.",
    ErrorKind.EXPECT_LINE_BREAK: "Expect line break.",
    ErrorKind.EXPECT_TOKEN_EOF: "Expect end of file.",
    ErrorKind.EXPECT_TOKEN_UNQUOTED: "Expect an unquoted string.",
    ErrorKind.EXPECT_TOKEN_QUOTED: "Expect a quoted string.",
    ErrorKind.UNEXPECTED_TOKEN: "Unexpected token.",
    ErrorKind.MISSING_ARGUMENTS: "Missing arguments.",
    ErrorKind.INVALID_CATALOG_FORMAT: "Catalog must be 13 digits.",
    ErrorKind.DUPLICATED_CATALOG: "Catalog can appear only once in one cue sheet.",
    ErrorKind.INVALID_FILE_COMMAND_LOCATION: (
        "'FILE' commands must appear before any other command, "
        "except 'CATALOG' and 'CDTEXTFILE'."
    ),
    ErrorKind.UNKNOWN_FILE_TYPE: (
        "Unknown file type. Only 'BINARY', 'MOTOROLA', 'AIFF', 'WAVE' and 'MP3' are allowed."
    ),
    ErrorKind.INVALID_FLAGS_COMMAND_LOCATION: (
        "'FLAGS' command must appear after a 'TRACK' command, "
        "but before any 'INDEX' commands."
    ),
    ErrorKind.DUPLICATED_FLAGS_COMMAND: "'FLAGS' command can appear only once in each track.",
    ErrorKind.NO_FLAGS: "'FLAGS' command must specify at least one flag.",
    ErrorKind.TOO_MANY_FLAGS: "Too many flags encountered. It can't have more than four flags.",
    ErrorKind.UNKNOWN_FLAG: "Unknown flag. Only 'DCP', '4CH', 'PRE' and 'SCMS' are allowed.",
    ErrorKind.INVALID_INDEX_NUMBER_RANGE: (
        "Index number must be a number between 0 and 99. (inclusive)"
    ),
    ErrorKind.INVALID_INDEX_NUMBER_SEQUENCE: (
        "Index number must be sequential after previous indexes."
    ),
    ErrorKind.INVALID_TIME_FORMAT: "Time format must be 'mm:ss:ff'.",
    ErrorKind.FRAMES_TOO_LARGE: "Frames can't be greater than 74.",
    ErrorKind.INVALID_FIRST_INDEX_NUMBER: "Number of first index must be 0 or 1.",
    ErrorKind.INVALID_FIRST_INDEX_TIME: "First index of a file must start at 00:00:00.",
    ErrorKind.INVALID_ISRC_COMMAND_LOCATION: (
        "'ISRC' command must be specified after a 'TRACK' command, "
        "but before any 'INDEX' commands."
    ),
    ErrorKind.INVALID_ISRC_FORMAT: "Invalid ISRC format.",
    ErrorKind.TOO_LONG_PERFORMER: "Performer must have 1 to 80 characters.",
    ErrorKind.CURRENT_TRACK_REQUIRED: "This command must be under a specific track.",
    ErrorKind.INVALID_POST_GAP_COMMAND_LOCATION: (
        "'POSTGAP' command must appear after all 'INDEX' commands for the current track."
    ),
    ErrorKind.DUPLICATED_POST_GAP_COMMAND: "Only one 'POSTGAP' command is allowed per track.",
    ErrorKind.INVALID_PRE_GAP_COMMAND_LOCATION: (
        "'PREGAP' command must appear before any 'INDEX' commands."
    ),
    ErrorKind.DUPLICATED_PRE_GAP_COMMAND: "Only one 'PREGAP' command is allowed per track.",
    ErrorKind.TOO_LONG_SONG_WRITER: "Song writer must have 1 to 80 characters.",
    ErrorKind.TOO_LONG_TITLE: "Title must have 1 to 80 characters.",
    ErrorKind.INVALID_TRACK_NUMBER_RANGE: "Track number range must be from 1 to 99.",
    ErrorKind.INVALID_TRACK_NUMBER_SEQUENCE: (
        "Track number must be sequential after previous tracks."
    ),
    ErrorKind.UNKNOWN_TRACK_DATA_TYPE: "Unknown track data type.",
    ErrorKind.TRACKS_REQUIRED: "At least one track is required.",
}


class ParsingError(Exception):
    """A single grammar or format violation, located in the source text."""

    def __init__(self, kind: ErrorKind, position: Position) -> None:
        super().__init__(f"{kind.message} ({position.line}:{position.column})")
        self.kind = kind
        self.position = position

    def __repr__(self) -> str:
        return (
            f"ParsingError({self.kind.name}, line={self.position.line}, "
            f"column={self.position.column})"
        )
