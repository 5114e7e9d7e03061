from cue_sheet.common.config import DumpOptions, ParseOptions
from cue_sheet.common.errors import ErrorKind, ParsingError
from cue_sheet.common.types import (
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
from cue_sheet.parsing.parser import ParseResult, parse
from cue_sheet.render.dumper import dump

__version__ = "0.1.0"

__all__ = [
    "DumpOptions",
    "ErrorKind",
    "File",
    "FileType",
    "Flags",
    "Index",
    "ParseOptions",
    "ParseResult",
    "ParsingError",
    "Position",
    "Sheet",
    "Time",
    "Track",
    "TrackDataType",
    "dump",
    "parse",
]
