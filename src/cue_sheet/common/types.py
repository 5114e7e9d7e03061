from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel

FRAMES_PER_SECOND = 75


@dataclass(frozen=True)
class Position:
    """Character offset plus 1-based line and column in the source text."""

    offset: int
    line: int
    column: int


class FileType(Enum):
    UNKNOWN = "UNKNOWN"  # tolerant-parse fallback only
    BINARY = "BINARY"
    MOTOROLA = "MOTOROLA"
    AIFF = "AIFF"
    WAVE = "WAVE"
    MP3 = "MP3"


class TrackDataType(Enum):
    UNKNOWN = "UNKNOWN"  # tolerant-parse fallback only
    AUDIO = "AUDIO"
    CDG = "CDG"
    MODE1_2048 = "MODE1/2048"
    MODE1_2352 = "MODE1/2352"
    MODE2_2336 = "MODE2/2336"
    MODE2_2352 = "MODE2/2352"
    CDI_2336 = "CDI/2336"
    CDI_2352 = "CDI/2352"


class Time(NamedTuple):
    """Red-book address: minutes, seconds (0-59) and frames (0-74)."""

    minutes: int = 0
    seconds: int = 0
    frames: int = 0

    def __str__(self) -> str:
        return f"{self.minutes:02d}:{self.seconds:02d}:{self.frames:02d}"


class Flags(BaseModel):
    digital_copy_permitted: bool = False
    four_channel_audio: bool = False
    pre_emphasis_enabled: bool = False
    # Serial Copy Management System
    scms: bool = False


class Index(BaseModel):
    number: int
    starting_time: Time


class Track(BaseModel):
    track_number: int
    data_type: TrackDataType
    title: str | None = None
    performer: str | None = None
    song_writer: str | None = None
    flags: Flags | None = None
    indexes: list[Index] = []
    isrc: str | None = None
    pre_gap: Time | None = None
    post_gap: Time | None = None


class File(BaseModel):
    name: str
    type: FileType
    tracks: list[Track] = []


class Sheet(BaseModel):
    catalog: str | None = None
    cd_text_file: str | None = None
    title: str | None = None
    performer: str | None = None
    song_writer: str | None = None
    # disc-level FLAGS, only set by a FLAGS command outside any track
    flags: Flags | None = None
    files: list[File] = []
    comments: list[str] = []

    def iter_tracks(self) -> Iterator[Track]:
        for f in self.files:
            yield from f.tracks
