from __future__ import annotations

from cue_sheet.common.config import DumpOptions
from cue_sheet.common.types import Flags, Sheet, Time, Track


def _quote(text: str) -> str:
    return '"' + text.replace('"', '\\"') + '"'


def _number(value: int) -> str:
    return f"{value:02d}"


def _flag_words(flags: Flags) -> list[str]:
    words: list[str] = []
    if flags.digital_copy_permitted:
        words.append("DCP")
    if flags.four_channel_audio:
        words.append("4CH")
    if flags.pre_emphasis_enabled:
        words.append("PRE")
    if flags.scms:
        words.append("SCMS")
    return words


class _Writer:
    def __init__(self, options: DumpOptions) -> None:
        self.options = options
        self.lines: list[str] = []

    def line(self, level: int, text: str) -> None:
        if self.options.indent_kind == "\t":
            indent = "\t" * level
        else:
            indent = " " * (level * self.options.indent_size)
        self.lines.append(indent + text + self.options.line_break)

    def time(self, level: int, command: str, value: Time) -> None:
        self.line(level, f"{command} {value}")

    def text(self) -> str:
        return "".join(self.lines)


def _write_track(w: _Writer, track: Track) -> None:
    w.line(1, f"TRACK {_number(track.track_number)} {track.data_type.value}")
    if track.title is not None:
        w.line(2, f"TITLE {_quote(track.title)}")
    if track.performer is not None:
        w.line(2, f"PERFORMER {_quote(track.performer)}")
    if track.song_writer is not None:
        w.line(2, f"SONGWRITER {_quote(track.song_writer)}")
    if track.isrc is not None:
        w.line(2, f"ISRC {track.isrc}")
    if track.flags is not None:
        words = _flag_words(track.flags)
        if words:
            w.line(2, "FLAGS " + " ".join(words))
    if track.pre_gap is not None:
        w.time(2, "PREGAP", track.pre_gap)
    for index in track.indexes:
        w.line(2, f"INDEX {_number(index.number)} {index.starting_time}")
    if track.post_gap is not None:
        w.time(2, "POSTGAP", track.post_gap)


def dump(sheet: Sheet, options: DumpOptions | None = None) -> str:
    """Render a Sheet as canonical CUE text: one command per line, nested by indentation."""
    opts = options or DumpOptions()
    head = _Writer(opts)
    for comment in sheet.comments:
        head.line(0, f"REM {comment}")
    if sheet.catalog is not None:
        head.line(0, f"CATALOG {sheet.catalog}")
    if sheet.cd_text_file is not None:
        head.line(0, f"CDTEXTFILE {_quote(sheet.cd_text_file)}")
    if sheet.title is not None:
        head.line(0, f"TITLE {_quote(sheet.title)}")
    if sheet.performer is not None:
        head.line(0, f"PERFORMER {_quote(sheet.performer)}")
    if sheet.song_writer is not None:
        head.line(0, f"SONGWRITER {_quote(sheet.song_writer)}")

    blocks: list[str] = []
    for f in sheet.files:
        w = _Writer(opts)
        w.line(0, f"FILE {_quote(f.name)} {f.type.value}")
        for track in f.tracks:
            _write_track(w, track)
        blocks.append(w.text())

    # FILE blocks are separated by an empty line
    return head.text() + opts.line_break.join(blocks)
