from __future__ import annotations

import csv
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cue_sheet.common.config import ParseOptions
from cue_sheet.common.errors import ParsingError
from cue_sheet.common.logging import log
from cue_sheet.parsing.parser import parse

SUPPORTED_EXT = {".cue"}


@dataclass
class LintReport:
    path: Path
    files: int = 0
    tracks: int = 0
    errors: list[ParsingError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def diagnostics(self) -> list[str]:
        return [
            f"{self.path}:{e.position.line}:{e.position.column}: {e.kind.message}"
            for e in self.errors
        ]


def read_source(path: Path) -> str:
    # CUE sheets in the wild are often not UTF-8; keep going with replacement chars
    return path.read_text(encoding="utf-8", errors="replace")


def iter_cue_files(paths: Iterable[Path]) -> list[Path]:
    result: list[Path] = []
    for p in paths:
        if p.is_dir():
            for q in p.rglob("*"):
                if q.is_file() and q.suffix.lower() in SUPPORTED_EXT:
                    result.append(q)
        else:
            result.append(p)
    return sorted(result)


def lint_file(path: Path, options: ParseOptions | None = None) -> LintReport:
    """
    Parse one CUE file and collect its diagnostics.

    In fatal mode the first error ends the parse and is the only one reported.
    """
    report = LintReport(path=path)
    try:
        result = parse(read_source(path), options)
    except ParsingError as e:
        report.errors.append(e)
    else:
        report.errors.extend(result.errors)
        report.files = len(result.sheet.files)
        report.tracks = sum(1 for _ in result.sheet.iter_tracks())
    log.info(
        "lint_file_done",
        path=str(path),
        files=report.files,
        tracks=report.tracks,
        errors=len(report.errors),
    )
    return report


def lint_paths(paths: Iterable[Path], options: ParseOptions | None = None) -> list[LintReport]:
    reports = [lint_file(p, options) for p in iter_cue_files(paths)]
    log.info(
        "lint_done",
        checked=len(reports),
        failed=sum(1 for r in reports if not r.ok),
    )
    return reports


def report_rows(reports: Iterable[LintReport]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for r in reports:
        kinds = Counter(e.kind.name for e in r.errors)
        rows.append(
            {
                "path": r.path.as_posix(),
                "files": r.files,
                "tracks": r.tracks,
                "errors": len(r.errors),
                "kinds": ";".join(f"{k}={v}" for k, v in sorted(kinds.items())),
            }
        )
    return rows


def write_lint_csv(out_csv: Path, reports: Iterable[LintReport]) -> None:
    rows = report_rows(reports)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        out_csv.write_text("", encoding="utf-8")
        return
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)
