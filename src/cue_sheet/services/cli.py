from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from cue_sheet.common.config import AppConfig, load_yaml
from cue_sheet.common.errors import ParsingError
from cue_sheet.common.logging import add_file_logging, log, setup_logging
from cue_sheet.parsing.parser import parse
from cue_sheet.render.dumper import dump
from cue_sheet.services.lint import lint_paths, read_source, write_lint_csv

app = typer.Typer(help="CUE sheet toolkit: tolerant validation and canonical formatting.")

OPT_VERBOSE = typer.Option(False, "--verbose", "-v", help="Debug-level JSON logs on stderr.")
OPT_LOG_FILE = typer.Option(None, "--log-file", help="Also write JSON-lines logs to this file.")

OPT_CONFIG = typer.Option(None, "--config", "-c", help="YAML config with 'parse' and 'dump' sections.")
OPT_FATAL = typer.Option(False, "--fatal", help="Stop each file at its first error.")
OPT_REQUIRE_TRACKS = typer.Option(
    False, "--require-tracks", help="Report sheets that contain no track at all."
)
OPT_STRICT_FILE = typer.Option(
    False,
    "--strict-file-position",
    help="Only CATALOG and CDTEXTFILE may come before the first FILE command.",
)

# check
ARG_CHECK_PATHS = typer.Argument(..., help="CUE files or folders (searched recursively for *.cue).")
OPT_CSV = typer.Option(None, "--csv", help="Optional CSV path for a per-file summary.")

# format
ARG_FORMAT_PATH = typer.Argument(..., help="CUE file to reformat.")
OPT_FORMAT_OUT = typer.Option(
    None, "--out", "-o", help="Output file (defaults to standard output)."
)
OPT_CRLF = typer.Option(False, "--crlf", help="Use CRLF line breaks.")
OPT_TABS = typer.Option(False, "--tabs", help="Indent with tabs instead of spaces.")
OPT_INDENT_SIZE = typer.Option(None, "--indent-size", help="Spaces per nesting level.")
OPT_FORCE = typer.Option(False, "--force", help="Write output even when the sheet has errors.")


def _load_config(config: Path | None) -> AppConfig:
    if config is None:
        return AppConfig()
    try:
        return load_yaml(config)
    except (OSError, ValidationError) as e:
        raise typer.BadParameter(f"Invalid config {config}: {e}") from e


def _apply_parse_flags(
    cfg: AppConfig, fatal: bool, require_tracks: bool, strict_file_position: bool
) -> AppConfig:
    # flags only switch checks on; config decides otherwise
    updates: dict[str, bool] = {}
    if fatal:
        updates["fatal"] = True
    if require_tracks:
        updates["check_at_least_one_track"] = True
    if strict_file_position:
        updates["strict_file_command_position"] = True
    return cfg.model_copy(update={"parse": cfg.parse.model_copy(update=updates)})


@app.callback()
def main(verbose: bool = OPT_VERBOSE, log_file: Path | None = OPT_LOG_FILE) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    setup_logging(level)
    if log_file is not None:
        add_file_logging(log_file, level)
    if verbose:
        log.info("verbose_enabled")


@app.command("check")
def check(
    paths: list[Path] = ARG_CHECK_PATHS,
    config: Path | None = OPT_CONFIG,
    fatal: bool = OPT_FATAL,
    require_tracks: bool = OPT_REQUIRE_TRACKS,
    strict_file_position: bool = OPT_STRICT_FILE,
    csv_path: Path | None = OPT_CSV,
) -> None:
    """Validate CUE sheets and print every problem as path:line:column: message."""
    cfg = _apply_parse_flags(_load_config(config), fatal, require_tracks, strict_file_position)
    log.info("check_start", paths=[str(p) for p in paths], options=cfg.parse.model_dump())

    reports = lint_paths(paths, cfg.parse)
    for r in reports:
        for line in r.diagnostics():
            typer.echo(line)

    if csv_path:
        write_lint_csv(csv_path, reports)
        typer.echo(f"Wrote per-file CSV → {csv_path}")

    failed = sum(1 for r in reports if not r.ok)
    typer.echo(f"checked={len(reports)} failed={failed}")
    if failed:
        raise typer.Exit(code=1)


@app.command("format")
def format_sheet(
    path: Path = ARG_FORMAT_PATH,
    config: Path | None = OPT_CONFIG,
    out: Path | None = OPT_FORMAT_OUT,
    crlf: bool = OPT_CRLF,
    tabs: bool = OPT_TABS,
    indent_size: int | None = OPT_INDENT_SIZE,
    strict_file_position: bool = OPT_STRICT_FILE,
    force: bool = OPT_FORCE,
) -> None:
    """Rewrite a CUE sheet in canonical layout."""
    cfg = _apply_parse_flags(_load_config(config), False, False, strict_file_position)
    updates: dict[str, object] = {}
    if crlf:
        updates["line_break"] = "\r\n"
    if tabs:
        updates["indent_kind"] = "\t"
    if indent_size is not None:
        if indent_size < 0:
            raise typer.BadParameter("--indent-size must not be negative")
        updates["indent_size"] = indent_size
    dump_opts = cfg.dump.model_copy(update=updates)

    try:
        result = parse(read_source(path), cfg.parse)
    except ParsingError as e:
        typer.echo(f"{path}:{e.position.line}:{e.position.column}: {e.kind.message}", err=True)
        raise typer.Exit(code=1) from e

    for e in result.errors:
        typer.echo(f"{path}:{e.position.line}:{e.position.column}: {e.kind.message}", err=True)
    if result.errors and not force:
        log.warning("format_skipped", path=str(path), errors=len(result.errors))
        raise typer.Exit(code=1)

    text = dump(result.sheet, dump_opts)
    if out is None:
        typer.echo(text, nl=False)
    else:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8", newline="")
        log.info("format_done", path=str(path), out=str(out))


if __name__ == "__main__":
    app()
