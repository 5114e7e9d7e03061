from pathlib import Path

import pytest
from pydantic import ValidationError

from cue_sheet.common.config import AppConfig, load_yaml


def test_defaults() -> None:
    cfg = AppConfig()
    assert cfg.parse.fatal is False
    assert cfg.parse.check_at_least_one_track is False
    assert cfg.parse.strict_file_command_position is False
    assert cfg.dump.line_break == "\n"
    assert cfg.dump.indent_kind == " "
    assert cfg.dump.indent_size == 2


def test_load_yaml(tmp_path: Path) -> None:
    p = tmp_path / "cue.yaml"
    p.write_text(
        "parse:\n"
        "  check_at_least_one_track: true\n"
        "dump:\n"
        '  line_break: "\\r\\n"\n'
        '  indent_kind: "\\t"\n',
        encoding="utf-8",
    )
    cfg = load_yaml(p)
    assert cfg.parse.check_at_least_one_track is True
    assert cfg.parse.fatal is False
    assert cfg.dump.line_break == "\r\n"
    assert cfg.dump.indent_kind == "\t"
    assert cfg.dump.indent_size == 2


def test_load_empty_yaml(tmp_path: Path) -> None:
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_yaml(p) == AppConfig()


def test_load_yaml_rejects_bad_values(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("dump:\n  indent_size: -3\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_yaml(p)
