from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


class ParseOptions(BaseModel):
    # raise the first ParsingError instead of collecting it
    fatal: bool = False
    check_at_least_one_track: bool = False
    strict_file_command_position: bool = False


class DumpOptions(BaseModel):
    line_break: Literal["\n", "\r\n"] = "\n"
    indent_kind: Literal[" ", "\t"] = " "
    indent_size: int = Field(default=2, ge=0)


class AppConfig(BaseModel):
    parse: ParseOptions = ParseOptions()
    dump: DumpOptions = DumpOptions()


def load_yaml(path: str | Path) -> AppConfig:
    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return AppConfig(**data)
