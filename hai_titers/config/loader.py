from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config/analysis.yml
- Validate against config_schema.json (additionalProperties: false)
- Apply defaults for everything except source_url

The layout assumptions about the publication's table (which table, which
row is the embedded header, how group rows look) live here and nowhere else.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/analysis.yml")

# 対象テーブルは文書中の先頭テーブル (位置依存の前提はこの定数だけ)
TARGET_TABLE_INDEX = 0
HEADER_ROW_INDEX = 0
GROUP_HEADER_PATTERN = r"^Group\b"
GROUP_CHAR_OFFSET = len("Group ")
FLOOR_SENTINELS: dict[str, float] = {"<4": 1}
MISSING_SENTINELS: tuple[str, ...] = ("NS",)
ELDERLY_AGE = 65
DEFAULT_OUTPUT = "figures/titer_increase.png"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FigureConfig:
    width: float = 7.0
    height: float = 5.0
    dpi: int = 150


@dataclass(frozen=True)
class RequestConfig:
    timeout_seconds: float | None = None  # None = block until the body arrives
    user_agent: str = "hai-titers/0.1"


@dataclass(frozen=True)
class AnalysisConfig:
    source_url: str
    table_index: int = TARGET_TABLE_INDEX
    header_row_index: int = HEADER_ROW_INDEX
    group_header_pattern: str = GROUP_HEADER_PATTERN
    group_char_offset: int = GROUP_CHAR_OFFSET
    floor_sentinels: dict[str, float] = field(default_factory=lambda: dict(FLOOR_SENTINELS))
    missing_sentinels: tuple[str, ...] = MISSING_SENTINELS
    elderly_age: int = ELDERLY_AGE
    output: str = DEFAULT_OUTPUT
    figure: FigureConfig = field(default_factory=FigureConfig)
    request: RequestConfig = field(default_factory=RequestConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing source_url, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AnalysisConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    pattern = data.get("group_header_pattern", GROUP_HEADER_PATTERN)
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"invalid group_header_pattern: {e}") from e

    fig_raw = data.get("figure", {})
    req_raw = data.get("request", {})
    return AnalysisConfig(
        source_url=data["source_url"],
        table_index=data.get("table_index", TARGET_TABLE_INDEX),
        header_row_index=data.get("header_row_index", HEADER_ROW_INDEX),
        group_header_pattern=pattern,
        group_char_offset=data.get("group_char_offset", GROUP_CHAR_OFFSET),
        floor_sentinels=dict(data.get("floor_sentinels", FLOOR_SENTINELS)),
        missing_sentinels=tuple(data.get("missing_sentinels", MISSING_SENTINELS)),
        elderly_age=data.get("elderly_age", ELDERLY_AGE),
        output=data.get("output", DEFAULT_OUTPUT),
        figure=FigureConfig(
            width=fig_raw.get("width", FigureConfig.width),
            height=fig_raw.get("height", FigureConfig.height),
            dpi=fig_raw.get("dpi", FigureConfig.dpi),
        ),
        request=RequestConfig(
            timeout_seconds=req_raw.get("timeout_seconds"),
            user_agent=req_raw.get("user_agent", RequestConfig.user_agent),
        ),
    )
