from __future__ import annotations

import codecs
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from log2csv.models.settings import EmitterSettings, ReaderSettings, ToolConfig

"""Config loader.

Responsibilities:
- Load an optional YAML config file (reader limits, emitter options, encoding)
- Validate it against config_schema.json (unknown keys rejected)
- Apply defaults for every absent key
- Check cross-field constraints the schema cannot express
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the data
            violates the schema (wrong types, unknown keys, ...)
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


def _check_encoding(name: str) -> str:
    """Return ``name`` if it is a known text encoding that keeps CR / LF as single bytes.

    The reader splits raw bytes on LF before decoding, so UTF-16 / UTF-32
    and non-text codecs (hex, base64, ...) cannot be used.
    """
    try:
        codecs.lookup(name)
    except LookupError as e:
        raise ConfigError(f"unknown encoding: {name}") from e
    try:
        ascii_safe = "\r\n".encode(name) == b"\r\n"
    except (LookupError, UnicodeError):
        ascii_safe = False
    if not ascii_safe:
        raise ConfigError(f"encoding must be ASCII-compatible: {name}")
    return name


def build_config(data: dict[str, Any]) -> ToolConfig:
    """Build a ToolConfig from already-parsed mapping data (validated here)."""
    _validate_config_schema(data)

    encoding = _check_encoding(data.get("encoding", "utf-8"))
    reader_raw = data.get("reader") or {}
    emitter_raw = data.get("emitter") or {}

    defaults = ReaderSettings()
    reader = ReaderSettings(
        max_line_size=reader_raw.get("max_line_size", defaults.max_line_size),
        max_buffer_size=reader_raw.get("max_buffer_size", defaults.max_buffer_size),
        peek_size=reader_raw.get("peek_size", defaults.peek_size),
        chunk_size=reader_raw.get("chunk_size", defaults.chunk_size),
        encoding=encoding,
    )
    if reader.max_buffer_size < reader.max_line_size:
        raise ConfigError(
            f"reader.max_buffer_size ({reader.max_buffer_size}) must be >= "
            f"reader.max_line_size ({reader.max_line_size})"
        )

    emitter = EmitterSettings(
        separator=emitter_raw.get("separator", ","),
        quote_char=emitter_raw.get("quote_char", '"'),
        flush_each_row=emitter_raw.get("flush_each_row", True),
        encoding=encoding,
    )
    if emitter.separator == emitter.quote_char:
        raise ConfigError("emitter.separator must differ from emitter.quote_char")

    return ToolConfig(reader=reader, emitter=emitter)


def load_config(path: Path | None) -> ToolConfig:
    """Load config from ``path``; None means built-in defaults."""
    if path is None:
        return ToolConfig()
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return build_config(data)
