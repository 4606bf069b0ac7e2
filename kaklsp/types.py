"""Configuration, editor request and position types."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConfigError(ValueError):
    """Raised when a configuration file or an editor request is malformed."""


class OffsetEncoding(Enum):
    """How a language server interprets ``Position.character``."""

    UTF8 = "utf-8"
    UTF16 = "utf-16"


@dataclass(frozen=True)
class Position:
    """A zero-based LSP position."""

    line: int
    character: int

    def to_lsp(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    """An LSP range with an exclusive end."""

    start: Position
    end: Position

    def to_lsp(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_lsp(), "end": self.end.to_lsp()}


@dataclass(frozen=True)
class TextEdit:
    """Replacement of an LSP range with new text."""

    range: Range
    new_text: str

    def to_lsp(self) -> dict[str, Any]:
        return {"range": self.range.to_lsp(), "newText": self.new_text}


@dataclass(frozen=True)
class KakounePosition:
    """A one-based editor position; ``column`` counts bytes."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}.{self.column}"


@dataclass(frozen=True)
class KakouneRange:
    """An inclusive editor range."""

    start: KakounePosition
    end: KakounePosition

    def __str__(self) -> str:
        return f"{self.start},{self.end}"


@dataclass
class ServerConfig:
    session: str = ""
    timeout: int = 0


@dataclass
class LanguageConfig:
    filetypes: list[str]
    roots: list[str]
    command: str
    args: list[str] = field(default_factory=list)
    initialization_options: Any = None
    offset_encoding: OffsetEncoding = OffsetEncoding.UTF16


@dataclass
class SemanticTokenConfig:
    token: str
    face: str
    modifiers: list[str] = field(default_factory=list)


@dataclass
class Config:
    language: dict[str, LanguageConfig]
    server: ServerConfig = field(default_factory=ServerConfig)
    verbosity: int = 0
    snippet_support: bool = False
    semantic_tokens: list[SemanticTokenConfig] = field(default_factory=list)


@dataclass
class EditorMeta:
    session: str
    buffile: str
    filetype: str
    version: int
    client: str | None = None
    fifo: str | None = None


@dataclass
class EditorRequest:
    meta: EditorMeta
    method: str
    params: Any
    ranges: list[Range] | None = None


@dataclass(frozen=True)
class Route:
    """Identifies one controller: editor session, language and project root."""

    session: str
    language: str
    root: str


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _lsp_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key) if isinstance(data, Mapping) else None
    if not _is_int(value) or value < 0:
        raise ValueError(f"expected a non-negative integer for {key!r}, got {value!r}")
    return value


def position_from_lsp(data: Mapping[str, Any]) -> Position:
    """Build a Position from its LSP JSON form."""
    return Position(_lsp_int(data, "line"), _lsp_int(data, "character"))


def range_from_lsp(data: Mapping[str, Any]) -> Range:
    """Build a Range from its LSP JSON form."""
    if not isinstance(data, Mapping) or "start" not in data or "end" not in data:
        raise ValueError(f"expected a range with start and end, got {data!r}")
    return Range(position_from_lsp(data["start"]), position_from_lsp(data["end"]))


def text_edit_from_lsp(data: Mapping[str, Any]) -> TextEdit:
    """Build a TextEdit from a plain or annotated LSP text edit."""
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a text edit, got {data!r}")
    new_text = data.get("newText")
    if not isinstance(new_text, str):
        raise ValueError(f"expected string newText, got {new_text!r}")
    return TextEdit(range_from_lsp(data.get("range")), new_text)


def _field(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ConfigError(f"missing field `{key}` in {where}")
    return data[key]


def _str(value: Any, key: str, where: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"`{key}` in {where} must be a string, got {value!r}")
    return value


def _str_list(value: Any, key: str, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"`{key}` in {where} must be a list of strings, got {value!r}")
    return list(value)


def _optional_str(data: Mapping[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    return None if value is None else _str(value, key, where)


def _language_from_dict(name: str, data: Any) -> LanguageConfig:
    where = f"language.{name}"
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where} must be a table")
    encoding_name = data.get("offset_encoding", OffsetEncoding.UTF16.value)
    try:
        encoding = OffsetEncoding(encoding_name)
    except ValueError:
        raise ConfigError(
            f"unknown offset_encoding {encoding_name!r} in {where}, "
            "expected `utf-8` or `utf-16`"
        ) from None
    return LanguageConfig(
        filetypes=_str_list(_field(data, "filetypes", where), "filetypes", where),
        roots=_str_list(_field(data, "roots", where), "roots", where),
        command=_str(_field(data, "command", where), "command", where),
        args=_str_list(data.get("args", []), "args", where),
        initialization_options=data.get("initialization_options"),
        offset_encoding=encoding,
    )


def _server_from_dict(data: Any) -> ServerConfig:
    if not isinstance(data, Mapping):
        raise ConfigError("server must be a table")
    session = _str(data.get("session", ""), "session", "server")
    timeout = data.get("timeout", 0)
    if not _is_int(timeout) or timeout < 0:
        raise ConfigError(f"`timeout` in server must be a non-negative integer, got {timeout!r}")
    return ServerConfig(session=session, timeout=timeout)


def _semantic_tokens_from_list(data: Any) -> list[SemanticTokenConfig]:
    hint = (
        "\nsemantic_tokens must be a list of tables with `token`, `face` "
        "and optional `modifiers`"
    )
    if not isinstance(data, list):
        raise ConfigError(f"invalid type for semantic_tokens: expected a sequence{hint}")
    tokens = []
    for entry in data:
        if not isinstance(entry, Mapping):
            raise ConfigError(f"invalid semantic token entry {entry!r}{hint}")
        where = "semantic_tokens"
        try:
            tokens.append(
                SemanticTokenConfig(
                    token=_str(_field(entry, "token", where), "token", where),
                    face=_str(_field(entry, "face", where), "face", where),
                    modifiers=_str_list(entry.get("modifiers", []), "modifiers", where),
                )
            )
        except ConfigError as exc:
            raise ConfigError(f"{exc}{hint}") from None
    return tokens


def config_from_dict(data: Mapping[str, Any]) -> Config:
    """Validate a decoded configuration document and build a Config."""
    if not isinstance(data, Mapping):
        raise ConfigError("configuration must be a table")
    languages = _field(data, "language", "configuration")
    if not isinstance(languages, Mapping):
        raise ConfigError("`language` must be a table")
    verbosity = data.get("verbosity", 0)
    if not _is_int(verbosity) or not 0 <= verbosity <= 255:
        raise ConfigError(f"`verbosity` must be an integer from 0 to 255, got {verbosity!r}")
    snippet_support = data.get("snippet_support", False)
    if not isinstance(snippet_support, bool):
        raise ConfigError(f"`snippet_support` must be a boolean, got {snippet_support!r}")
    return Config(
        language={name: _language_from_dict(name, value) for name, value in languages.items()},
        server=_server_from_dict(data.get("server", {})),
        verbosity=verbosity,
        snippet_support=snippet_support,
        semantic_tokens=_semantic_tokens_from_list(data.get("semantic_tokens", [])),
    )


def parse_config(text: str) -> Config:
    """Parse a TOML configuration document."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc)) from exc
    return config_from_dict(data)


def parse_editor_request(text: str) -> EditorRequest:
    """Parse a TOML request sent by the editor."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(exc)) from exc
    where = "request"
    version = _field(data, "version", where)
    if not _is_int(version) or not -(2**31) <= version < 2**31:
        raise ConfigError(f"`version` in request must be a 32-bit integer, got {version!r}")
    meta = EditorMeta(
        session=_str(_field(data, "session", where), "session", where),
        buffile=_str(_field(data, "buffile", where), "buffile", where),
        filetype=_str(_field(data, "filetype", where), "filetype", where),
        version=version,
        client=_optional_str(data, "client", where),
        fifo=_optional_str(data, "fifo", where),
    )
    raw_ranges = data.get("ranges")
    ranges = None
    if raw_ranges is not None:
        if not isinstance(raw_ranges, list):
            raise ConfigError("`ranges` in request must be a list")
        try:
            ranges = [range_from_lsp(item) for item in raw_ranges]
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    return EditorRequest(
        meta=meta,
        method=_str(_field(data, "method", where), "method", where),
        params=_field(data, "params", where),
        ranges=ranges,
    )