"""Workspace settings and resource operations requested by a language server."""

from __future__ import annotations

import datetime
import logging
import os
import shutil
from collections.abc import Iterable, Mapping
from typing import Any

from kaklsp.util import uri_to_path

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Any:
    """Turn a decoded TOML value into plain JSON-compatible data."""
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return value


def _insert_value(
    target: dict[str, Any], path: list[str], local_key: str, value: Any
) -> None:
    """Store ``value`` under ``path`` + ``local_key``, creating tables on the way.

    Raises ValueError when a table on the path is some other value, or when an
    existing value was replaced (the replacement still takes place).
    """
    for key in path:
        nested = target.setdefault(key, {})
        if not isinstance(nested, dict):
            raise ValueError(f"Expected path {key!r} to be object, found {nested!r}")
        target = nested
    if local_key in target:
        old_value = target[local_key]
        target[local_key] = value
        raise ValueError(f"Replaced old value: {old_value!r}")
    target[local_key] = value


def explode_string_table(raw_settings: Mapping[str, Any]) -> dict[str, Any]:
    """Expand dotted keys such as ``"a.b" = 1`` into ``{"a": {"b": 1}}``.

    Settings that conflict with others are reported and skipped.
    """
    settings: dict[str, Any] = {}
    for raw_key in sorted(raw_settings):
        raw_value = raw_settings[raw_key]
        *path, local_key = raw_key.split(".")
        try:
            _insert_value(settings, path, local_key, _to_json(raw_value))
        except ValueError as exc:
            logger.warning("Could not set %r to %r: %s", raw_key, raw_value, exc)
    return settings


def configuration_items(
    items: Iterable[Mapping[str, Any]], initialization_options: Any
) -> list[Any]:
    """Answer a ``workspace/configuration`` request.

    Each item gets the value of its ``section`` in the language's
    initialization options, or None. Without options the answer is empty.
    """
    if initialization_options is None:
        return []
    settings = initialization_options if isinstance(initialization_options, Mapping) else {}
    answers = []
    for item in items:
        section = item.get("section")
        answers.append(settings.get(section) if isinstance(section, str) else None)
    return answers


def _ignore_if_exists(options: Mapping[str, Any] | None) -> bool:
    if not options:
        return False
    return not options.get("overwrite", False) and bool(options.get("ignoreIfExists", False))


def apply_document_resource_op(op: Mapping[str, Any]) -> None:
    """Carry out a create, rename or delete operation of a workspace edit.

    Raises OSError when the file system refuses and ValueError for an
    unknown operation kind.
    """
    kind = op.get("kind")
    options = op.get("options")
    if kind == "create":
        path = uri_to_path(op["uri"])
        if _ignore_if_exists(options) and path.exists():
            return
        path.write_bytes(b"")
    elif kind == "delete":
        path = uri_to_path(op["uri"])
        if path.is_dir():
            if options and options.get("recursive", False):
                shutil.rmtree(path)
            else:
                os.rmdir(path)
        elif path.is_file():
            path.unlink()
    elif kind == "rename":
        source = uri_to_path(op["oldUri"])
        target = uri_to_path(op["newUri"])
        if _ignore_if_exists(options) and target.exists():
            return
        os.rename(source, target)
    else:
        raise ValueError(f"unknown resource operation kind: {kind!r}")