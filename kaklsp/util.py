"""Shared helpers: session directory, editor quoting and path handling."""

from __future__ import annotations

import getpass
import logging
import os
import tempfile
from pathlib import Path, PurePath
from urllib.parse import unquote, urlsplit

from kaklsp.types import Config

logger = logging.getLogger(__name__)


def temp_dir() -> Path:
    """Return the per-user session directory, creating it when missing."""
    base = Path(tempfile.gettempdir()) / "kak-lsp"
    old_mask = os.umask(0)
    try:
        base.mkdir(mode=0o1777, parents=True, exist_ok=True)
    except OSError:
        pass
    finally:
        os.umask(old_mask)
    path = base / getpass.getuser()
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


def editor_escape(s: str) -> str:
    """Escape a string meant to be wrapped in single quotes for the editor."""
    return s.replace("'", "''")


def editor_quote(s: str) -> str:
    """Wrap a string in single quotes for the editor, escaping it."""
    return f"'{editor_escape(s)}'"


def filetype_to_language_id_map(config: Config) -> dict[str, str]:
    """Map every configured filetype to the language that handles it."""
    return {
        filetype: language_id
        for language_id, language in config.language.items()
        for filetype in language.filetypes
    }


def short_file_path(target: str, current_dir: str) -> str:
    """Return ``target`` relative to ``current_dir``, or unchanged if outside it."""
    try:
        relative = PurePath(target).relative_to(current_dir)
    except ValueError:
        return target
    return "" if relative == PurePath(".") else str(relative)


def uri_to_path(uri: str) -> Path:
    """Convert a ``file:`` URI into a local path."""
    parts = urlsplit(uri)
    if parts.scheme != "file":
        raise ValueError(f"not a file URI: {uri}")
    if parts.netloc not in ("", "localhost"):
        raise ValueError(f"file URI has a remote host: {uri}")
    return Path(unquote(parts.path))


def path_to_uri(path: str | os.PathLike[str]) -> str:
    """Convert an absolute local path into a ``file:`` URI."""
    p = Path(path)
    if not p.is_absolute():
        raise ValueError(f"path is not absolute: {path}")
    return p.as_uri()


def cleanup_session_files(session: str) -> None:
    """Remove the socket and pid files left behind by a session."""
    path = temp_dir()
    try:
        (path / session).unlink()
    except OSError:
        logger.warning("Failed to remove socket file")
    pid_path = path / f"{session}.pid"
    if pid_path.exists():
        try:
            pid_path.unlink()
        except OSError:
            logger.warning("Failed to remove pid file")