"""Locate the project root for a file."""

from __future__ import annotations

import glob
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "KAK_LSP_PROJECT_ROOT_"


def find_project_root(language: str, markers: list[str], path: str) -> str:
    """Pick the root from environment overrides, falling back to marker files."""
    env_roots = gather_env_roots(language)
    if env_roots:
        found = roots_by_env(env_roots, path)
        if found is not None:
            return found
    return roots_by_marker(markers, path)


def roots_by_marker(roots: list[str], path: str) -> str:
    """Walk up from ``path`` and return the first directory holding a marker.

    Markers are tried in order; each one is searched all the way up before
    the next is tried. Without a match the file's own directory is returned.
    """
    src = Path(path)
    # Scratch buffers come as a bare name.
    if not src.is_absolute():
        src = Path.cwd()
    while not src.is_dir():
        src = src.parent

    for root in roots:
        for directory in (src, *src.parents):
            pattern = str(directory / root)
            if next(glob.iglob(pattern, include_hidden=True), None) is not None:
                return str(directory)
    return str(src)


def gather_env_roots(language: str) -> set[Path]:
    """Collect roots from variables named ``KAK_LSP_PROJECT_ROOT_<LANGUAGE>*``."""
    prefix = ENV_PREFIX + language.upper()
    logger.debug("Searching for vars starting with %s", prefix)
    return {Path(value) for key, value in os.environ.items() if key.startswith(prefix)}


def roots_by_env(roots: set[Path], path: str) -> str | None:
    """Return the first of ``roots`` that contains ``path``, if any."""
    p = Path(path)
    pwd = p.parent if p.is_file() else p
    for root in roots:
        if pwd.is_relative_to(root):
            return str(root)
    return None