"""Apply LSP text edits to files on disk or render them as editor commands."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from itertools import accumulate, groupby, pairwise

from kaklsp.position import (
    EOL_OFFSET,
    _byte_to_char,
    _split_lines,
    lsp_range_to_kakoune,
)
from kaklsp.types import KakouneRange, OffsetEncoding, TextEdit
from kaklsp.util import editor_quote, uri_to_path


def _offset_code_points(line: str, character: int) -> int | None:
    return character if character < len(line) else None


def _offset_code_units(line: str, character: int) -> int | None:
    if character < len(line.encode("utf-8")):
        return _byte_to_char(line, character)
    return None


def _apply_edits(
    text: str, text_edits: Sequence[TextEdit], offset_encoding: OffsetEncoding
) -> str:
    character_to_offset: Callable[[str, int], int | None] = (
        _offset_code_units if offset_encoding is OffsetEncoding.UTF8 else _offset_code_points
    )
    lines = _split_lines(text)
    line_starts = [0, *accumulate(len(line) for line in lines)]
    pieces = []
    cursor = 0
    for edit in text_edits:
        start, end = edit.range.start, edit.range.end
        if start.line >= len(lines) or end.line >= len(lines):
            raise ValueError("Text edit range extends past end of file.")
        start_offset = character_to_offset(lines[start.line], start.character)
        end_offset = character_to_offset(lines[end.line], end.character)
        if start_offset is None or end_offset is None:
            raise ValueError("Text edit range points past end of line.")
        start_char = line_starts[start.line] + start_offset
        end_char = line_starts[end.line] + end_offset
        if start_char < cursor:
            raise ValueError("Text edits overlap or are out of order.")
        pieces.append(text[cursor:start_char])
        pieces.append(edit.new_text)
        cursor = end_char
    pieces.append(text[cursor:])
    return "".join(pieces)


def apply_text_edits_to_file(
    uri: str, text_edits: Sequence[TextEdit], offset_encoding: OffsetEncoding
) -> None:
    """Apply edits, in order, to the file behind ``uri``.

    The result goes to a temporary file next to the original, which then
    replaces it and gets the original permissions.  Raises PermissionError if
    the file cannot be examined and ValueError for edits outside the text.
    """
    path = uri_to_path(uri)
    filename = str(path)
    try:
        mode = stat.S_IMODE(os.stat(filename).st_mode)
    except OSError:
        raise PermissionError(f"Failed to stat {filename}") from None

    with open(filename, encoding="utf-8", newline="") as source:
        text = source.read()

    fd, temp_path = tempfile.mkstemp(prefix=f"{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as output:
            output.write(_apply_edits(text, text_edits, offset_encoding))
        os.replace(temp_path, filename)
    except BaseException:
        try:
            os.remove(temp_path)
        except OSError:
            pass
        raise
    os.chmod(filename, mode)


class _Command(Enum):
    INSERT_BEFORE = "lsp-insert-before-selection"
    REPLACE = "lsp-replace-selection"


@dataclass(frozen=True)
class _KakouneTextEdit:
    range: KakouneRange
    new_text: str
    command: _Command


def _to_kakoune(edit: TextEdit, text: str, offset_encoding: OffsetEncoding) -> _KakouneTextEdit:
    insert = edit.range.start == edit.range.end
    return _KakouneTextEdit(
        range=lsp_range_to_kakoune(edit.range, text, offset_encoding),
        new_text=edit.new_text,
        command=_Command.INSERT_BEFORE if insert else _Command.REPLACE,
    )


def _merges_with_next(current: _KakouneTextEdit, following: _KakouneTextEdit) -> bool:
    end = current.range.end
    start = following.range.start
    # Replacing an adjoining selection with nothing removes it.
    remove_adjoin = (
        current.new_text == "" and end.line == start.line and end.column + 1 == start.column
    ) or (end.line + 1 == start.line and end.column == EOL_OFFSET and start.column == 1)
    # Inserting in the same place does not produce an extra selection.
    insert_the_same = end.line == start.line and end.column == start.column
    return remove_adjoin or insert_the_same


def apply_text_edits_to_buffer(
    uri: str | None,
    text_edits: Sequence[TextEdit],
    text: str,
    offset_encoding: OffsetEncoding,
) -> str | None:
    """Build the editor command that applies ``text_edits`` to a buffer.

    Returns None when there are no edits, since the editor's ``select``
    command needs at least one range.
    """
    if not text_edits:
        return None

    # Stable sort keeps several inserts at one place in their given order.
    edits = sorted(
        (_to_kakoune(edit, text, offset_encoding) for edit in text_edits),
        key=lambda e: (
            e.range.start.line,
            e.range.start.column,
            e.range.end.line,
            e.range.end.column,
        ),
    )

    select_edits = " ".join(key for key, _ in groupby(str(edit.range) for edit in edits))

    merged_selections = {
        i for i, (current, following) in enumerate(pairwise(edits))
        if _merges_with_next(current, following)
    }

    commands = []
    selection_index = 0
    for i, edit in enumerate(edits):
        rotate = f"{selection_index})" if selection_index > 0 else ""
        commands.append(
            f"exec 'z{rotate}<space>'\n"
            f"                    {edit.command.value} {editor_quote(edit.new_text)}"
        )
        if i not in merged_selections:
            selection_index += 1
    apply_edits = "\n".join(commands)

    command = (
        f"select {select_edits}\n"
        f"            exec -save-regs '' Z\n"
        f"            {apply_edits}"
    )
    command = f"eval -draft -save-regs '^' {editor_quote(command)}"

    if uri is not None:
        try:
            buffile = str(uri_to_path(uri))
        except ValueError:
            return command
        return f"eval -buffer {editor_quote(buffile)} {editor_quote(command)}"
    return command