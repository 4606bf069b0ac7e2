"""Conversion between LSP positions and the editor's range-spec.

LSP positions are zero-based with an exclusive range end; the editor's are
one-based, inclusive, and count columns in bytes.  Character offsets sent by
a language server are read as Unicode code points by default (which matches
UTF-16 code units inside the Basic Multilingual Plane), or as bytes when the
language is configured with ``offset_encoding = "utf-8"``.
"""

from __future__ import annotations

import re

from kaklsp.types import KakounePosition, KakouneRange, OffsetEncoding, Position, Range

EOL_OFFSET = 1_000_000
"""Column large enough that the editor clamps it to the end of the line."""

_BEYOND_LINE = 999_999_999

_LINE_BREAK = re.compile(r"\r\n|[\n\v\f\r\x85\u2028\u2029]")


def _split_lines(text: str) -> list[str]:
    """Split text into lines that keep their line endings.

    A text ending in a line break has a final empty line, and an empty text
    has one empty line.
    """
    lines = []
    start = 0
    for match in _LINE_BREAK.finditer(text):
        lines.append(text[start:match.end()])
        start = match.end()
    lines.append(text[start:])
    return lines


def _char_to_byte(line: str, char_index: int) -> int:
    return len(line[:char_index].encode("utf-8"))


def _byte_to_char(line: str, byte_index: int) -> int:
    """Index of the character holding ``byte_index``."""
    return len(line.encode("utf-8")[:byte_index].decode("utf-8", errors="ignore"))


def get_line(line_number: int, text: str) -> str:
    """Return a line of ``text``, or the last one if ``line_number`` is past the end."""
    lines = _split_lines(text)
    return lines[min(line_number, len(lines) - 1)]


def _get_byte_index(char_index: int, line: str) -> int:
    return _char_to_byte(line, min(char_index, len(line)))


def lsp_range_to_kakoune(range: Range, text: str, offset_encoding: OffsetEncoding) -> KakouneRange:
    """Convert an LSP range to the editor's range-spec."""
    if offset_encoding is OffsetEncoding.UTF8:
        return _range_from_code_units(range)
    return _range_from_code_points(range, text)


def lsp_position_to_kakoune(
    position: Position, text: str, offset_encoding: OffsetEncoding
) -> KakounePosition:
    """Convert an LSP position to an editor position."""
    if offset_encoding is OffsetEncoding.UTF8:
        return KakounePosition(position.line + 1, position.character + 1)
    return _position_from_code_points(position, text)


def kakoune_position_to_lsp(
    position: KakounePosition, text: str, offset_encoding: OffsetEncoding
) -> Position:
    """Convert an editor position to an LSP position."""
    if offset_encoding is OffsetEncoding.UTF8:
        return Position(position.line - 1, position.column - 1)
    return _position_to_code_points(position, text)


def _range_from_code_points(range: Range, text: str) -> KakouneRange:
    start, end = range.start, range.end
    start_byte = _get_byte_index(start.character, get_line(start.line, text))
    end_byte = _get_byte_index(end.character, get_line(end.line, text))
    return _range_from_code_units(
        Range(Position(start.line, start_byte), Position(end.line, end_byte))
    )


def _range_from_code_units(range: Range) -> KakouneRange:
    start, end = range.start, range.end
    insert = start == end
    # At the beginning of a line the insertion selects that line and inserts
    # before it, which keeps delete-then-insert sequences working.
    bol_insert = insert and end.character == 0
    start_byte = start.character

    # A zero-length LSP range becomes the shortest editor range: one column.
    if insert:
        end_byte = start_byte
    elif end.character > 0:
        end_byte = end.character - 1
    else:
        end_byte = EOL_OFFSET - 1

    end_line = end.line if bol_insert or end.character > 0 else end.line - 1

    return KakouneRange(
        KakounePosition(start.line + 1, start_byte + 1),
        KakounePosition(end_line + 1, end_byte + 1),
    )


def _position_to_code_points(position: KakounePosition, text: str) -> Position:
    line_idx = position.line - 1
    col_idx = position.column - 1
    lines = _split_lines(text)
    if line_idx >= len(lines):
        return Position(line_idx, col_idx)
    line = lines[line_idx]
    if col_idx >= len(line.encode("utf-8")):
        return Position(line_idx, col_idx)
    return Position(line_idx, _byte_to_char(line, col_idx))


def _position_from_code_points(position: Position, text: str) -> KakounePosition:
    lines = _split_lines(text)
    if position.line >= len(lines):
        return KakounePosition(position.line + 1, _BEYOND_LINE)
    line = lines[position.line]
    if position.character >= len(line):
        return KakounePosition(position.line + 1, _BEYOND_LINE)
    return KakounePosition(position.line + 1, _char_to_byte(line, position.character) + 1)