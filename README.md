# kaklsp

Building blocks for a Language Server Protocol client for the Kakoune editor.

LSP servers and Kakoune count positions differently. LSP positions are 0-based, have exclusive
ends and count characters. Kakoune positions are 1-based, have inclusive ends and count bytes.
This package converts between the two. It also turns LSP text edits into Kakoune commands,
applies them to files on disk, and provides the configuration, project-root and workspace logic
that a client needs.

## Installation

```
pip install .
```

The package has no runtime dependencies beyond the Python 3.11+ standard library.

## Modules

- `kaklsp.types`
  - `parse_config(text)` reads a TOML configuration into a `Config`. `config_from_dict(data)`
    does the same for an already decoded table.
  - `parse_editor_request(text)` reads a TOML editor request into an `EditorRequest`
    (with its `EditorMeta`).
  - Both raise `ConfigError` (a `ValueError`) on invalid input.
  - `position_from_lsp`, `range_from_lsp` and `text_edit_from_lsp` build `Position`, `Range`
    and `TextEdit` from their LSP JSON form. They raise `ValueError` on malformed data.
    `text_edit_from_lsp` accepts annotated edits too.
  - Also defined: `KakounePosition` (prints as `line.column`), `KakouneRange` (prints as
    `start,end`), `OffsetEncoding` (`UTF8` = `"utf-8"`, `UTF16` = `"utf-16"`, the default),
    `ServerConfig`, `LanguageConfig`, `SemanticTokenConfig` and `Route`.
- `kaklsp.position`
  - `lsp_range_to_kakoune`, `lsp_position_to_kakoune` and `kakoune_position_to_lsp` convert
    between LSP and Kakoune coordinates, given the buffer text and the offset encoding.
  - With `UTF16`, character offsets are read as code points and converted to byte columns.
  - With `UTF8`, they are taken as bytes.
  - `get_line` returns a line of text, clamped to the last line.
  - `EOL_OFFSET` is the column used to mean "end of line".
- `kaklsp.text_edit`
  - `apply_text_edits_to_buffer(uri, text_edits, text, offset_encoding)` builds the Kakoune
    command that applies edits to an open buffer. It returns `None` for an empty list.
  - `apply_text_edits_to_file(uri, text_edits, offset_encoding)` rewrites a file through a
    temporary file next to it and keeps its permissions. It raises `ValueError` for edits that
    fall outside the text.
- `kaklsp.project_root`
  - `find_project_root(language, markers, path)` first checks environment variables whose names
    start with `KAK_LSP_PROJECT_ROOT_<LANGUAGE>`.
  - It then walks up the directory tree looking for marker globs (`roots_by_marker`).
  - `gather_env_roots` and `roots_by_env` are the pieces used for the environment step.
- `kaklsp.workspace`
  - `explode_string_table` turns flattened `"a.b" = 1` settings into nested objects. It logs
    and skips conflicting keys.
  - `configuration_items` answers a `workspace/configuration` request from a language's
    initialization options.
  - `apply_document_resource_op` performs `create`, `rename` and `delete` operations on files.
- `kaklsp.thread_worker`: `Worker(name, capacity, target)` runs `target(incoming, emit)` on a
  named thread.
  - Input goes through a bounded queue with `send`; output is read with `receive(timeout)`.
  - `receive` raises `TimeoutError` if nothing arrives in time, or `EOFError` once the worker
    has finished and its output is drained.
  - `close()`, or leaving a `with` block, stops input, joins the thread and re-raises any
    failure from the thread.
- `kaklsp.util`
  - `editor_escape` and `editor_quote` escape and quote Kakoune strings.
  - `temp_dir` returns the per-user session directory and creates it if needed.
  - `uri_to_path` and `path_to_uri` convert between `file:` URIs and paths.
  - `short_file_path` makes a path relative to a directory.
  - `filetype_to_language_id_map` maps each configured filetype to its language.
  - `cleanup_session_files` removes a session's socket and pid files.

## Example

```python
from kaklsp.types import OffsetEncoding, range_from_lsp
from kaklsp.position import lsp_range_to_kakoune

rng = range_from_lsp({"start": {"line": 10, "character": 0},
                      "end": {"line": 11, "character": 0}})
print(lsp_range_to_kakoune(rng, "", OffsetEncoding.UTF8))  # 11.1,11.1000000
```

## What it does not do

This is a library only. It has no command-line program. It does not run a session server
listening on a socket, talk to Kakoune, or start and speak to language server processes. Those
parts are left to the program that uses these helpers.

## Running the tests

```
pip install .[test]
pytest
```