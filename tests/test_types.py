import pytest

from kaklsp.types import (
    ConfigError,
    KakounePosition,
    KakouneRange,
    OffsetEncoding,
    Position,
    Range,
    Route,
    config_from_dict,
    parse_config,
    parse_editor_request,
    position_from_lsp,
    range_from_lsp,
    text_edit_from_lsp,
)

MINIMAL = """
[language.rust]
filetypes = ["rust"]
roots = ["Cargo.toml"]
command = "rls"
"""


def test_minimal_config_defaults():
    config = parse_config(MINIMAL)
    rust = config.language["rust"]
    assert rust.filetypes == ["rust"]
    assert rust.roots == ["Cargo.toml"]
    assert rust.command == "rls"
    assert rust.args == []
    assert rust.initialization_options is None
    assert rust.offset_encoding is OffsetEncoding.UTF16
    assert config.server.session == ""
    assert config.server.timeout == 0
    assert config.verbosity == 0
    assert config.snippet_support is False
    assert config.semantic_tokens == []


def test_full_config():
    text = MINIMAL + """
args = ["--stdio"]
offset_encoding = "utf-8"
[language.rust.initialization_options]
cargo = { features = ["all"] }
"""
    config = parse_config('verbosity = 2\nsnippet_support = true\n[server]\ntimeout = 1800\n' + text)
    rust = config.language["rust"]
    assert rust.args == ["--stdio"]
    assert rust.offset_encoding is OffsetEncoding.UTF8
    assert rust.initialization_options == {"cargo": {"features": ["all"]}}
    assert config.server.timeout == 1800
    assert config.verbosity == 2
    assert config.snippet_support is True


def test_semantic_tokens_list():
    config = parse_config(
        MINIMAL.replace("[language.rust]", 'semantic_tokens = [{token = "comment", face = "documentation", modifiers = ["documentation"]}, {token = "type", face = "type"}]\n[language.rust]')
    )
    assert [t.token for t in config.semantic_tokens] == ["comment", "type"]
    assert config.semantic_tokens[0].modifiers == ["documentation"]
    assert config.semantic_tokens[1].modifiers == []


def test_semantic_tokens_old_table_syntax_rejected():
    with pytest.raises(ConfigError, match="semantic_tokens"):
        parse_config("[semantic_tokens]\ntype = \"type\"\n" + MINIMAL)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "[language.rust]\nfiletypes = [\"rust\"]\nroots = []\n",
        MINIMAL + 'offset_encoding = "utf-32"\n',
        "verbosity = -1\n" + MINIMAL,
        "[server]\ntimeout = \"soon\"\n" + MINIMAL,
        "this is not toml",
    ],
)
def test_invalid_config(text):
    with pytest.raises(ConfigError):
        parse_config(text)


def test_config_from_dict_requires_mapping():
    with pytest.raises(ConfigError):
        config_from_dict(["language"])


def test_kakoune_position_display():
    assert str(KakounePosition(3, 7)) == "3.7"


def test_kakoune_range_display_joins_positions():
    start, end = KakounePosition(1, 2), KakounePosition(4, 5)
    assert str(KakouneRange(start, end)) == f"{start},{end}"


def test_position_round_trip():
    position = Position(4, 9)
    assert position_from_lsp(position.to_lsp()) == position


def test_range_round_trip():
    rng = Range(Position(0, 1), Position(2, 3))
    assert range_from_lsp(rng.to_lsp()) == rng


def test_text_edit_round_trip_and_annotation_ignored():
    data = {
        "range": {"start": {"line": 1, "character": 0}, "end": {"line": 1, "character": 4}},
        "newText": "name",
        "annotationId": "rename",
    }
    edit = text_edit_from_lsp(data)
    assert edit.new_text == "name"
    assert edit.range == Range(Position(1, 0), Position(1, 4))
    assert text_edit_from_lsp(edit.to_lsp()) == edit


@pytest.mark.parametrize("data", [{"line": 1}, {"line": -1, "character": 0}, {"line": True, "character": 0}])
def test_position_from_lsp_rejects_bad_data(data):
    with pytest.raises(ValueError):
        position_from_lsp(data)


def test_parse_editor_request():
    request = parse_editor_request(
        """
session = "s1"
client = "client0"
buffile = "/tmp/main.rs"
filetype = "rust"
version = 3
method = "textDocument/hover"
[params]
position = { line = 1, column = 2 }
"""
    )
    assert request.meta.session == "s1"
    assert request.meta.client == "client0"
    assert request.meta.buffile == "/tmp/main.rs"
    assert request.meta.filetype == "rust"
    assert request.meta.version == 3
    assert request.meta.fifo is None
    assert request.method == "textDocument/hover"
    assert request.params == {"position": {"line": 1, "column": 2}}
    assert request.ranges is None


def test_parse_editor_request_with_ranges():
    request = parse_editor_request(
        """
session = "s1"
buffile = "/tmp/a.c"
filetype = "c"
version = 1
fifo = "/tmp/fifo"
method = "textDocument/rangeFormatting"
params = {}
ranges = [{ start = { line = 0, character = 1 }, end = { line = 2, character = 3 } }]
"""
    )
    assert request.meta.fifo == "/tmp/fifo"
    assert request.ranges == [Range(Position(0, 1), Position(2, 3))]


def test_parse_editor_request_missing_method():
    with pytest.raises(ConfigError, match="method"):
        parse_editor_request('session = "s"\nbuffile = ""\nfiletype = ""\nversion = 0\nparams = {}\n')


def test_route_is_hashable_value():
    routes = {Route("s", "rust", "/p"): 1}
    assert routes[Route("s", "rust", "/p")] == 1
    assert Route("s", "rust", "/p") != Route("s", "rust", "/q")