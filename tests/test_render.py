import pytest

from cratenix.render import escape_nix_string, nix_list


def test_escape_plain_string_is_quoted() -> None:
    assert escape_nix_string("default") == '"default"'


def test_escape_quotes_backslashes_and_antiquotation() -> None:
    assert escape_nix_string('a"b') == '"a\\"b"'
    assert escape_nix_string("a\\b") == '"a\\\\b"'
    assert escape_nix_string("${x}") == '"\\${x}"'
    assert escape_nix_string("$x") == '"$x"'


@pytest.mark.parametrize(
    "raw",
    ['quote"inside', "back\\slash", '\\"', "trailing\\", "${pkgs.hello}", "$$", "plain-feature"],
)
def test_escaped_string_parses_back_to_original(raw: str) -> None:
    assert _parse_nix_string(escape_nix_string(raw)) == raw


def test_nix_list_joins_escaped_values() -> None:
    assert nix_list(["default", 'odd"name']) == '[ "default" "odd\\"name" ]'
    assert nix_list([]) == "[  ]"


def _parse_nix_string(literal: str) -> str:
    """Decode a double-quoted Nix string literal without antiquotations."""
    assert literal.startswith('"') and literal.endswith('"')
    body = literal[1:-1]
    chars: list[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\":
            index += 1
            chars.append(body[index])
        else:
            assert char != '"', f"unescaped quote in {literal!r}"
            assert body[index : index + 2] != "${", f"live antiquotation in {literal!r}"
            chars.append(char)
        index += 1
    return "".join(chars)
