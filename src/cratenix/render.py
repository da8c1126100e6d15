"""Helpers for embedding values into generated Nix expressions."""

from __future__ import annotations

from collections.abc import Iterable


def escape_nix_string(raw: str) -> str:
    """Quote ``raw`` as a Nix string literal.

    Backslashes, double quotes and the ``${`` antiquotation opener are
    backslash-escaped; a lone ``$`` is left alone.
    """
    escaped: list[str] = ['"']
    for index, char in enumerate(raw):
        if char in ('\\', '"') or (char == "$" and raw[index + 1 : index + 2] == "{"):
            escaped.append("\\")
        escaped.append(char)
    escaped.append('"')
    return "".join(escaped)


def nix_list(values: Iterable[str]) -> str:
    """Render ``values`` as a Nix list of string literals."""
    return "[ {} ]".format(" ".join(escape_nix_string(value) for value in values))
