"""Build backends."""

from .nix import NixBuildBackend, dump_with_lines

__all__ = ["NixBuildBackend", "dump_with_lines"]
