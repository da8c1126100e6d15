"""Git source hashing via ``nix-prefetch-git``."""

from __future__ import annotations

import json
from dataclasses import dataclass

from cratenix.errors import OutputNotDecodable, UnexpectedSourceKind
from cratenix.fetch.process import command_output
from cratenix.models import GitSource, SourceDescriptor


@dataclass(frozen=True, slots=True)
class GitFetcher:
    command: str = "nix-prefetch-git"

    def command_args(self, source: GitSource) -> list[str]:
        args = ["--url", source.url, "--fetch-submodules", "--rev", source.rev]
        # nix-prefetch-git only accepts a branch here; tags must go through --rev.
        if source.ref is not None:
            args.extend(["--branch-name", source.ref])
        return args

    async def prefetch(self, source: SourceDescriptor) -> str:
        """Return the ``sha256`` field of the prefetcher's JSON report."""
        if not isinstance(source, GitSource):
            raise UnexpectedSourceKind(
                "Invalid source type for prefetching using git.",
                context={"source": repr(source)},
            )
        args = self.command_args(source)
        output = await command_output(self.command, args)
        return parse_prefetch_git_output(output, argv=" ".join([self.command, *args]))


def parse_prefetch_git_output(output: str, *, argv: str = "") -> str:
    try:
        payload = json.loads(output)
    except json.JSONDecodeError as exc:
        raise OutputNotDecodable(
            "Git prefetcher output is not valid JSON.",
            context={"argv": argv, "stdout": output, "error": str(exc)},
        ) from exc
    sha256 = payload.get("sha256") if isinstance(payload, dict) else None
    if not isinstance(sha256, str) or not sha256:
        raise OutputNotDecodable(
            "Git prefetcher output has no `sha256` field.",
            context={"argv": argv, "stdout": output},
        )
    return sha256
