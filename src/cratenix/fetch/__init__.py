"""Source fetchers that turn a source descriptor into a content hash."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, assert_never

from cratenix.config import PrefetchConfig
from cratenix.errors import UnexpectedSourceKind
from cratenix.models import GitSource, OtherSource, RegistrySource, SourceDescriptor

from .git import GitFetcher, parse_prefetch_git_output
from .process import command_output
from .registry import RegistryFetcher


class SourceFetcher(Protocol):
    async def prefetch(self, source: SourceDescriptor) -> str: ...


@dataclass(frozen=True, slots=True)
class Fetchers:
    """One fetcher per hash-bearing source kind."""

    registry: SourceFetcher = field(default_factory=RegistryFetcher)
    git: SourceFetcher = field(default_factory=GitFetcher)

    @classmethod
    def from_config(cls, config: PrefetchConfig) -> Fetchers:
        return cls(
            registry=RegistryFetcher(
                command=config.url_prefetch_command,
                url_template=config.registry_url_template,
            ),
            git=GitFetcher(command=config.git_prefetch_command),
        )

    async def prefetch(self, source: SourceDescriptor) -> str:
        match source:
            case RegistrySource():
                return await self.registry.prefetch(source)
            case GitSource():
                return await self.git.prefetch(source)
            case OtherSource():
                raise UnexpectedSourceKind(
                    "Source does not need prefetching.",
                    context={"source": repr(source)},
                )
            case _:
                assert_never(source)


__all__ = [
    "Fetchers",
    "GitFetcher",
    "RegistryFetcher",
    "SourceFetcher",
    "command_output",
    "parse_prefetch_git_output",
]
