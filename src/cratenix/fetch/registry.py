"""Registry source hashing via ``nix-prefetch-url``."""

from __future__ import annotations

from dataclasses import dataclass

from cratenix.config import DEFAULT_REGISTRY_URL_TEMPLATE
from cratenix.errors import UnexpectedSourceKind
from cratenix.fetch.process import command_output
from cratenix.models import RegistrySource, SourceDescriptor


@dataclass(frozen=True, slots=True)
class RegistryFetcher:
    command: str = "nix-prefetch-url"
    url_template: str = DEFAULT_REGISTRY_URL_TEMPLATE

    def download_url(self, source: RegistrySource) -> str:
        return self.url_template.format(name=source.name, version=source.version)

    def command_args(self, source: RegistrySource) -> list[str]:
        return [self.download_url(source), "--name", f"{source.name}-{source.version}"]

    async def prefetch(self, source: SourceDescriptor) -> str:
        """Return the hash printed by the URL prefetcher for ``source``."""
        if not isinstance(source, RegistrySource):
            raise UnexpectedSourceKind(
                "Invalid source type for prefetching from the registry.",
                context={"source": repr(source)},
            )
        return await command_output(self.command, self.command_args(source))
