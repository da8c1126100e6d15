"""Typed dataclasses for resolved packages and their sources."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, TypeAlias


@dataclass(frozen=True, slots=True, order=True)
class PackageIdentity:
    """Opaque, totally ordered key for one resolved dependency.

    ``value`` is the resolver's own id string, for example
    ``"serde 1.0.197 (registry+https://github.com/rust-lang/crates.io-index)"``.
    It doubles as the key in the persisted hash cache.
    """

    value: str

    @classmethod
    def of(cls, name: str, version: str, source: str) -> PackageIdentity:
        return cls(f"{name} {version} ({source})")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class RegistrySource:
    """A crate downloaded from the package registry."""

    name: str
    version: str
    sha256: str | None = None

    def with_hash(self, sha256: str) -> RegistrySource:
        return replace(self, sha256=sha256)

    def fetch_key(self) -> RegistrySource:
        return replace(self, sha256=None)


@dataclass(frozen=True, slots=True)
class GitSource:
    """A crate checked out from a git repository at a fixed revision."""

    url: str
    rev: str
    ref: str | None = None
    sha256: str | None = None

    def with_hash(self, sha256: str) -> GitSource:
        return replace(self, sha256=sha256)

    def fetch_key(self) -> GitSource:
        return replace(self, sha256=None)


@dataclass(frozen=True, slots=True)
class OtherSource:
    """Local paths and anything else that never needs an external hash."""

    location: str = ""

    def with_hash(self, sha256: str) -> OtherSource:
        return self

    def fetch_key(self) -> OtherSource:
        return self


SourceDescriptor: TypeAlias = RegistrySource | GitSource | OtherSource


@dataclass(slots=True)
class CrateDerivation:
    """One resolved package as handed over by the resolver.

    Only ``package_id`` and ``source`` are interpreted here; ``metadata``
    carries whatever the renderer needs and is passed through untouched.
    """

    package_id: PackageIdentity
    crate_name: str
    version: str
    source: SourceDescriptor
    metadata: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "CrateDerivation",
    "GitSource",
    "OtherSource",
    "PackageIdentity",
    "RegistrySource",
    "SourceDescriptor",
]
