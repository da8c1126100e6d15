"""Hash prefetching and ``nix build`` invocation for generated Cargo.nix files."""

from .backends import NixBuildBackend, dump_with_lines
from .cache import HashCache, reconcile
from .config import PrefetchConfig
from .errors import (
    BuildFailed,
    CacheCorrupt,
    CratenixError,
    OutputNotDecodable,
    ProcessExitedNonzero,
    ProcessSpawnFailed,
    UnexpectedSourceKind,
)
from .fetch import Fetchers, GitFetcher, RegistryFetcher
from .models import (
    CrateDerivation,
    GitSource,
    OtherSource,
    PackageIdentity,
    RegistrySource,
    SourceDescriptor,
)
from .observability import StructuredLogger
from .prefetch import Prefetcher, ProgressCounter, prefetch_hashes
from .render import escape_nix_string, nix_list

__all__ = [
    "BuildFailed",
    "CacheCorrupt",
    "CrateDerivation",
    "CratenixError",
    "Fetchers",
    "GitFetcher",
    "GitSource",
    "HashCache",
    "NixBuildBackend",
    "OtherSource",
    "OutputNotDecodable",
    "PackageIdentity",
    "PrefetchConfig",
    "Prefetcher",
    "ProcessExitedNonzero",
    "ProcessSpawnFailed",
    "ProgressCounter",
    "RegistryFetcher",
    "RegistrySource",
    "SourceDescriptor",
    "StructuredLogger",
    "UnexpectedSourceKind",
    "dump_with_lines",
    "escape_nix_string",
    "nix_list",
    "prefetch_hashes",
    "reconcile",
]
