"""Concurrent, cache-backed hash prefetching for resolved packages.

Every registry or git package without a hash is resolved either from the
hash cache file or by running one external prefetch command. Fetches run on
an asyncio event loop behind a semaphore, and each task reports the package
identities it resolved, so results are merged by identity and never by
completion order. Packages that share one source share a single fetch.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import assert_never

from tqdm import tqdm

from cratenix.cache import HashCache, HashMapping, reconcile
from cratenix.config import PrefetchConfig
from cratenix.errors import CacheCorrupt
from cratenix.fetch import Fetchers
from cratenix.models import (
    CrateDerivation,
    GitSource,
    OtherSource,
    PackageIdentity,
    RegistrySource,
    SourceDescriptor,
)
from cratenix.observability import StructuredLogger

BAR_FORMAT = "[{elapsed}] [{bar:40}] {n_fmt}/{total_fmt} ({remaining})"


@dataclass(slots=True)
class ProgressCounter:
    """Completed external fetches for one prefetch run."""

    total: int
    completed: int = 0
    bar: tqdm | None = None

    @classmethod
    def start(cls, total: int, *, show: bool = True) -> ProgressCounter:
        bar = None
        if show and total > 0:
            bar = tqdm(total=total, file=sys.stderr, bar_format=BAR_FORMAT, ascii=True)
        return cls(total=total, bar=bar)

    def increment(self) -> None:
        # Only the event loop thread touches this, so a plain add is atomic.
        self.completed += 1
        if self.bar is not None:
            self.bar.update(1)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()


def needs_prefetch(source: SourceDescriptor) -> bool:
    match source:
        case RegistrySource(sha256=None):
            return True
        case RegistrySource():
            return False
        case GitSource():
            return True
        case OtherSource():
            return False
        case _:
            assert_never(source)


@dataclass(slots=True)
class Prefetcher:
    config: PrefetchConfig
    fetchers: Fetchers | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    reset_corrupt_cache: bool = False

    async def prefetch(
        self,
        crate_derivations: Sequence[CrateDerivation],
        *,
        refetch: Iterable[PackageIdentity] = (),
    ) -> HashMapping:
        """Resolve hashes for ``crate_derivations`` and write them onto their sources.

        Returns the identity to hash mapping for every package that needed a
        hash. The cache file is rewritten only after all fetches succeeded
        and only if its content changed. ``refetch`` names packages whose
        cached hash must be ignored. When ``config.log_file`` is set the
        collected log records are written there, also after a failure.
        """
        cache = HashCache(self.config.crate_hashes_json)
        try:
            return await self._prefetch(cache, crate_derivations, set(refetch))
        finally:
            if self.config.log_file is not None:
                self.logger.to_json_lines(self.config.log_file)

    async def _prefetch(
        self,
        cache: HashCache,
        crate_derivations: Sequence[CrateDerivation],
        forced: set[PackageIdentity],
    ) -> HashMapping:
        previous, was_reset = self._load_cache(cache)

        packages = [crate for crate in crate_derivations if needs_prefetch(crate.source)]
        cached: HashMapping = {
            crate.package_id: previous[crate.package_id]
            for crate in packages
            if crate.package_id in previous and crate.package_id not in forced
        }
        pending: dict[SourceDescriptor, list[PackageIdentity]] = {}
        for crate in packages:
            if crate.package_id not in cached:
                pending.setdefault(crate.source.fetch_key(), []).append(crate.package_id)

        self.logger.log(
            operation="prefetch",
            message="Selected packages for prefetch.",
            extra={"packages": len(packages), "cached": len(cached), "sources": len(pending)},
        )
        fetched = await self._fetch_all(pending)

        resolved = {**cached, **fetched}
        for crate in packages:
            crate.source = crate.source.with_hash(resolved[crate.package_id])

        hashes = reconcile(
            previous,
            (crate.package_id for crate in packages),
            fetched,
            refetch=forced,
        )
        if cache.persist(hashes, previous=previous, force=was_reset):
            self.logger.log(
                operation="cache_write",
                message="Wrote hash cache.",
                extra={"path": str(cache.path), "entries": len(hashes)},
            )
            print(f"Wrote hashes to {cache.path}.", file=sys.stderr)
        return hashes

    def _load_cache(self, cache: HashCache) -> tuple[HashMapping, bool]:
        try:
            previous = cache.load()
        except CacheCorrupt as exc:
            if not self.reset_corrupt_cache:
                raise
            self.logger.log(
                operation="cache_load",
                level="warning",
                message="Ignoring corrupt hash cache.",
                extra={"path": str(cache.path), "error": str(exc)},
            )
            return {}, True
        self.logger.log(
            operation="cache_load",
            message="Loaded hash cache.",
            extra={"path": str(cache.path), "entries": len(previous)},
        )
        return previous, False

    async def _fetch_all(
        self,
        pending: dict[SourceDescriptor, list[PackageIdentity]],
    ) -> HashMapping:
        fetchers = self.fetchers if self.fetchers is not None else Fetchers.from_config(self.config)
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        progress = ProgressCounter.start(len(pending), show=self.config.show_progress)
        try:
            results = await asyncio.gather(
                *(
                    self._fetch_source(fetchers, source, package_ids, semaphore, progress)
                    for source, package_ids in pending.items()
                ),
                return_exceptions=True,
            )
        finally:
            progress.close()

        fetched: HashMapping = {}
        for result in results:
            if isinstance(result, BaseException):
                self.logger.log(
                    operation="prefetch",
                    level="error",
                    message="Prefetch failed; hash cache left untouched.",
                    extra={"error": str(result)},
                )
                raise result
            for package_id, sha256 in result:
                fetched[package_id] = sha256
        return fetched

    async def _fetch_source(
        self,
        fetchers: Fetchers,
        source: SourceDescriptor,
        package_ids: list[PackageIdentity],
        semaphore: asyncio.Semaphore,
        progress: ProgressCounter,
    ) -> list[tuple[PackageIdentity, str]]:
        async with semaphore:
            self.logger.log(
                operation="fetch",
                package=str(package_ids[0]),
                source=repr(source),
                message="Prefetching source.",
            )
            sha256 = await fetchers.prefetch(source)
        progress.increment()
        self.logger.log(
            operation="fetch",
            package=str(package_ids[0]),
            source=repr(source),
            message="Prefetched source.",
            extra={"sha256": sha256, "packages": [str(package_id) for package_id in package_ids]},
        )
        return [(package_id, sha256) for package_id in package_ids]


def prefetch_hashes(
    config: PrefetchConfig,
    crate_derivations: Sequence[CrateDerivation],
    *,
    fetchers: Fetchers | None = None,
    logger: StructuredLogger | None = None,
    refetch: Iterable[PackageIdentity] = (),
    reset_corrupt_cache: bool = False,
) -> HashMapping:
    """Blocking wrapper around :meth:`Prefetcher.prefetch`."""
    prefetcher = Prefetcher(
        config=config,
        fetchers=fetchers,
        logger=logger if logger is not None else StructuredLogger(),
        reset_corrupt_cache=reset_corrupt_cache,
    )
    return asyncio.run(prefetcher.prefetch(crate_derivations, refetch=refetch))
