"""JSON-backed cache of verified source hashes keyed by package identity."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TypeAlias

from cratenix.errors import CacheCorrupt
from cratenix.models import PackageIdentity

HashMapping: TypeAlias = dict[PackageIdentity, str]


class HashCache:
    """The hash cache file at ``path``.

    The file is a JSON object of identity strings to hashes. It is read once
    per prefetch run and rewritten whole, only when its content changes.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> HashMapping:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheCorrupt(
                "Hash cache file could not be read.",
                hint="Delete the file to regenerate all hashes.",
                context={"operation": "cache_load", "path": str(self.path), "error": str(exc)},
            ) from exc
        if not raw.strip():
            return {}
        return parse_hashes(raw, path=self.path)

    def persist(
        self,
        hashes: Mapping[PackageIdentity, str],
        *,
        previous: Mapping[PackageIdentity, str],
        force: bool = False,
    ) -> bool:
        """Write ``hashes`` if they differ from ``previous``; return whether a write happened.

        ``force`` rewrites the file regardless, e.g. to replace a corrupt one.
        """
        if not force and dict(hashes) == dict(previous):
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(serialize_hashes(hashes), encoding="utf-8")
        return True


def reconcile(
    previous: Mapping[PackageIdentity, str],
    needed: Iterable[PackageIdentity],
    fetched: Mapping[PackageIdentity, str],
    *,
    refetch: Iterable[PackageIdentity] = (),
) -> HashMapping:
    """Build the cache content for the current run.

    Freshly fetched hashes win; otherwise a previously cached hash is reused
    unless its package asked to be refetched. Identities outside ``needed``
    are dropped.
    """
    forced = set(refetch)
    hashes: HashMapping = {}
    for package_id in sorted(set(needed)):
        if package_id in fetched:
            hashes[package_id] = fetched[package_id]
        elif package_id in previous and package_id not in forced:
            hashes[package_id] = previous[package_id]
    return hashes


def serialize_hashes(hashes: Mapping[PackageIdentity, str]) -> str:
    payload = {str(package_id): sha256 for package_id, sha256 in sorted(hashes.items())}
    return json.dumps(payload, indent=2) + "\n"


def parse_hashes(raw: str, *, path: Path | None = None) -> HashMapping:
    context = {"operation": "cache_load", "path": str(path) if path is not None else ""}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CacheCorrupt(
            "Hash cache is not valid JSON.",
            hint="Delete the file to regenerate all hashes.",
            context={**context, "error": str(exc)},
        ) from exc
    if not isinstance(payload, dict):
        raise CacheCorrupt(
            "Hash cache has invalid structure.",
            hint="Expected a JSON object mapping package ids to hashes.",
            context=context,
        )
    hashes: HashMapping = {}
    for key, value in payload.items():
        if not isinstance(value, str):
            raise CacheCorrupt(
                "Hash cache entry is not a string.",
                hint="Delete the file to regenerate all hashes.",
                context={**context, "package": key},
            )
        hashes[PackageIdentity(key)] = value.strip()
    return hashes
