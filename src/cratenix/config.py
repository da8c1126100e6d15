"""Prefetch configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_REGISTRY_URL_TEMPLATE = "https://crates.io/api/v1/crates/{name}/{version}/download"
CONCURRENCY_PER_CPU = 4


def default_concurrency() -> int:
    return max(1, CONCURRENCY_PER_CPU * (os.cpu_count() or 1))


@dataclass(frozen=True, slots=True)
class PrefetchConfig:
    crate_hashes_json: Path
    concurrency: int | None = None
    url_prefetch_command: str = "nix-prefetch-url"
    git_prefetch_command: str = "nix-prefetch-git"
    registry_url_template: str = DEFAULT_REGISTRY_URL_TEMPLATE
    show_progress: bool = True
    log_file: Path | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "crate_hashes_json", Path(self.crate_hashes_json))
        if self.log_file is not None:
            object.__setattr__(self, "log_file", Path(self.log_file))
        if self.concurrency is not None and self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")

    @property
    def max_concurrency(self) -> int:
        if self.concurrency is None:
            return default_concurrency()
        return self.concurrency
