"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import stat
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from cratenix.models import SourceDescriptor


@dataclass
class FakeFetcher:
    """Returns canned hashes per source, optionally after a delay."""

    hashes: Mapping[SourceDescriptor, str]
    delays: Mapping[SourceDescriptor, float] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[SourceDescriptor] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    async def prefetch(self, source: SourceDescriptor) -> str:
        self.calls.append(source)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(source, 0))
            if self.error is not None:
                raise self.error
            return self.hashes[source]
        finally:
            self.in_flight -= 1


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Create an executable shell script under ``tmp_path/bin``."""

    def _write(name: str, body: str) -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _write
