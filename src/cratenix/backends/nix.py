"""``nix build`` invocation for a generated build description.

The builder's output streams are inherited so progress shows up live. When
the build fails, the generated ``default.nix`` is dumped with line numbers
so the positions in Nix's own error trace can be looked up directly.
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from cratenix.errors import BuildFailed, ProcessSpawnFailed
from cratenix.observability import StructuredLogger
from cratenix.render import nix_list


@dataclass(slots=True)
class NixBuildBackend:
    """Runs ``nix build -f default.nix <attr>`` in a project directory."""

    nix_command: str = "nix"
    build_file: str = "default.nix"
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def build(self, project_dir: str | Path, nix_attr: str, features: Sequence[str] = ()) -> None:
        project_dir = Path(project_dir)
        self._ensure_prerequisites(project_dir)
        cmd = self.build_args(nix_attr, features)

        print(f"Building {project_dir}.", file=sys.stderr)
        self.logger.log(
            operation="build",
            message="Starting nix build.",
            extra={"dir": str(project_dir), "argv": cmd},
        )
        try:
            result = subprocess.run(
                cmd,
                cwd=str(project_dir),
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            raise ProcessSpawnFailed(
                f"While spawning nix build for {project_dir}: {exc}",
                hint=f"Ensure `{self.nix_command}` is installed and in PATH.",
                context={"dir": str(project_dir), "argv": " ".join(cmd)},
            ) from exc

        if result.returncode != 0:
            build_file = project_dir / self.build_file
            if build_file.exists():
                dump_with_lines(build_file)
            self.logger.log(
                operation="build",
                level="error",
                message="nix build failed.",
                extra={"dir": str(project_dir), "returncode": result.returncode},
            )
            raise BuildFailed(
                f"nix build {project_dir}\n=> exited with: {result.returncode}",
                returncode=result.returncode,
                hint=f"Line numbers above refer to {self.build_file}.",
                context={
                    "dir": str(project_dir),
                    "argv": " ".join(cmd),
                    "returncode": str(result.returncode),
                },
            )

        self.logger.log(
            operation="build",
            message="nix build succeeded.",
            extra={"dir": str(project_dir)},
        )
        print(f"Built {project_dir} successfully.", file=sys.stderr)

    def build_args(self, nix_attr: str, features: Sequence[str]) -> list[str]:
        return [
            self.nix_command,
            "--show-trace",
            "build",
            "-f",
            self.build_file,
            nix_attr,
            "--arg",
            "rootFeatures",
            nix_list(features),
        ]

    def _ensure_prerequisites(self, project_dir: Path) -> None:
        if shutil.which(self.nix_command) is None:
            raise ProcessSpawnFailed(
                f"`{self.nix_command}` was not found in PATH.",
                hint="Install Nix: https://nixos.org/download.html",
                context={"dir": str(project_dir)},
            )


def dump_with_lines(path: str | Path, stream: TextIO | None = None) -> None:
    """Write the file at ``path`` to ``stream`` (stdout) with 1-based line numbers."""
    out = stream if stream is not None else sys.stdout
    with Path(path).open(encoding="utf-8", errors="replace") as handle:
        for number, line in enumerate(handle, start=1):
            text = line.rstrip("\r\n")
            out.write(f"{number:>5}: {text}\n")
    out.flush()
