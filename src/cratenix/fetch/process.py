"""Run one external prefetch command and capture its output."""

from __future__ import annotations

import asyncio
import shlex
import sys

from cratenix.errors import OutputNotDecodable, ProcessExitedNonzero, ProcessSpawnFailed


async def command_output(command: str, args: list[str]) -> str:
    """Run ``command`` with ``args`` and return its trimmed standard output.

    On a non-zero exit the captured streams are echoed to our own stdout and
    stderr before raising, so the tool's own diagnostics reach the user.
    """
    argv = [command, *args]
    display = shlex.join(argv)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ProcessSpawnFailed(
            f"While spawning '{display}': {exc}",
            hint=f"Ensure `{command}` is installed and in PATH.",
            context={"argv": display},
        ) from exc

    stdout, stderr = await process.communicate()
    returncode = process.returncode if process.returncode is not None else -1
    if returncode != 0:
        _echo(stdout, stderr)
        raise ProcessExitedNonzero(
            f"{command}\n=> exited with: {returncode}",
            returncode=returncode,
            context={
                "argv": display,
                "returncode": str(returncode),
                "stdout": stdout.decode("utf-8", errors="replace").strip(),
                "stderr": stderr.decode("utf-8", errors="replace").strip(),
            },
        )

    try:
        return stdout.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise OutputNotDecodable(
            f"Output of '{display}' is not UTF-8.",
            context={"argv": display},
        ) from exc


def _echo(stdout: bytes, stderr: bytes) -> None:
    sys.stdout.write(stdout.decode("utf-8", errors="replace"))
    sys.stdout.flush()
    sys.stderr.write(stderr.decode("utf-8", errors="replace"))
    sys.stderr.flush()
