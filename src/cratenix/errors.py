"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    CACHE_CORRUPT = "E_CACHE_CORRUPT"
    PROCESS_SPAWN = "E_PROCESS_SPAWN"
    PROCESS_EXIT = "E_PROCESS_EXIT"
    OUTPUT_DECODE = "E_OUTPUT_DECODE"
    SOURCE_KIND = "E_SOURCE_KIND"
    BUILD = "E_BUILD"


class CratenixError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class CacheCorrupt(CratenixError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CACHE_CORRUPT, hint=hint, context=context)


class ProcessSpawnFailed(CratenixError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PROCESS_SPAWN, hint=hint, context=context)


class ProcessExitedNonzero(CratenixError):
    returncode: int

    def __init__(
        self,
        message: str,
        *,
        returncode: int,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PROCESS_EXIT, hint=hint, context=context)
        self.returncode = returncode


class OutputNotDecodable(CratenixError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.OUTPUT_DECODE, hint=hint, context=context)


class UnexpectedSourceKind(CratenixError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SOURCE_KIND, hint=hint, context=context)


class BuildFailed(CratenixError):
    returncode: int

    def __init__(
        self,
        message: str,
        *,
        returncode: int,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BUILD, hint=hint, context=context)
        self.returncode = returncode


__all__ = [
    "BuildFailed",
    "CacheCorrupt",
    "CratenixError",
    "ErrorCode",
    "OutputNotDecodable",
    "ProcessExitedNonzero",
    "ProcessSpawnFailed",
    "UnexpectedSourceKind",
]
