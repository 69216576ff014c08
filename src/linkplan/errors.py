"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    INTERNAL = "E_INTERNAL"
    VALIDATION = "E_VALIDATION"
    CONFIGURATION = "E_CONFIGURATION"


class LinkPlanError(Exception):
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
        if self.context:
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


class InternalError(LinkPlanError):
    """A broken precondition from the planning phase.

    Never recoverable: the build must abort instead of producing a
    best-effort argument list. ``product`` and ``kind`` name the offending
    product in the context so every invariant failure reports the same keys.
    """

    product: str | None
    kind: str | None

    def __init__(
        self,
        message: str,
        *,
        product: str | None = None,
        kind: str | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = dict(context or {})
        if product is not None:
            merged["product"] = product
        if kind is not None:
            merged["kind"] = str(kind)
        self.product = product
        self.kind = None if kind is None else str(kind)
        super().__init__(
            f"Internal error: {message}",
            code=ErrorCode.INTERNAL,
            hint=hint,
            context=merged,
        )


class ValidationError(LinkPlanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class ConfigurationError(LinkPlanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=context)


__all__ = [
    "ConfigurationError",
    "ErrorCode",
    "InternalError",
    "LinkPlanError",
    "ValidationError",
]
