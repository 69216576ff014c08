"""Structured diagnostics helpers."""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

DiagnosticLevel = Literal["info", "warning", "error"]

STATIC_STDLIB_UNSUPPORTED = "static_stdlib_unsupported"


@dataclass(slots=True)
class DiagnosticsScope:
    """Collects non-fatal diagnostics emitted while computing invocations."""

    records: list[dict[str, Any]] = field(default_factory=list)

    def emit(
        self,
        *,
        operation: str,
        product: str | None,
        code: str,
        message: str,
        level: DiagnosticLevel = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "product": product,
            "code": code,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        if level != "info":
            warnings.warn(message, RuntimeWarning, stacklevel=3)

    @property
    def has_errors(self) -> bool:
        return any(record["level"] == "error" for record in self.records)

    def records_for_product(self, product: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("product") == product]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
