"""Invocation records with canonical export and fingerprinting."""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import cbor2

from linkplan.assembler import compute_archive_arguments, compute_link_arguments
from linkplan.models import ProductKind
from linkplan.observability import DiagnosticsScope
from linkplan.parameters import BuildParameters
from linkplan.product import ProductDescription

InvocationMode = Literal["archive", "link"]


@dataclass(frozen=True, slots=True)
class LinkInvocation:
    product: str
    kind: ProductKind
    mode: InvocationMode
    argv: tuple[str, ...]
    filelist_path: Path
    schema_version: int = 1

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def fingerprint(self) -> str:
        """sha256 of the canonical CBOR encoding."""
        return hashlib.sha256(self.to_cbor()).hexdigest()

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "product": self.product,
            "kind": str(self.kind),
            "mode": self.mode,
            "argv": list(self.argv),
            "filelist_path": str(self.filelist_path),
        }


def plan_invocation(
    product: ProductDescription,
    parameters: BuildParameters,
    *,
    diagnostics: DiagnosticsScope | None = None,
    is_directory: Callable[[Path], bool] = os.path.isdir,
) -> LinkInvocation:
    """Pick archive or link arguments by product kind."""
    mode: InvocationMode
    if product.kind is ProductKind.STATIC_LIBRARY:
        mode = "archive"
        argv = compute_archive_arguments(product, parameters)
    else:
        mode = "link"
        argv = compute_link_arguments(
            product,
            parameters,
            diagnostics=diagnostics,
            is_directory=is_directory,
        )
    return LinkInvocation(
        product=product.name,
        kind=product.kind,
        mode=mode,
        argv=tuple(argv),
        filelist_path=product.link_filelist_path(parameters.build_path),
    )
