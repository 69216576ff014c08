"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from linkplan.models import ProductKind, Target, Triple
from linkplan.parameters import BuildParameters
from linkplan.product import ProductDescription
from linkplan.toolchain import Toolchain

LINUX = "x86_64-unknown-linux-gnu"
DARWIN = "arm64-apple-macosx"
WINDOWS = "x86_64-unknown-windows-msvc"
WASI = "wasm32-unknown-wasi"

ParametersFactory = Callable[..., BuildParameters]
ProductFactory = Callable[..., ProductDescription]


@pytest.fixture
def toolchain(tmp_path: Path) -> Toolchain:
    root = tmp_path / "toolchain" / "usr"
    return Toolchain(
        compiler_path=root / "bin" / "swiftc",
        librarian_path=root / "bin" / "ar",
        resources_path=root / "lib" / "swift",
        static_resources_path=root / "lib" / "swift_static",
        stdlib_path=root / "lib" / "swift" / "macosx",
    )


@pytest.fixture
def make_parameters(tmp_path: Path, toolchain: Toolchain) -> ParametersFactory:
    """Build parameters for a triple with keyword overrides."""

    def factory(triple: str = LINUX, **overrides: Any) -> BuildParameters:
        parameters = BuildParameters(
            triple=Triple.parse(triple),
            toolchain=toolchain,
            build_path=tmp_path / "build",
        )
        return replace(parameters, **overrides)

    return factory


@pytest.fixture
def make_product() -> ProductFactory:
    def factory(
        name: str = "App",
        kind: ProductKind = ProductKind.EXECUTABLE,
        targets: tuple[Target, ...] | None = None,
        **overrides: Any,
    ) -> ProductDescription:
        if targets is None:
            targets = (Target(name=name),)
        return ProductDescription(name=name, kind=kind, targets=targets, **overrides)

    return factory
