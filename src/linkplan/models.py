"""Core typed dataclasses for targets, triples, and product kinds."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from linkplan.errors import ValidationError

Configuration = Literal["debug", "release"]
TestProductStyle = Literal["loadable_bundle", "entry_point_executable"]
MacroLinkStyle = Literal["executable", "dynamic_library", "unsupported"]
Sanitizer = Literal["address", "thread", "undefined", "scudo", "fuzzer"]

DARWIN_OS_NAMES = frozenset(
    {"darwin", "macos", "macosx", "ios", "tvos", "watchos", "visionos", "xros"},
)

_OS_NAME = re.compile(r"^([a-z_]+)(.*)$")
_NON_IDENTIFIER = re.compile(r"\W")


class ProductKind(StrEnum):
    """Every product type a package can declare."""

    STATIC_LIBRARY = "static_library"
    DYNAMIC_LIBRARY = "dynamic_library"
    AUTOMATIC_LIBRARY = "automatic_library"
    EXECUTABLE = "executable"
    TEST = "test"
    SNIPPET = "snippet"
    MACRO = "macro"
    PLUGIN = "plugin"


class Platform(StrEnum):
    """Linker-relevant platform family of a target triple."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"
    WEBASSEMBLY = "webassembly"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Triple:
    """A parsed ``arch-vendor-os[-environment]`` target triple."""

    arch: str
    vendor: str
    os: str
    environment: str | None = None

    @classmethod
    def parse(cls, value: str) -> Triple:
        parts = value.strip().split("-")
        if len(parts) < 3 or not all(parts[:3]):
            raise ValidationError(
                "Invalid target triple.",
                hint="Expected `arch-vendor-os[-environment]`, e.g. `x86_64-unknown-linux-gnu`.",
                context={"triple": value},
            )
        environment = "-".join(parts[3:]) or None
        return cls(arch=parts[0], vendor=parts[1], os=parts[2], environment=environment)

    def __str__(self) -> str:
        parts = [self.arch, self.vendor, self.os]
        if self.environment:
            parts.append(self.environment)
        return "-".join(parts)

    @property
    def os_name(self) -> str:
        match = _OS_NAME.match(self.os)
        return match.group(1) if match else self.os

    @property
    def os_version(self) -> str:
        match = _OS_NAME.match(self.os)
        return match.group(2) if match else ""

    @property
    def platform(self) -> Platform:
        if self.os_name in DARWIN_OS_NAMES:
            return Platform.DARWIN
        if self.os_name == "windows":
            return Platform.WINDOWS
        if self.os_name == "linux":
            return Platform.LINUX
        if self.is_wasm32:
            return Platform.WEBASSEMBLY
        return Platform.OTHER

    def is_darwin(self) -> bool:
        return self.platform is Platform.DARWIN

    def is_linux(self) -> bool:
        return self.platform is Platform.LINUX

    def is_windows(self) -> bool:
        return self.platform is Platform.WINDOWS

    @property
    def is_wasm32(self) -> bool:
        return self.arch == "wasm32"

    @property
    def supports_static_stdlib(self) -> bool:
        return self.is_linux() or self.is_wasm32

    def with_os_version(self, version: str) -> Triple:
        """Return the triple with its OS component pinned to *version*."""
        return Triple(
            arch=self.arch,
            vendor=self.vendor,
            os=f"{self.os_name}{version}",
            environment=self.environment,
        )


@dataclass(frozen=True, slots=True)
class Target:
    """A compiled source target and its evaluated link settings.

    ``is_managed_language_target`` is fixed when the target is created; it
    marks targets whose sources are compiled by the driver itself (as
    opposed to C-family targets compiled by the sub-compiler).
    """

    name: str
    is_managed_language_target: bool = True
    supports_testable_executables: bool = True
    platforms: Mapping[str, str] = field(default_factory=dict)
    link_libraries: tuple[str, ...] = ()
    link_frameworks: tuple[str, ...] = ()
    other_ldflags: tuple[str, ...] = ()

    @property
    def c99name(self) -> str:
        return c99_identifier(self.name)


def c99_identifier(name: str) -> str:
    """Mangle *name* into a valid C99 extended identifier."""
    mangled = _NON_IDENTIFIER.sub("_", name)
    if not mangled:
        return "_"
    if mangled[0].isdigit():
        return f"_{mangled}"
    return mangled


def parse_version(value: str) -> tuple[int, ...]:
    try:
        return tuple(int(part) for part in value.split("."))
    except ValueError as exc:
        raise ValidationError(
            "Invalid version string.",
            hint="Versions are dot-separated integers, e.g. `10.15`.",
            context={"version": value},
        ) from exc


__all__ = [
    "Configuration",
    "DARWIN_OS_NAMES",
    "MacroLinkStyle",
    "Platform",
    "ProductKind",
    "Sanitizer",
    "Target",
    "TestProductStyle",
    "Triple",
    "c99_identifier",
    "parse_version",
]
