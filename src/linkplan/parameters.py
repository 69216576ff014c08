"""Read-only build configuration shared by every product invocation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from linkplan.errors import InternalError
from linkplan.models import (
    Configuration,
    MacroLinkStyle,
    Platform,
    ProductKind,
    Sanitizer,
    Target,
    TestProductStyle,
    Triple,
)
from linkplan.toolchain import Toolchain

# Minimum deployment versions used when a target declares none.
DEFAULT_DEPLOYMENT_TARGETS = {
    "macos": "10.13",
    "ios": "12.0",
    "tvos": "12.0",
    "watchos": "4.0",
    "visionos": "1.0",
}

_DARWIN_PLATFORM_NAMES = {
    "darwin": "macos",
    "macos": "macos",
    "macosx": "macos",
    "ios": "ios",
    "tvos": "tvos",
    "watchos": "watchos",
    "visionos": "visionos",
    "xros": "visionos",
}


@dataclass(frozen=True, slots=True)
class BuildParameters:
    triple: Triple
    toolchain: Toolchain
    build_path: Path
    configuration: Configuration = "debug"
    sanitizers: frozenset[Sanitizer] = frozenset()
    linker_dead_strip: bool = True
    should_link_static_stdlib: bool = False
    enable_code_coverage: bool = False
    linker_flags: tuple[str, ...] = ()
    compiler_flags: tuple[str, ...] = ()
    test_product_style: TestProductStyle | None = None
    macro_link_style: MacroLinkStyle = "executable"
    can_rename_entrypoint_function_name: bool = True

    @property
    def resolved_test_product_style(self) -> TestProductStyle:
        if self.test_product_style is not None:
            return self.test_product_style
        if self.triple.is_darwin():
            return "loadable_bundle"
        return "entry_point_executable"

    @property
    def darwin_platform_name(self) -> str | None:
        if not self.triple.is_darwin():
            return None
        return _DARWIN_PLATFORM_NAMES.get(self.triple.os_name, "macos")

    def sanitizer_link_flags(self) -> list[str]:
        if not self.sanitizers:
            return []
        return ["-sanitize=" + ",".join(sorted(self.sanitizers))]

    def binary_relative_path(self, name: str, kind: ProductKind) -> Path:
        """Location of a product's binary relative to ``build_path``."""
        platform = self.triple.platform
        match kind:
            case ProductKind.STATIC_LIBRARY:
                if platform is Platform.WINDOWS:
                    return Path(f"{name}.lib")
                return Path(f"lib{name}.a")
            case ProductKind.DYNAMIC_LIBRARY:
                if platform is Platform.DARWIN:
                    return Path(f"lib{name}.dylib")
                if platform is Platform.WINDOWS:
                    return Path(f"{name}.dll")
                return Path(f"lib{name}.so")
            case ProductKind.EXECUTABLE | ProductKind.SNIPPET:
                if platform is Platform.WINDOWS:
                    return Path(f"{name}.exe")
                if platform is Platform.WEBASSEMBLY:
                    return Path(f"{name}.wasm")
                return Path(name)
            case ProductKind.TEST:
                bundle = Path(f"{name}.xctest")
                is_bundle = self.resolved_test_product_style == "loadable_bundle"
                if is_bundle and platform is Platform.DARWIN:
                    return bundle / "Contents" / "MacOS" / name
                return bundle
            case ProductKind.MACRO:
                if self.macro_link_style == "dynamic_library":
                    return self.binary_relative_path(name, ProductKind.DYNAMIC_LIBRARY)
                return self.binary_relative_path(name, ProductKind.EXECUTABLE)
            case ProductKind.AUTOMATIC_LIBRARY | ProductKind.PLUGIN:
                raise InternalError(f"{kind} products have no binary.", product=name, kind=kind)

    def binary_path(self, name: str, kind: ProductKind) -> Path:
        return self.build_path / self.binary_relative_path(name, kind)

    def deployment_version(
        self,
        target: Target,
        package_platforms: Mapping[str, str] | None = None,
    ) -> str | None:
        """Deployment version for the triple's Darwin platform, ``None`` elsewhere.

        The target's declaration wins over the package's, then the version in
        the triple, then the platform minimum.
        """
        platform_name = self.darwin_platform_name
        if platform_name is None:
            return None
        version = target.platforms.get(platform_name)
        if version is None and package_platforms is not None:
            version = package_platforms.get(platform_name)
        if version is None:
            version = self.triple.os_version or DEFAULT_DEPLOYMENT_TARGETS[platform_name]
        return version

    def target_triple_args(
        self,
        target: Target,
        package_platforms: Mapping[str, str] | None = None,
    ) -> list[str]:
        version = self.deployment_version(target, package_platforms)
        if version is None:
            return ["-target", str(self.triple)]
        return ["-target", str(self.triple.with_os_version(version))]
