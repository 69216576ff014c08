"""Platform policy table: pure flag fragments per platform, configuration, and kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from linkplan.errors import InternalError
from linkplan.models import Platform, ProductKind, parse_version
from linkplan.observability import STATIC_STDLIB_UNSUPPORTED, DiagnosticsScope
from linkplan.parameters import DEFAULT_DEPLOYMENT_TARGETS, BuildParameters
from linkplan.product import ProductDescription

# First macOS release that ships the concurrency runtime in the OS.
INLINE_CONCURRENCY_MACOS_MAJOR = 12
ENTRYPOINT_RENAMING_TOOLS_VERSION = (5, 5)
TEST_BUNDLE_RPATH = "@loader_path/../../../"
LOADER_RPATH = "@loader_path"


@dataclass(frozen=True, slots=True)
class StaticStdlibFragment:
    arguments: tuple[str, ...] = ()
    has_static_stdlib: bool = False


def xlinker(*args: str) -> list[str]:
    """Prefix every argument with ``-Xlinker`` for the compiler driver."""
    return [flag for arg in args for flag in ("-Xlinker", arg)]


def dead_strip_arguments(parameters: BuildParameters) -> list[str]:
    if not parameters.linker_dead_strip:
        return []

    match parameters.configuration:
        case "debug":
            return []
        case "release":
            match parameters.triple.platform:
                case Platform.DARWIN:
                    return xlinker("-dead_strip")
                case Platform.WINDOWS:
                    return xlinker("/OPT:REF")
                case Platform.LINUX | Platform.WEBASSEMBLY | Platform.OTHER:
                    # wasm-ld drops metadata sections reached only through
                    # __start/__stop symbols when collecting garbage.
                    if parameters.triple.is_wasm32:
                        return []
                    return xlinker("--gc-sections")
                case unreachable:
                    assert_never(unreachable)
        case unreachable:
            assert_never(unreachable)


def rpath_arguments(parameters: BuildParameters, kind: ProductKind) -> list[str]:
    match parameters.triple.platform:
        case Platform.LINUX:
            return xlinker("-rpath=$ORIGIN")
        case Platform.DARWIN:
            rpath = TEST_BUNDLE_RPATH if kind is ProductKind.TEST else LOADER_RPATH
            return xlinker("-rpath", rpath)
        case Platform.WINDOWS | Platform.WEBASSEMBLY | Platform.OTHER:
            return []
        case unreachable:
            assert_never(unreachable)


def install_name_arguments(product: ProductDescription, parameters: BuildParameters) -> list[str]:
    if not parameters.triple.is_darwin():
        return []
    relative_path = parameters.binary_relative_path(product.name, product.kind)
    return xlinker("-install_name", f"@rpath/{relative_path.as_posix()}")


def entrypoint_rename_arguments(
    product: ProductDescription,
    parameters: BuildParameters,
) -> list[str]:
    """Rename ``<module>_main`` back to the platform entry symbol.

    Executable modules are compiled with a module-prefixed main symbol so test
    binaries can link against them without a duplicate ``main``.
    """
    target = product.primary_target
    if not (
        target.is_managed_language_target
        and target.supports_testable_executables
        and product.tools_version >= ENTRYPOINT_RENAMING_TOOLS_VERSION
        and parameters.can_rename_entrypoint_function_name
    ):
        return []

    match parameters.triple.platform:
        case Platform.DARWIN:
            return xlinker("-alias", f"_{target.c99name}_main", "_main")
        case Platform.LINUX:
            return xlinker("--defsym", f"main={target.c99name}_main")
        case Platform.WINDOWS | Platform.WEBASSEMBLY | Platform.OTHER:
            return []
        case unreachable:
            assert_never(unreachable)


def static_stdlib_arguments(
    product: ProductDescription,
    parameters: BuildParameters,
    diagnostics: DiagnosticsScope | None = None,
) -> StaticStdlibFragment:
    if not parameters.should_link_static_stdlib:
        return StaticStdlibFragment()

    if parameters.triple.is_darwin():
        scope = diagnostics if diagnostics is not None else DiagnosticsScope()
        scope.emit(
            operation="link",
            product=product.name,
            code=STATIC_STDLIB_UNSUPPORTED,
            level="error",
            message=(
                "Static linking of the standard library is not supported on Darwin; "
                "the library ships with the OS and is back-deployed instead."
            ),
        )
        return StaticStdlibFragment()

    if parameters.triple.supports_static_stdlib:
        return StaticStdlibFragment(arguments=("-static-stdlib",), has_static_stdlib=True)
    return StaticStdlibFragment()


def uses_stdlib_rpath(kind: ProductKind) -> bool:
    match kind:
        case (
            ProductKind.DYNAMIC_LIBRARY
            | ProductKind.TEST
            | ProductKind.EXECUTABLE
            | ProductKind.SNIPPET
            | ProductKind.MACRO
        ):
            return True
        case ProductKind.STATIC_LIBRARY:
            return False
        case ProductKind.AUTOMATIC_LIBRARY | ProductKind.PLUGIN:
            raise InternalError(
                f"Unexpectedly asked to generate linker arguments for a {kind} product.",
                kind=kind,
            )
        case unreachable:
            assert_never(unreachable)


def _macos_deployment_version(product: ProductDescription, parameters: BuildParameters) -> str:
    target = product.primary_target
    if parameters.darwin_platform_name == "macos":
        version = parameters.deployment_version(target, product.package_platforms)
        if version is not None:
            return version
    return target.platforms.get(
        "macos",
        product.package_platforms.get("macos", DEFAULT_DEPLOYMENT_TARGETS["macos"]),
    )


def stdlib_rpath_arguments(product: ProductDescription, parameters: BuildParameters) -> list[str]:
    """Rpath to the bundled concurrency runtime for older macOS deployments.

    The macOS version is resolved the same way as the ``-target`` version.
    """
    if not product.contains_managed_targets:
        return []
    if not uses_stdlib_rpath(product.kind) or not parameters.triple.is_darwin():
        return []

    macos_version = _macos_deployment_version(product, parameters)
    if parse_version(macos_version)[0] >= INLINE_CONCURRENCY_MACOS_MAJOR:
        return []
    back_deployed = parameters.toolchain.back_deployed_stdlib_dir()
    return xlinker("-rpath", str(back_deployed))
