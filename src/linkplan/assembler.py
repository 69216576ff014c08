"""Argument assembly for archive and link invocations.

The order of the link arguments matters: many linkers resolve symbols left to
right, and user-supplied flags must follow every generated flag so they can
override it.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Literal, assert_never

from linkplan.errors import InternalError
from linkplan.models import ProductKind, Target, c99_identifier
from linkplan.observability import DiagnosticsScope
from linkplan.parameters import BuildParameters
from linkplan.policy import (
    dead_strip_arguments,
    entrypoint_rename_arguments,
    install_name_arguments,
    rpath_arguments,
    static_stdlib_arguments,
    stdlib_rpath_arguments,
    xlinker,
)
from linkplan.product import ProductDescription

LinkedKind = Literal["dynamic_library", "executable", "test"]

# Never valid when the driver links a product.
INVALID_LINK_ARGUMENTS = frozenset({"-wmo", "-whole-module-optimization"})


def strip_invalid_arguments(args: Iterable[str]) -> list[str]:
    return [arg for arg in args if arg not in INVALID_LINK_ARGUMENTS]


def ordered_unique(items: Iterable[str]) -> list[str]:
    """Drop repeated items; the first occurrence keeps its position."""
    return list(dict.fromkeys(items))


def build_settings_flags(static_targets: Sequence[Target]) -> list[str]:
    flags: list[str] = []

    libraries = ordered_unique(lib for target in static_targets for lib in target.link_libraries)
    flags += ["-l" + library for library in libraries]

    frameworks = ordered_unique(
        framework for target in static_targets for framework in target.link_frameworks
    )
    for framework in frameworks:
        flags += ["-framework", framework]

    for target in static_targets:
        flags += target.other_ldflags

    return flags


def compute_archive_arguments(
    product: ProductDescription,
    parameters: BuildParameters,
) -> list[str]:
    if product.kind is not ProductKind.STATIC_LIBRARY:
        raise InternalError(
            "Archive arguments requested for a product that is not a static library.",
            hint="Use compute_link_arguments() for linked products.",
            product=product.name,
            kind=product.kind,
        )

    librarian = str(parameters.toolchain.librarian_path)
    binary = str(parameters.binary_path(product.name, product.kind))
    filelist = "@" + str(product.link_filelist_path(parameters.build_path))
    triple = parameters.triple

    if triple.is_windows() and librarian.endswith(("link", "link.exe")):
        return [librarian, "/LIB", f"/OUT:{binary}", filelist]
    if triple.is_darwin() and librarian.endswith("libtool"):
        return [librarian, "-static", "-o", binary, filelist]
    return [librarian, "crs", binary, filelist]


def linked_kind(product: ProductDescription, parameters: BuildParameters) -> LinkedKind | None:
    """Resolve how a product is linked; ``None`` means it is archived instead."""
    match product.kind:
        case ProductKind.DYNAMIC_LIBRARY:
            return "dynamic_library"
        case ProductKind.EXECUTABLE | ProductKind.SNIPPET:
            return "executable"
        case ProductKind.TEST:
            return "test"
        case ProductKind.STATIC_LIBRARY:
            return None
        case ProductKind.MACRO:
            match parameters.macro_link_style:
                case "dynamic_library":
                    return "dynamic_library"
                case "executable":
                    return "executable"
                case "unsupported":
                    raise InternalError(
                        "Macro products are not supported by this build configuration.",
                        product=product.name,
                        kind=product.kind,
                    )
                case unreachable:
                    assert_never(unreachable)
        case ProductKind.AUTOMATIC_LIBRARY:
            raise InternalError(
                "Automatic library not supported.",
                product=product.name,
                kind=product.kind,
            )
        case ProductKind.PLUGIN:
            raise InternalError(
                "Unexpectedly asked to generate linker arguments for a plugin product.",
                product=product.name,
                kind=product.kind,
            )
        case unreachable:
            assert_never(unreachable)


def compute_link_arguments(
    product: ProductDescription,
    parameters: BuildParameters,
    *,
    diagnostics: DiagnosticsScope | None = None,
    is_directory: Callable[[Path], bool] = os.path.isdir,
) -> list[str]:
    """Return the compiler driver invocation that links *product*.

    Static libraries produce an empty list; they are archived through
    :func:`compute_archive_arguments`.
    """
    kind = linked_kind(product, parameters)
    if kind is None:
        return []

    toolchain = parameters.toolchain
    triple = parameters.triple
    build_path = str(parameters.build_path)

    args = [str(toolchain.compiler_path)]
    args += parameters.sanitizer_link_flags()
    args += product.additional_flags

    # Release builds still carry debug info so the driver can emit symbols.
    if parameters.configuration == "release":
        if triple.is_windows():
            args += xlinker("-debug")
        else:
            args += ["-g"]

    # Binary frameworks are copied into the build directory.
    if product.library_binary_paths:
        args += ["-F", build_path]

    args += ["-L", build_path]
    args += ["-o", str(parameters.binary_path(product.name, product.kind))]
    args += ["-module-name", c99_identifier(product.name)]
    args += ["-l" + dylib.name for dylib in product.dylibs]

    if parameters.enable_code_coverage:
        args += ["-profile-coverage-mapping", "-profile-generate"]

    has_static_stdlib = False
    match kind:
        case "test":
            match parameters.resolved_test_product_style:
                case "loadable_bundle":
                    args += xlinker("-bundle")
                case "entry_point_executable":
                    args += ["-emit-executable"]
                case unreachable:
                    assert_never(unreachable)
            args += dead_strip_arguments(parameters)
        case "dynamic_library":
            args += ["-emit-library"]
            args += install_name_arguments(product, parameters)
            args += dead_strip_arguments(parameters)
        case "executable":
            static_stdlib = static_stdlib_arguments(product, parameters, diagnostics)
            args += static_stdlib.arguments
            has_static_stdlib = static_stdlib.has_static_stdlib
            args += ["-emit-executable"]
            args += dead_strip_arguments(parameters)
            args += entrypoint_rename_arguments(product, parameters)
        case unreachable:
            assert_never(unreachable)

    resources_path = toolchain.resources_path_for(static=has_static_stdlib)
    if resources_path is not None:
        args += ["-resource-dir", str(resources_path)]

    # The C-family resources always live under the dynamic resource directory.
    if toolchain.resources_path is not None:
        clang_resources_path = toolchain.resources_path / "clang"
        args += ["-Xclang-linker", "-resource-dir", "-Xclang-linker", str(clang_resources_path)]

    args += rpath_arguments(parameters, product.kind)
    args += ["@" + str(product.link_filelist_path(parameters.build_path))]
    args += stdlib_rpath_arguments(product, parameters)

    # No compatibility shims are needed without managed-language sources.
    if not product.contains_managed_targets:
        args += ["-runtime-compatibility-version", "none"]

    # Deployment targets are package-wide, so the first target stands for all.
    args += parameters.target_triple_args(product.primary_target, product.package_platforms)

    args += build_settings_flags(product.static_targets)

    for ast_path in product.ast_paths:
        args += xlinker("-add_ast_path", str(ast_path))

    args += toolchain.extra_compiler_flags
    args += parameters.linker_flags
    args += strip_invalid_arguments(parameters.compiler_flags)

    toolchain_lib_dir = toolchain.toolchain_lib_dir
    if is_directory(toolchain_lib_dir):
        args += ["-L", str(toolchain_lib_dir)]

    if product.kind is ProductKind.MACRO and kind == "dynamic_library":
        args += ["-L", str(toolchain.resolved_host_lib_dir)]

    return args
