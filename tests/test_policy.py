from pathlib import Path

import pytest

from conftest import DARWIN, LINUX, WASI, WINDOWS, ParametersFactory, ProductFactory
from linkplan.errors import InternalError
from linkplan.models import ProductKind, Target
from linkplan.observability import STATIC_STDLIB_UNSUPPORTED, DiagnosticsScope
from linkplan.policy import (
    dead_strip_arguments,
    entrypoint_rename_arguments,
    install_name_arguments,
    rpath_arguments,
    static_stdlib_arguments,
    stdlib_rpath_arguments,
    uses_stdlib_rpath,
)


@pytest.mark.parametrize("triple", [LINUX, DARWIN, WINDOWS, WASI, "x86_64-unknown-freebsd14"])
def test_dead_strip_is_empty_in_debug_for_every_platform(
    make_parameters: ParametersFactory,
    triple: str,
) -> None:
    parameters = make_parameters(triple, configuration="debug", linker_dead_strip=True)
    assert dead_strip_arguments(parameters) == []


@pytest.mark.parametrize(
    ("triple", "expected"),
    [
        (LINUX, ["-Xlinker", "--gc-sections"]),
        (DARWIN, ["-Xlinker", "-dead_strip"]),
        (WINDOWS, ["-Xlinker", "/OPT:REF"]),
        (WASI, []),
        ("wasm32-unknown-none-wasm", []),
        ("x86_64-unknown-freebsd14", ["-Xlinker", "--gc-sections"]),
    ],
)
def test_dead_strip_release_table(
    make_parameters: ParametersFactory,
    triple: str,
    expected: list[str],
) -> None:
    parameters = make_parameters(triple, configuration="release", linker_dead_strip=True)
    assert dead_strip_arguments(parameters) == expected


def test_dead_strip_respects_global_switch(make_parameters: ParametersFactory) -> None:
    parameters = make_parameters(LINUX, configuration="release", linker_dead_strip=False)
    assert dead_strip_arguments(parameters) == []


@pytest.mark.parametrize(
    ("triple", "kind", "expected"),
    [
        (DARWIN, ProductKind.TEST, ["-Xlinker", "-rpath", "-Xlinker", "@loader_path/../../../"]),
        (DARWIN, ProductKind.EXECUTABLE, ["-Xlinker", "-rpath", "-Xlinker", "@loader_path"]),
        (DARWIN, ProductKind.DYNAMIC_LIBRARY, ["-Xlinker", "-rpath", "-Xlinker", "@loader_path"]),
        (LINUX, ProductKind.TEST, ["-Xlinker", "-rpath=$ORIGIN"]),
        (LINUX, ProductKind.EXECUTABLE, ["-Xlinker", "-rpath=$ORIGIN"]),
        (WINDOWS, ProductKind.EXECUTABLE, []),
        (WASI, ProductKind.EXECUTABLE, []),
    ],
)
def test_rpath_table(
    make_parameters: ParametersFactory,
    triple: str,
    kind: ProductKind,
    expected: list[str],
) -> None:
    assert rpath_arguments(make_parameters(triple), kind) == expected


def test_entrypoint_renaming_per_platform(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    product = make_product("my-tool", targets=(Target(name="my-tool"),))

    assert entrypoint_rename_arguments(product, make_parameters(DARWIN)) == [
        "-Xlinker",
        "-alias",
        "-Xlinker",
        "_my_tool_main",
        "-Xlinker",
        "_main",
    ]
    assert entrypoint_rename_arguments(product, make_parameters(LINUX)) == [
        "-Xlinker",
        "--defsym",
        "-Xlinker",
        "main=my_tool_main",
    ]
    assert entrypoint_rename_arguments(product, make_parameters(WINDOWS)) == []


@pytest.mark.parametrize(
    ("target", "tools_version", "can_rename"),
    [
        (Target(name="App", is_managed_language_target=False), (5, 9), True),
        (Target(name="App", supports_testable_executables=False), (5, 9), True),
        (Target(name="App"), (5, 4), True),
        (Target(name="App"), (5, 9), False),
    ],
)
def test_entrypoint_renaming_requires_every_capability(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
    target: Target,
    tools_version: tuple[int, int],
    can_rename: bool,
) -> None:
    product = make_product(targets=(target,), tools_version=tools_version)
    parameters = make_parameters(LINUX, can_rename_entrypoint_function_name=can_rename)
    assert entrypoint_rename_arguments(product, parameters) == []


def test_static_stdlib_on_linux_sets_flag(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    fragment = static_stdlib_arguments(
        make_product(),
        make_parameters(LINUX, should_link_static_stdlib=True),
    )
    assert fragment.arguments == ("-static-stdlib",)
    assert fragment.has_static_stdlib is True


def test_static_stdlib_on_darwin_emits_diagnostic_instead_of_flag(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    diagnostics = DiagnosticsScope()
    with pytest.warns(RuntimeWarning, match="not supported on Darwin"):
        fragment = static_stdlib_arguments(
            make_product(),
            make_parameters(DARWIN, should_link_static_stdlib=True),
            diagnostics,
        )

    assert fragment.arguments == ()
    assert fragment.has_static_stdlib is False
    assert diagnostics.has_errors
    [record] = diagnostics.records_for_product("App")
    assert record["code"] == STATIC_STDLIB_UNSUPPORTED
    assert record["level"] == "error"


def test_static_stdlib_is_skipped_where_unsupported_or_unrequested(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    product = make_product()
    windows = static_stdlib_arguments(
        product,
        make_parameters(WINDOWS, should_link_static_stdlib=True),
    )
    unrequested = static_stdlib_arguments(product, make_parameters(LINUX))
    assert windows.arguments == () and not windows.has_static_stdlib
    assert unrequested.arguments == () and not unrequested.has_static_stdlib


def test_stdlib_back_deploy_rpath_below_macos_12(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
    tmp_path: Path,
) -> None:
    product = make_product(package_platforms={"macos": "10.15"})
    expected_dir = tmp_path / "toolchain" / "usr" / "lib" / "swift-5.5" / "macosx"
    assert stdlib_rpath_arguments(product, make_parameters(DARWIN)) == [
        "-Xlinker",
        "-rpath",
        "-Xlinker",
        str(expected_dir),
    ]


def test_stdlib_back_deploy_rpath_defaults_to_oldest_macos(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    assert stdlib_rpath_arguments(make_product(), make_parameters(DARWIN)) != []


@pytest.mark.parametrize(
    ("triple", "macos", "managed"),
    [
        (DARWIN, "12.0", True),
        (DARWIN, "14.0", True),
        (DARWIN, "10.15", False),
        (LINUX, "10.15", True),
    ],
)
def test_stdlib_back_deploy_rpath_is_conditional(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
    triple: str,
    macos: str,
    managed: bool,
) -> None:
    product = make_product(
        targets=(Target(name="App", is_managed_language_target=managed),),
        package_platforms={"macos": macos},
    )
    assert stdlib_rpath_arguments(product, make_parameters(triple)) == []


def test_uses_stdlib_rpath_is_exhaustive() -> None:
    assert uses_stdlib_rpath(ProductKind.DYNAMIC_LIBRARY)
    assert uses_stdlib_rpath(ProductKind.MACRO)
    assert not uses_stdlib_rpath(ProductKind.STATIC_LIBRARY)
    with pytest.raises(InternalError):
        uses_stdlib_rpath(ProductKind.PLUGIN)
    with pytest.raises(InternalError):
        uses_stdlib_rpath(ProductKind.AUTOMATIC_LIBRARY)


def test_install_name_is_darwin_only(
    make_parameters: ParametersFactory,
    make_product: ProductFactory,
) -> None:
    product = make_product("Core", kind=ProductKind.DYNAMIC_LIBRARY)
    assert install_name_arguments(product, make_parameters(DARWIN)) == [
        "-Xlinker",
        "-install_name",
        "-Xlinker",
        "@rpath/libCore.dylib",
    ]
    assert install_name_arguments(product, make_parameters(LINUX)) == []
