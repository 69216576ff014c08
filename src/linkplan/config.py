"""JSON loaders for build parameters and product plans."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, get_args

from linkplan.errors import ConfigurationError, LinkPlanError
from linkplan.models import (
    Configuration,
    MacroLinkStyle,
    ProductKind,
    Sanitizer,
    Target,
    TestProductStyle,
    Triple,
    parse_version,
)
from linkplan.parameters import BuildParameters
from linkplan.product import ProductPlan
from linkplan.toolchain import Toolchain


def parse_build_parameters(raw: str) -> BuildParameters:
    payload = _load_json(raw, what="build parameters")
    toolchain_payload = _required_dict(payload, "toolchain")
    try:
        triple = Triple.parse(_required_str(payload, "triple"))
    except LinkPlanError as exc:
        raise ConfigurationError("Invalid `triple` value.", hint=str(exc)) from exc

    test_style = payload.get("test_product_style")
    if test_style is not None:
        test_style = _choice(payload, "test_product_style", get_args(TestProductStyle))
    sanitizers = _str_list(payload, "sanitizers")
    allowed_sanitizers = get_args(Sanitizer)
    for sanitizer in sanitizers:
        if sanitizer not in allowed_sanitizers:
            raise ConfigurationError(
                f"Unknown sanitizer `{sanitizer}`.",
                hint=f"Choose from: {', '.join(allowed_sanitizers)}.",
            )

    return BuildParameters(
        triple=triple,
        toolchain=_parse_toolchain(toolchain_payload),
        build_path=Path(_required_str(payload, "build_path")),
        configuration=_choice(payload, "configuration", get_args(Configuration), default="debug"),
        sanitizers=frozenset(sanitizers),
        linker_dead_strip=_bool(payload, "linker_dead_strip", default=True),
        should_link_static_stdlib=_bool(payload, "should_link_static_stdlib", default=False),
        enable_code_coverage=_bool(payload, "enable_code_coverage", default=False),
        linker_flags=tuple(_str_list(payload, "linker_flags")),
        compiler_flags=tuple(_str_list(payload, "compiler_flags")),
        test_product_style=test_style,
        macro_link_style=_choice(
            payload,
            "macro_link_style",
            get_args(MacroLinkStyle),
            default="executable",
        ),
        can_rename_entrypoint_function_name=_bool(
            payload,
            "can_rename_entrypoint_function_name",
            default=True,
        ),
    )


def read_build_parameters(path: str | Path) -> BuildParameters:
    return parse_build_parameters(_read(path, what="Build parameters"))


def parse_product_plan(raw: str) -> ProductPlan:
    payload = _load_json(raw, what="product plan")
    return _parse_plan(payload)


def read_product_plan(path: str | Path) -> ProductPlan:
    return parse_product_plan(_read(path, what="Product plan"))


def _parse_plan(payload: dict[str, Any]) -> ProductPlan:
    name = _required_str(payload, "name")
    kind_raw = _choice(payload, "kind", tuple(kind.value for kind in ProductKind))
    plan = ProductPlan(name=name, kind=ProductKind(kind_raw))

    for item in _list(payload, "targets"):
        plan.add_target(_parse_target(item))
    plan.add_objects(_str_list(payload, "objects"))
    for item in _list(payload, "dylibs"):
        if not isinstance(item, dict):
            raise ConfigurationError("Invalid `dylibs` entry.")
        plan.add_dylib(_parse_plan(item).freeze())
    plan.add_flags(*_str_list(payload, "additional_flags"))

    declared = {target.name: target for target in plan.targets}
    for item in _list(payload, "static_targets"):
        if isinstance(item, str):
            if item not in declared:
                raise ConfigurationError(
                    f"Static target `{item}` is not declared by the product.",
                    context={"product": name},
                )
            plan.add_static_target(declared[item])
        else:
            plan.add_static_target(_parse_target(item))

    for ast_path in _str_list(payload, "ast_paths"):
        plan.add_ast_path(ast_path)
    for binary_path in _str_list(payload, "library_binary_paths"):
        plan.add_library_binary_path(binary_path)

    tools_version = payload.get("tools_version")
    if tools_version is not None:
        plan.tools_version = _tools_version(tools_version)
    plan.package_platforms.update(_str_dict(payload, "package_platforms"))
    return plan


def _parse_target(item: Any) -> Target:
    if not isinstance(item, dict):
        raise ConfigurationError("Invalid target entry.")
    return Target(
        name=_required_str(item, "name"),
        is_managed_language_target=_bool(item, "is_managed_language_target", default=True),
        supports_testable_executables=_bool(item, "supports_testable_executables", default=True),
        platforms=_str_dict(item, "platforms"),
        link_libraries=tuple(_str_list(item, "link_libraries")),
        link_frameworks=tuple(_str_list(item, "link_frameworks")),
        other_ldflags=tuple(_str_list(item, "other_ldflags")),
    )


def _parse_toolchain(payload: dict[str, Any]) -> Toolchain:
    return Toolchain(
        compiler_path=Path(_required_str(payload, "compiler_path")),
        librarian_path=Path(_required_str(payload, "librarian_path")),
        resources_path=_optional_path(payload, "resources_path"),
        static_resources_path=_optional_path(payload, "static_resources_path"),
        lib_dir=_optional_path(payload, "lib_dir"),
        host_lib_dir=_optional_path(payload, "host_lib_dir"),
        stdlib_path=_optional_path(payload, "stdlib_path"),
        extra_compiler_flags=tuple(_str_list(payload, "extra_compiler_flags")),
    )


def _tools_version(value: Any) -> tuple[int, int]:
    if not isinstance(value, str):
        raise ConfigurationError("Invalid `tools_version` value.")
    try:
        parts = parse_version(value)
    except LinkPlanError as exc:
        raise ConfigurationError("Invalid `tools_version` value.", hint=str(exc)) from exc
    major = parts[0]
    minor = parts[1] if len(parts) > 1 else 0
    return (major, minor)


def _read(path: str | Path, *, what: str) -> str:
    config_path = Path(path)
    try:
        return config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"{what} file does not exist.",
            context={"path": str(config_path)},
        ) from exc


def _load_json(raw: str, *, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid {what} JSON.", hint=str(exc)) from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Invalid {what} payload type.")
    return payload


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"Invalid `{key}` value.")
    return value


def _optional_path(payload: dict[str, Any], key: str) -> Path | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"Invalid `{key}` value.")
    return Path(value)


def _required_dict(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise ConfigurationError(f"Invalid `{key}` value.")
    return value


def _bool(payload: dict[str, Any], key: str, *, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"Invalid `{key}` value.")
    return value


def _choice(
    payload: dict[str, Any],
    key: str,
    choices: tuple[str, ...],
    *,
    default: str | None = None,
) -> Any:
    value = payload.get(key, default)
    if value not in choices:
        raise ConfigurationError(
            f"Invalid `{key}` value.",
            hint=f"Choose from: {', '.join(choices)}.",
            context={key: str(value)},
        )
    return value


def _list(payload: dict[str, Any], key: str) -> list[Any]:
    value = payload.get(key, [])
    if not isinstance(value, list):
        raise ConfigurationError(f"Invalid `{key}` value.")
    return value


def _str_list(payload: dict[str, Any], key: str) -> list[str]:
    value = _list(payload, key)
    if not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"Invalid `{key}` value.")
    return list(value)


def _str_dict(payload: dict[str, Any], key: str) -> dict[str, str]:
    value = payload.get(key, {})
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ConfigurationError(f"Invalid `{key}` value.")
    return dict(value)


__all__ = [
    "parse_build_parameters",
    "parse_product_plan",
    "read_build_parameters",
    "read_product_plan",
]
