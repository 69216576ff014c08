"""Product planning accumulator and the frozen snapshot used for assembly."""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from linkplan.errors import InternalError, ValidationError
from linkplan.models import ProductKind, Target

DEFAULT_TOOLS_VERSION = (5, 9)
TEMPS_SUFFIX = ".product"
LINK_FILELIST_NAME = "Objects.LinkFileList"


def temps_path(build_path: Path, product_name: str) -> Path:
    return build_path / f"{product_name}{TEMPS_SUFFIX}"


def link_filelist_path(build_path: Path, product_name: str) -> Path:
    return temps_path(build_path, product_name) / LINK_FILELIST_NAME


def _canonical_paths(paths: Iterable[Path | str]) -> tuple[Path, ...]:
    return tuple(sorted({Path(path) for path in paths}, key=str))


def _reject_automatic(name: str, kind: ProductKind) -> None:
    if kind is ProductKind.AUTOMATIC_LIBRARY:
        raise InternalError(
            "Automatic type libraries should not be described.",
            hint="Resolve automatic libraries to static or dynamic before planning links.",
            product=name,
            kind=kind,
        )


@dataclass(frozen=True, slots=True)
class ProductDescription:
    """Immutable view of a product once build planning has finished.

    ``objects`` and ``ast_paths`` are normalized to ascending path order with
    duplicates removed, so two descriptions built from the same inputs always
    produce the same invocation.
    """

    name: str
    kind: ProductKind
    targets: tuple[Target, ...]
    objects: tuple[Path, ...] = ()
    dylibs: tuple[ProductDescription, ...] = ()
    additional_flags: tuple[str, ...] = ()
    static_targets: tuple[Target, ...] = ()
    ast_paths: tuple[Path, ...] = ()
    library_binary_paths: frozenset[Path] = frozenset()
    tools_version: tuple[int, int] = DEFAULT_TOOLS_VERSION
    package_platforms: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _reject_automatic(self.name, self.kind)
        object.__setattr__(self, "objects", _canonical_paths(self.objects))
        object.__setattr__(self, "ast_paths", _canonical_paths(self.ast_paths))

    @property
    def contains_managed_targets(self) -> bool:
        return any(target.is_managed_language_target for target in self.targets)

    @property
    def primary_target(self) -> Target:
        if not self.targets:
            raise ValidationError(
                "Product declares no targets.",
                hint="Every linked product needs at least one target.",
                context={"product": self.name},
            )
        return self.targets[0]

    def temps_path(self, build_path: Path) -> Path:
        return temps_path(build_path, self.name)

    def link_filelist_path(self, build_path: Path) -> Path:
        return link_filelist_path(build_path, self.name)


@dataclass(slots=True)
class ProductPlan:
    """Append-only accumulator populated by the build planner."""

    name: str
    kind: ProductKind
    targets: list[Target] = field(default_factory=list)
    objects: list[Path] = field(default_factory=list)
    dylibs: list[ProductDescription] = field(default_factory=list)
    additional_flags: list[str] = field(default_factory=list)
    static_targets: list[Target] = field(default_factory=list)
    ast_paths: list[Path] = field(default_factory=list)
    library_binary_paths: set[Path] = field(default_factory=set)
    tools_version: tuple[int, int] = DEFAULT_TOOLS_VERSION
    package_platforms: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _reject_automatic(self.name, self.kind)
        self.objects = list(_canonical_paths(self.objects))
        self.ast_paths = list(_canonical_paths(self.ast_paths))

    def add_target(self, target: Target) -> None:
        self.targets.append(target)

    def add_object(self, path: Path | str) -> None:
        _insert_sorted(self.objects, Path(path))

    def add_objects(self, paths: Iterable[Path | str]) -> None:
        for path in paths:
            self.add_object(path)

    def add_dylib(self, product: ProductDescription) -> None:
        self.dylibs.append(product)

    def add_static_target(self, target: Target) -> None:
        self.static_targets.append(target)

    def add_ast_path(self, path: Path | str) -> None:
        _insert_sorted(self.ast_paths, Path(path))

    def add_library_binary_path(self, path: Path | str) -> None:
        self.library_binary_paths.add(Path(path))

    def add_flags(self, *flags: str) -> None:
        self.additional_flags.extend(flags)

    def freeze(self) -> ProductDescription:
        return ProductDescription(
            name=self.name,
            kind=self.kind,
            targets=tuple(self.targets),
            objects=tuple(self.objects),
            dylibs=tuple(self.dylibs),
            additional_flags=tuple(self.additional_flags),
            static_targets=tuple(self.static_targets),
            ast_paths=tuple(self.ast_paths),
            library_binary_paths=frozenset(self.library_binary_paths),
            tools_version=self.tools_version,
            package_platforms=dict(self.package_platforms),
        )


def _insert_sorted(paths: list[Path], path: Path) -> None:
    index = bisect.bisect_left(paths, str(path), key=str)
    if index < len(paths) and paths[index] == path:
        return
    paths.insert(index, path)
