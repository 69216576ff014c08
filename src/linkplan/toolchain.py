"""Toolchain paths consumed by archive and link invocations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from linkplan.errors import ValidationError

BACK_DEPLOY_RUNTIME = ("swift-5.5", "macosx")


@dataclass(frozen=True, slots=True)
class Toolchain:
    """Resolved tool locations; discovery happens upstream."""

    compiler_path: Path
    librarian_path: Path
    resources_path: Path | None = None
    static_resources_path: Path | None = None
    lib_dir: Path | None = None
    host_lib_dir: Path | None = None
    stdlib_path: Path | None = None
    extra_compiler_flags: tuple[str, ...] = ()

    def resources_path_for(self, *, static: bool) -> Path | None:
        if static:
            return self.static_resources_path
        return self.resources_path

    @property
    def toolchain_lib_dir(self) -> Path:
        if self.lib_dir is not None:
            return self.lib_dir
        return self.compiler_path.parent.parent / "lib"

    @property
    def resolved_host_lib_dir(self) -> Path:
        if self.host_lib_dir is not None:
            return self.host_lib_dir
        return self.toolchain_lib_dir / "swift" / "host"

    def back_deployed_stdlib_dir(self) -> Path:
        """Directory holding the bundled back-deployment runtime libraries."""
        if self.stdlib_path is None:
            raise ValidationError(
                "Toolchain does not declare a standard library location.",
                hint="Set `stdlib_path` when targeting Darwin releases that need back-deployment.",
                context={"compiler": str(self.compiler_path)},
            )
        return self.stdlib_path.parent.parent.joinpath(*BACK_DEPLOY_RUNTIME)
