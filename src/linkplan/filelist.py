"""Link filelist (response file) serialization."""

from __future__ import annotations

import shlex
from collections.abc import Iterable
from pathlib import Path

from linkplan.parameters import BuildParameters
from linkplan.product import ProductDescription


def render_link_filelist(objects: Iterable[Path | str]) -> str:
    """One shell-escaped path per line, newline-terminated, sorted."""
    paths = sorted({str(path) for path in objects})
    return "".join(f"{shlex.quote(path)}\n" for path in paths)


def write_link_filelist(objects: Iterable[Path | str], destination: str | Path) -> Path:
    """Write *objects* to *destination*, creating parent directories.

    Any existing file is overwritten. Filesystem errors propagate unchanged.
    """
    filelist_path = Path(destination)
    filelist_path.parent.mkdir(parents=True, exist_ok=True)
    filelist_path.write_text(render_link_filelist(objects), encoding="utf-8", newline="\n")
    return filelist_path


def read_link_filelist(path: str | Path) -> list[Path]:
    raw = Path(path).read_text(encoding="utf-8")
    objects: list[Path] = []
    for line in raw.splitlines():
        if not line:
            continue
        objects.extend(Path(token) for token in shlex.split(line))
    return objects


def write_product_filelist(product: ProductDescription, parameters: BuildParameters) -> Path:
    return write_link_filelist(product.objects, product.link_filelist_path(parameters.build_path))
