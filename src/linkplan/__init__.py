"""Public package entrypoint for the link plan compiler."""

from .assembler import (
    build_settings_flags,
    compute_archive_arguments,
    compute_link_arguments,
    strip_invalid_arguments,
)
from .config import (
    parse_build_parameters,
    parse_product_plan,
    read_build_parameters,
    read_product_plan,
)
from .errors import ConfigurationError, ErrorCode, InternalError, LinkPlanError, ValidationError
from .filelist import read_link_filelist, write_link_filelist, write_product_filelist
from .invocation import LinkInvocation, plan_invocation
from .models import Platform, ProductKind, Target, Triple
from .observability import DiagnosticsScope
from .parameters import BuildParameters
from .product import ProductDescription, ProductPlan, link_filelist_path, temps_path
from .toolchain import Toolchain

__all__ = [
    "BuildParameters",
    "ConfigurationError",
    "DiagnosticsScope",
    "ErrorCode",
    "InternalError",
    "LinkInvocation",
    "LinkPlanError",
    "Platform",
    "ProductDescription",
    "ProductKind",
    "ProductPlan",
    "Target",
    "Toolchain",
    "Triple",
    "ValidationError",
    "build_settings_flags",
    "compute_archive_arguments",
    "compute_link_arguments",
    "link_filelist_path",
    "parse_build_parameters",
    "parse_product_plan",
    "plan_invocation",
    "read_build_parameters",
    "read_link_filelist",
    "read_product_plan",
    "strip_invalid_arguments",
    "temps_path",
    "write_link_filelist",
    "write_product_filelist",
]
