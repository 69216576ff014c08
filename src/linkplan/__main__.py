"""Command-line entrypoint: ``python -m linkplan``."""

from __future__ import annotations

import argparse
import json
import sys
import warnings
from collections.abc import Sequence

from linkplan.config import read_build_parameters, read_product_plan
from linkplan.errors import LinkPlanError
from linkplan.filelist import write_product_filelist
from linkplan.invocation import plan_invocation
from linkplan.observability import DiagnosticsScope


def cmd_args(args: argparse.Namespace) -> int:
    parameters = read_build_parameters(args.parameters)
    product = read_product_plan(args.product).freeze()
    diagnostics = DiagnosticsScope()
    # Records are printed below; the matching RuntimeWarning would repeat them.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        invocation = plan_invocation(product, parameters, diagnostics=diagnostics)
    for record in diagnostics.records:
        print(f"{record['level']}: {record['message']}", file=sys.stderr)
    if args.format == "json":
        sys.stdout.write(invocation.to_json())
    else:
        print(json.dumps(list(invocation.argv)))
    return 0


def cmd_filelist(args: argparse.Namespace) -> int:
    parameters = read_build_parameters(args.parameters)
    product = read_product_plan(args.product).freeze()
    path = write_product_filelist(product, parameters)
    print(path)
    return 0


def cmd_fingerprint(args: argparse.Namespace) -> int:
    parameters = read_build_parameters(args.parameters)
    product = read_product_plan(args.product).freeze()
    print(plan_invocation(product, parameters).fingerprint())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkplan",
        description="Compute archive/link invocations for build products",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    args_p = sub.add_parser("args", help="Print the archive or link argument list")
    fingerprint_p = sub.add_parser("fingerprint", help="Print the invocation fingerprint")
    filelist_p = sub.add_parser("filelist", help="Write the product's link filelist")
    for sub_parser in (args_p, fingerprint_p, filelist_p):
        sub_parser.add_argument("--parameters", required=True, help="Build parameters JSON file")
        sub_parser.add_argument("--product", required=True, help="Product plan JSON file")
    args_p.add_argument(
        "--format",
        choices=("argv", "json"),
        default="argv",
        help="Print the bare argv or the full invocation record",
    )

    args_p.set_defaults(handler=cmd_args)
    fingerprint_p.set_defaults(handler=cmd_fingerprint)
    filelist_p.set_defaults(handler=cmd_filelist)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return int(args.handler(args))
    except LinkPlanError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
