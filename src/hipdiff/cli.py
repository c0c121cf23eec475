"""Command line interface for hipdiff.

Output is JSON on stdout; status and errors go through the selected
reporter on stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .api import DiffRequest, diff_files, inspect_file
from .config import load_options, merge_options
from .diff import DiffOptions
from .format.errors import HipError
from .logging import configure_logging, step
from .reporting import (
    REPORTER_CHOICES,
    get_reporter,
    make_reporter,
    set_reporter,
    set_verbosity,
)


def _diff_cmd(args: argparse.Namespace) -> int:
    base = load_options(args.options) if args.options else DiffOptions()
    options = merge_options(
        base,
        asset_only=args.asset_only,
        detailed=args.detailed,
        trust_checksums=args.trust_checksums,
        include_offsets=args.offsets,
        include_pluses=args.pluses,
    )
    step(f"diffing {args.baseline.name} -> {args.modified.name}")
    result = diff_files(DiffRequest(args.baseline, args.modified, options))
    get_reporter().flush()
    print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    return 0 if result.is_empty else 1


def _inspect_cmd(args: argparse.Namespace) -> int:
    summary, issues = inspect_file(args.package)
    get_reporter().flush()
    print(json.dumps({**summary, "issues": issues}, indent=2, sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hipdiff", description="Diff HIP game asset packages"
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable; -vv traces every block)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=REPORTER_CHOICES,
        default="plain",
        help="Reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    d = sub.add_parser("diff", help="Diff two HIP packages")
    d.add_argument("baseline", type=Path)
    d.add_argument("modified", type=Path)
    d.add_argument(
        "--options",
        type=Path,
        help="YAML or JSON file with diff options (flags below add to it)",
    )
    d.add_argument(
        "-a",
        "--asset-only",
        dest="asset_only",
        action="store_true",
        help="Only diff assets (skip header sections and layers)",
    )
    d.add_argument(
        "-d",
        "--detailed",
        action="store_true",
        help="List changed asset fields instead of asset names only",
    )
    d.add_argument(
        "-c",
        "--trust-checksums",
        dest="trust_checksums",
        action="store_true",
        help="Compare stored checksums instead of payload bytes",
    )
    d.add_argument(
        "-o", "--offsets", action="store_true", help="Diff asset offsets"
    )
    d.add_argument(
        "-p", "--pluses", action="store_true", help="Diff asset plus fields"
    )
    d.set_defaults(func=_diff_cmd)

    i = sub.add_parser("inspect", help="Summarise one HIP package")
    i.add_argument("package", type=Path)
    i.set_defaults(func=_inspect_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    set_reporter(make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except HipError as e:
        rep = get_reporter()
        rep.flush()
        rep.fail(str(e), code=e.code)
        return 2
    except OSError as e:
        rep = get_reporter()
        rep.flush()
        rep.fail(f"Cannot read input: {e}")
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
