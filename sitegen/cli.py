"""sitegen command line: build, serve, clean."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sitegen.log import configure_logging
from sitegen.paths import BIND_PORT, DEFAULT_OUTPUT, DEFAULT_SOURCE


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitegen", description="Build static site")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {_get_version()}"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build_parser = subparsers.add_parser("build", help="Incremental build")
    build_parser.add_argument("-s", "--src", type=Path, default=Path(DEFAULT_SOURCE))
    build_parser.add_argument("-o", "--out", type=Path, default=Path(DEFAULT_OUTPUT))
    build_parser.add_argument(
        "--workers", type=int, default=None, help="Worker threads"
    )

    serve_parser = subparsers.add_parser(
        "serve", help="Build, serve and rebuild on change"
    )
    serve_parser.add_argument("-s", "--src", type=Path, default=Path(DEFAULT_SOURCE))
    serve_parser.add_argument("-o", "--out", type=Path, default=Path(DEFAULT_OUTPUT))
    serve_parser.add_argument("--port", type=int, default=BIND_PORT, help="Bind port")

    clean_parser = subparsers.add_parser("clean", help="Remove the output directory")
    clean_parser.add_argument("-o", "--out", type=Path, default=Path(DEFAULT_OUTPUT))

    return parser


def _get_version() -> str:
    from sitegen import __version__

    return __version__


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(verbose=args.verbose)

    if args.command == "build":
        from sitegen.build import build
        from sitegen.dev import print_report

        report = build(args.src, args.out, workers=args.workers)
        print_report(report)
        return 1 if report.fatal is not None else 0

    if args.command == "serve":
        from sitegen.dev import serve

        try:
            serve(args.src, args.out, port=args.port)
        except KeyboardInterrupt:
            print("Stopped")
        return 0

    if args.command == "clean":
        from sitegen.static import clean_output

        if clean_output(args.out):
            print(f"Cleaned {args.out}/")
        else:
            print(f"Nothing to clean at {args.out}/")
        return 0

    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
