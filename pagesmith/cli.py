"""CLI entrypoints for pagesmith commands."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

from .config import ConfigError, apply_overrides, load_config
from .executor import BuildError
from .graph import GraphError
from .logging import configure_logging
from .pipeline import Pipeline
from .scanner import ScanError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive number")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagesmith",
        description="Build a static site from a tree of Markdown documents.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Rebuild stale pages and listings.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    build_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    build_parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Output directory, relative to the project root (overrides output.dir).",
    )
    action = build_parser.add_mutually_exclusive_group()
    action.add_argument(
        "--clean",
        action="store_true",
        help="Remove all generated artifacts instead of building.",
    )
    action.add_argument(
        "--publish",
        action="store_true",
        help="Build, then publish final pages to the configured branch or directory.",
    )
    build_parser.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=None,
        help="Number of artifacts to build in parallel (defaults to CPU count).",
    )
    build_parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop scheduling new artifacts after the first failure.",
    )
    build_parser.add_argument(
        "--deadline",
        type=_positive_float,
        default=None,
        help="Stop scheduling new artifacts after this many seconds.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for pagesmith commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command != "build":  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")

    project_root = Path(args.path)
    if not project_root.is_dir():
        parser.exit(1, f"pagesmith build failed: project root not found: {project_root}\n")

    try:
        config = load_config(project_root)
        apply_overrides(
            config,
            output_dir=args.output_dir,
            jobs=args.jobs,
            failure_policy="fail-fast" if args.fail_fast else None,
            deadline=args.deadline,
        )
        pipeline = Pipeline(config)
        if args.clean:
            removed = pipeline.clean()
            print(f"Removed {len(removed)} generated files")
        elif args.publish:
            result = pipeline.publish()
            if result is False:
                print("Publish target already up to date")
            else:
                print(f"Published to {config.publish.directory or config.publish.branch}")
        else:
            report = pipeline.build()
            print(f"Built {len(report.built)} artifacts, {len(report.skipped)} up to date")
    except (ConfigError, ScanError, GraphError) as exc:
        parser.exit(1, f"pagesmith build failed: {exc}\n")
    except BuildError as exc:
        parser.exit(1, f"{exc}\nRun with --verbose for more details.\n")
    except subprocess.CalledProcessError as exc:
        parser.exit(1, f"pagesmith publish failed: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
