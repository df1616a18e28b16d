"""Command-line interface for linedoc."""

import argparse
import pathlib
import sys

from linedoc.errors import ConfigError, LinedocError
from linedoc.models import RunConfig
from linedoc.pipeline import extract_documents


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linedoc",
        description=(
            "Extract marked line blocks from source files "
            "into a folder tree of Markdown documents."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-dir", "--dir", dest="dir", required=True, help="Source folder to scan recursively."
    )
    parser.add_argument(
        "-work",
        "--work",
        dest="work",
        required=True,
        help="Document root the Markdown tree is written into; created if absent.",
    )
    parser.add_argument(
        "-start",
        "--start",
        dest="start",
        required=True,
        help=(
            "Prefix marking a block header line, e.g. '//#'. "
            "A prefix starting with '-' must be attached with '=', e.g. -start=--#."
        ),
    )
    parser.add_argument(
        "-path",
        "--path",
        dest="path",
        required=True,
        help="Dot-separated label whitelist, e.g. 'EPIC.ITEM.TASK'.",
    )
    parser.add_argument(
        "-ext",
        "--ext",
        dest="ext",
        required=True,
        help="File name suffix of the files to scan, e.g. '.rs'.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show per-file and per-document progress.",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove the document root before writing.",
    )
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Leave documents that no block produces any more in place.",
    )
    parser.add_argument(
        "--contiguous",
        action="store_true",
        help="Treat a block as a run of consecutive marker lines.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Gitignore-style pattern to skip while scanning (repeatable).",
    )
    parser.add_argument(
        "--gitignore",
        action="store_true",
        help="Also skip paths matched by the source folder's .gitignore.",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Number of files scanned in parallel.",
    )
    return parser


def make_config(args: argparse.Namespace) -> RunConfig:
    """Validate parsed arguments and turn them into a RunConfig.

    Raises:
        ConfigError: If a flag value cannot be used
    """
    if not args.start:
        raise ConfigError("-start must not be empty")
    if not args.ext:
        raise ConfigError("-ext must not be empty")
    labels = tuple(args.path.split("."))
    if not all(label.strip() for label in labels):
        raise ConfigError(f"-path {args.path!r} contains an empty label")
    if len(set(labels)) != len(labels):
        raise ConfigError(f"-path {args.path!r} repeats a label")
    if args.jobs < 1:
        raise ConfigError("--jobs must be at least 1")

    scan_root = pathlib.Path(args.dir)
    work_root = pathlib.Path(args.work)
    if args.clean and scan_root.resolve().is_relative_to(work_root.resolve()):
        raise ConfigError("--clean would delete the source folder inside the document root")

    return RunConfig(
        scan_root=scan_root,
        work_root=work_root,
        marker=args.start,
        labels=tuple(label.strip() for label in labels),
        extension=args.ext,
        contiguous=args.contiguous,
        clean=args.clean,
        keep=args.keep,
        exclude=tuple(args.exclude),
        use_gitignore=args.gitignore,
        jobs=args.jobs,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the linedoc CLI."""
    args = build_parser().parse_args(argv)

    try:
        extract_documents(make_config(args))
    except LinedocError as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
