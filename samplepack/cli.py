from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from samplepack import __version__

from .errors import CategoryLayoutError, StoreFormatError
from .formats import format_help
from .log import setup_logging
from .settings import ImportSettings, load_config, merge_options


def _import_usage(parser: argparse.ArgumentParser) -> str:
    return parser.format_help() + "\n" + format_help() + "\n"


def _add_import_parser(sub: argparse._SubParsersAction) -> argparse.ArgumentParser:
    imp = sub.add_parser(
        "import",
        add_help=False,
        help="Import a dataset (directory, list, archives or store) into a sample store.",
        description="Import a dataset into a sample store.",
    )
    imp.add_argument("-h", "--help", action="store_true", help="Show this help and the format list.")
    imp.add_argument("input", nargs="?", help="Input directory, manifest, archive list or store.")
    imp.add_argument("output", nargs="?", help="Output sample store path.")
    imp.add_argument("--max", dest="max_size", type=int, default=None, help="Limit the longer image side (-1: off).")
    imp.add_argument("--resize", type=int, default=None, help="Resize every image to N x N (-1: off).")
    imp.add_argument("-f", "--format", default=None, help="Input format, by name or number (default: list).")
    imp.add_argument("--cache", default=None, help="Download cache directory (default: .samplepack_cache).")
    imp.add_argument("--compact", action="store_true", default=None, help="Write records without block padding.")
    imp.add_argument("--limit", type=int, default=None, help="Max records to re-encode (store format only, 0: all).")
    imp.add_argument("--encode", default=None, help="Re-encode images to this extension (e.g. .jpg, .png).")
    imp.add_argument("--quality", type=int, default=None, help="Encoder quality 1-100 (JPEG/WebP).")
    imp.add_argument("--mode", choices=("unchanged", "color", "gray"), default=None, help="Decode mode.")
    imp.add_argument("--config", default=None, help="YAML/JSON file with option defaults.")
    imp.add_argument("--log-level", default=None, help="Log level (default: INFO).")
    return imp


def _cmd_import(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    from .importer import run_import

    if args.help or not args.input or not args.output:
        sys.stderr.write(_import_usage(parser))
        return 1

    cli_options = {
        "max_size": args.max_size,
        "resize": args.resize,
        "format": args.format,
        "cache": args.cache,
        "compact": args.compact,
        "limit": args.limit,
        "encode": args.encode,
        "quality": args.quality,
        "mode": args.mode,
        "log_level": args.log_level,
    }
    try:
        file_options = load_config(args.config) if args.config else {}
        settings = ImportSettings.from_options(args.input, args.output, merge_options(file_options, cli_options))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"{exc}\n\n{format_help()}") from exc

    setup_logging(settings.log_level)
    try:
        run_import(settings)
    except (CategoryLayoutError, StoreFormatError, FileNotFoundError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    from .store import StoreReader, summarize_store

    try:
        summary = summarize_store(StoreReader(args.store))
    except (FileNotFoundError, StoreFormatError) as exc:
        raise SystemExit(str(exc)) from exc

    text = json.dumps(summary, indent=2, sort_keys=True) + "\n"
    if args.output == "-":
        sys.stdout.write(text)
        return 0
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    print(str(out))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="samplepack",
        description="Convert image datasets into an append-only sample store.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = _add_import_parser(sub)

    info = sub.add_parser("info", help="Summarize a sample store as JSON.")
    info.add_argument("store", help="Sample store path.")
    info.add_argument("--output", default="-", help="Output JSON path (use - for stdout).")

    args = parser.parse_args(argv)

    if args.command == "import":
        return _cmd_import(args, imp)
    if args.command == "info":
        return _cmd_info(args)

    raise SystemExit("unknown command")


if __name__ == "__main__":
    raise SystemExit(main())
