import argparse
import logging
from typing import Optional, Sequence

from reportwriter.cli.commands.export import handle_export, handle_headers
from reportwriter.cli.visuals import VALID_VISUALS


def build_parser() -> argparse.ArgumentParser:
    # Common options shared by top-level and subcommands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="set logging level (default: WARNING)",
    )
    common.add_argument(
        "--progress",
        choices=["auto", "spinner", "bars", "off"],
        default=None,
        help="progress display while reading the cache: auto, spinner, bars, or off",
    )

    parser = argparse.ArgumentParser(
        prog="reportwriter",
        description="Format line-delimited JSON report caches as CSV files or xlsx workbooks.",
        parents=[common],
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_export = sub.add_parser(
        "export",
        help="write a cache file as csv or xlsx",
        parents=[common],
    )
    p_export.add_argument("cache", help="path to the line-delimited JSON cache file")
    p_export.add_argument(
        "--format", "-f",
        dest="fmt",
        choices=["csv", "xlsx"],
        help="output format (overrides the config file; default: csv)",
    )
    p_export.add_argument(
        "--out", "-o",
        dest="out_path",
        help="output file path (defaults to the cache path with the format suffix)",
    )
    p_export.add_argument("--config", "-c", dest="config_path", help="path to an export YAML config")
    p_export.add_argument(
        "--headers",
        dest="headers_path",
        help="JSON or YAML file with the pre-sorted header list (skips discovery)",
    )
    p_export.add_argument(
        "--header-mode",
        choices=["merge", "flatten", "children"],
        help="xlsx header rendering: merged cells, padded rows, or child names only",
    )
    p_export.add_argument(
        "--freeze",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="freeze the header rows in xlsx output",
    )
    p_export.add_argument(
        "--remove-cache",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="delete the cache file after a successful export",
    )
    p_export.add_argument(
        "--visuals",
        choices=VALID_VISUALS,
        default=None,
        help="visuals renderer: auto (default), tqdm, rich, or off",
    )

    p_headers = sub.add_parser(
        "headers",
        help="print the header list discovered in a cache file as JSON",
        parents=[common],
    )
    p_headers.add_argument("cache", help="path to the line-delimited JSON cache file")
    p_headers.add_argument("--out", "-o", dest="output", help="write the JSON to this file")
    p_headers.add_argument("--config", "-c", dest="config_path", help="path to an export YAML config")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    base_level_name = (getattr(args, "log_level", None) or "WARNING").upper()
    base_level = logging.getLevelName(base_level_name)
    if not isinstance(base_level, int):
        base_level = logging.WARNING
    logging.basicConfig(level=base_level, format="%(message)s")

    if args.cmd == "export":
        handle_export(
            cache=args.cache,
            fmt=getattr(args, "fmt", None),
            out_path=getattr(args, "out_path", None),
            config_path=getattr(args, "config_path", None),
            headers_path=getattr(args, "headers_path", None),
            header_mode=getattr(args, "header_mode", None),
            freeze=getattr(args, "freeze", None),
            remove_cache=getattr(args, "remove_cache", None),
            progress=getattr(args, "progress", None),
            visuals=getattr(args, "visuals", None),
            cli_log_level=getattr(args, "log_level", None),
        )
        return

    if args.cmd == "headers":
        handle_headers(
            cache=args.cache,
            output=getattr(args, "output", None),
            config_path=getattr(args, "config_path", None),
            progress=getattr(args, "progress", None),
        )
        return


if __name__ == "__main__":
    main()
