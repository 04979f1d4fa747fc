# ncp/cli.py
from typing import *
import sys
import argparse

from nc_probe import Session, analysis, export, load_options, serialize
from nc_probe.config import OptionError
from nc_probe.errors import NetCDFError, render_error
from nc_probe.logger import setup_logging


def peeloff_dot_args(argv: List[str], prefix: str) -> Tuple[Dict[str, str], List[str]]:
    """
    Split `argv` into the options given as `<prefix>.<KEY>=<VALUE>`
    (e.g. "--opt.STRICT_BOUNDS=false") and the remaining arguments.

    Return: (mapping KEY -> VALUE string, remaining arguments in their order)
    """
    options = {}
    remaining = []
    head = f"{prefix}."
    for arg in argv:
        if not arg.startswith(head):
            remaining.append(arg)
            continue
        key, sep, value = arg[len(head):].partition("=")
        if not sep or not key:
            raise SystemExit(f"Invalid option '{arg}'. Expected format {head}<KEY>=<VALUE>.")
        options[key] = value
    return options, remaining


def parse_select(items: List[str]) -> Dict[str, int]:
    select = {}
    for item in items or []:
        dim, sep, idx = item.partition("=")
        if not sep:
            raise SystemExit(f"Invalid selection '{item}'. Expected format <DIM>=<INDEX>.")
        try:
            select[dim] = int(idx)
        except ValueError:
            raise SystemExit(f"Invalid index in selection '{item}'.")
    return select


def cmd_meta(session: Session, args):
    return session.open_file(args.file)


def cmd_data(session: Session, args):
    return session.get_variable_data(args.file, args.var)


def cmd_subset(session: Session, args):
    return session.get_variable_subset(args.file, args.var, args.start, args.count)


def cmd_series(session: Session, args):
    points = session.get_time_series(args.file, args.var, parse_select(args.select))
    points = analysis.filter_by_value_range(points, args.min, args.max)
    return analysis.filter_by_date_range(points, args.start_date, args.end_date)


def cmd_stats(session: Session, args):
    return session.variable_stats(args.file, args.var)


COMMANDS = {
    "meta": cmd_meta,
    "data": cmd_data,
    "subset": cmd_subset,
    "series": cmd_series,
    "stats": cmd_stats,
}


def describe_filters(args) -> Optional[str]:
    parts = []
    if args.min is not None:
        parts.append(f"value >= {args.min}")
    if args.max is not None:
        parts.append(f"value <= {args.max}")
    if args.start_date is not None:
        parts.append(f"time >= {args.start_date}")
    if args.end_date is not None:
        parts.append(f"time <= {args.end_date}")
    return ", ".join(parts) or None


def csv_settings(args) -> export.CsvSettings:
    return export.CsvSettings(
        delimiter=export.DELIMITERS[args.delimiter],
        precision=args.precision,
        missing=args.missing,
        comments=not args.no_comments,
    )


def csv_data(session: Session, args, result) -> str:
    variable = session.open_file(args.file).variable(args.var)
    return export.variable_csv(result, variable, csv_settings(args))


def csv_subset(session: Session, args, result) -> str:
    variable = session.open_file(args.file).variable(args.var)
    return export.variable_csv(result, variable, csv_settings(args), start=args.start)


def csv_series(session: Session, args, result) -> str:
    variable = session.open_file(args.file).variable(args.var)
    return export.time_series_csv(result, variable, csv_settings(args), describe_filters(args))


CSV_RENDERERS = {
    "data": csv_data,
    "subset": csv_subset,
    "series": csv_series,
}


def arg_parser():
    parser = argparse.ArgumentParser(prog="ncp", description="NetCDF probe command line tool")
    parser.add_argument("--format", choices=["json", "yaml", "csv"], default="json",
                        help="Output format (default: json), csv for data, subset and series")
    parser.add_argument("--config", default=None, help="Path to YAML option file")
    csv_group = parser.add_argument_group("CSV output")
    csv_group.add_argument("--delimiter", choices=list(export.DELIMITERS), default="comma",
                           help="Field delimiter (default: comma)")
    csv_group.add_argument("--precision", type=int, default=4,
                           help="Decimal places of numbers (default: 4)")
    csv_group.add_argument("--missing", default="NA",
                           help="Placeholder of missing numbers (default: NA)")
    csv_group.add_argument("--no-comments", action="store_true",
                           help="Leave out the '#' lines describing the variable")
    subparsers = parser.add_subparsers(dest="command", required=True)

    meta_parser = subparsers.add_parser(
        "meta", help="Print dimensions, variables, attributes and detected coordinates")
    meta_parser.add_argument("file", help="Path to the netCDF file")

    data_parser = subparsers.add_parser("data", help="Print all values of a variable")
    data_parser.add_argument("file", help="Path to the netCDF file")
    data_parser.add_argument("var", help="Variable name")

    subset_parser = subparsers.add_parser(
        "subset", help="Print a rectangular subset of a variable")
    subset_parser.add_argument("file", help="Path to the netCDF file")
    subset_parser.add_argument("var", help="Variable name")
    subset_parser.add_argument("--start", type=int, nargs="*", default=[],
                               help="Start index per dimension")
    subset_parser.add_argument("--count", type=int, nargs="*", default=[],
                               help="Number of elements per dimension")

    series_parser = subparsers.add_parser(
        "series", help="Print the variable along the detected time coordinate")
    series_parser.add_argument("file", help="Path to the netCDF file")
    series_parser.add_argument("var", help="Variable name")
    series_parser.add_argument("--select", action="append", default=[],
                               help="Fixed index of another dimension, <DIM>=<INDEX>")
    series_parser.add_argument("--min", type=float, default=None,
                               help="Keep values >= MIN")
    series_parser.add_argument("--max", type=float, default=None,
                               help="Keep values <= MAX")
    series_parser.add_argument("--from", dest="start_date", default=None,
                               help="Keep times at or after the date")
    series_parser.add_argument("--to", dest="end_date", default=None,
                               help="Keep times at or before the date")

    stats_parser = subparsers.add_parser(
        "stats", help="Print summary statistics of a numeric variable")
    stats_parser.add_argument("file", help="Path to the netCDF file")
    stats_parser.add_argument("var", help="Variable name")
    return parser


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    # First peel off --opt.* into option kwargs
    opt_kwargs, remaining = peeloff_dot_args(argv, '--opt')

    parser = arg_parser()
    args = parser.parse_args(remaining)
    if args.format == "csv" and args.command not in CSV_RENDERERS:
        parser.error(f"CSV output is not available for '{args.command}'")
    if args.precision < 0:
        parser.error("--precision must be non-negative")

    try:
        options = load_options(args.config, **opt_kwargs)
    except OptionError as e:
        print(f"Invalid options: {e}", file=sys.stderr)
        return 2
    except NetCDFError as e:
        print(render_error(e), file=sys.stderr)
        return 2
    setup_logging(options.log_level)

    session = Session(options)
    try:
        result = COMMANDS[args.command](session, args)
        if args.format == "csv":
            output = CSV_RENDERERS[args.command](session, args, result)
        else:
            output = serialize(result, fmt=args.format)
    except NetCDFError as e:
        print(render_error(e), file=sys.stderr)
        return 1

    print(output, end="" if args.format == "csv" else "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
