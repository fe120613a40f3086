#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command line interface:

    nt-abbrev [OPTIONS] FILE

Reads N-Triples from FILE, or stdin for `-`, and writes one record per
triple to stdout or the `-o` output path.

see copyright/license README.md
"""

import argparse
import contextlib
import logging
import os
import pathlib
import sys
import tempfile
import typing

from . import __version__
from .config import SECTION, build_pipeline, build_rule_table, load_config, merge_config
from .errors import NtAbbrevError
from .pipeline import ExternalRewriter, Pipeline
from .rules import RuleTable
from .writer import WRITERS, get_writer_class


# exit status for I/O and decoding errors, which do not derive from `NtAbbrevError`
EXIT_IO_ERROR: int = 8

logger: logging.Logger = logging.getLogger(__name__)


def build_parser (
    ) -> argparse.ArgumentParser:
    """
Define the command line arguments.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog = "nt-abbrev",
        description = "Shrink N-Triples by applying namespace abbreviations.",
    )

    parser.add_argument("file", nargs = "?", help = "N-Triples input, or `-` for stdin")

    parser.add_argument("-a", "--abbreviate", action = "store_true", default = None, help = "abbreviate n-triples using rules")
    parser.add_argument("-f", "--format", default = None, help = "output format, one of: " + ", ".join(sorted(WRITERS)))
    parser.add_argument("-j", "--json", action = "store_true", help = "alias for `--format json`")
    parser.add_argument("-i", "--ignore", action = "store_true", default = None, help = "ignore conversion errors")
    parser.add_argument("-l", "--language", default = None, help = "keep only literals without a language tag, or with this one")
    parser.add_argument("-n", "--null", default = None, help = "shortcut which indicates deleting the prefix")
    parser.add_argument("-o", "--output", default = None, help = "output file to write result to")
    parser.add_argument("-r", "--rules", default = None, help = "path to rules file, use built-in if none given")
    parser.add_argument("-w", "--workers", type = int, default = None, help = "number of worker threads, 0 to run inline")
    parser.add_argument("--ordered", action = "store_true", default = None, help = "keep records in input order")
    parser.add_argument("--config", default = None, help = "JSON configuration file")

    parser.add_argument("-d", "--dump-rules", action = "store_true", help = "dump rules and exit")
    parser.add_argument("-p", "--preamble", action = "store_true", help = "dump rules as Turtle prefixes and exit")
    parser.add_argument("-c", "--dump-command", action = "store_true", help = "dump the external rewrite command and exit")
    parser.add_argument("-x", "--external", action = "store_true", help = "abbreviate with an external perl pipeline")

    parser.add_argument("-V", "--version", action = "version", version = __version__)
    parser.add_argument("-v", "--verbose", action = "count", default = 0, help = "more logging, repeat for debug")

    return parser


def setup_logging (
    verbose: int,
    ) -> None:
    """
Log diagnostics to stderr.
    """
    level: int = logging.WARNING

    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG

    logging.basicConfig(
        level = level,
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream = sys.stderr,
    )


def run_external (
    args: argparse.Namespace,
    config: dict,
    table: RuleTable,
    ) -> None:
    """
Abbreviate via the external strategy into a temporary file, then run
that file through the in-process pipeline without abbreviating again,
so that parsing, the language filter, and the output format all apply.
    """
    settings: dict = config[SECTION]
    rewriter: ExternalRewriter = ExternalRewriter(table, partitions = settings["workers"])

    fd, rewritten = tempfile.mkstemp(prefix = "nt-abbrev-")
    os.close(fd)

    try:
        rewriter.run(args.file, rewritten)

        # already abbreviated
        with open(rewritten, "r", encoding = "utf-8") as fp_in:
            convert(fp_in, args.output, merge_config(config, { "abbreviate": False }))
    finally:
        os.remove(rewritten)


def convert (
    fp_in: typing.TextIO,
    output: str | None,
    config: dict,
    *,
    table: RuleTable | None = None,
    ) -> None:
    """
Run the in-process pipeline from an input stream to the output path,
or stdout.
    """
    with contextlib.ExitStack() as stack:
        fp_out: typing.TextIO = sys.stdout

        if output is not None:
            fp_out = stack.enter_context(
                open(pathlib.Path(output), "w", encoding = "utf-8")
            )

        pipeline: Pipeline = build_pipeline(config, fp_out, table = table)
        pipeline.run(fp_in)


def main (  # pylint: disable=R0911,R0912
    argv: list[ str ] | None = None,
    ) -> int:
    """
Entry point, returning the process exit status.
    """
    parser: argparse.ArgumentParser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config: dict = merge_config(
            load_config(args.config),
            {
                "abbreviate": args.abbreviate,
                "format": "json" if args.json else args.format,
                "ignore_errors": args.ignore,
                "language": args.language,
                "null_value": args.null,
                "workers": args.workers,
                "ordered": args.ordered,
                "rules_path": args.rules,
            },
        )

        settings: dict = config[SECTION]
        get_writer_class(settings["format"])

        needs_rules: bool = any([
            settings["abbreviate"],
            args.dump_rules,
            args.preamble,
            args.dump_command,
            args.external,
        ])

        table: RuleTable | None = None

        if needs_rules:
            table = build_rule_table(config)

        if args.dump_rules:
            print(table.dump())  # type: ignore
            return 0

        if args.preamble:
            print(table.preamble(), end = "")  # type: ignore
            return 0

        if args.file is None:
            parser.print_usage(sys.stderr)
            return 1

        if args.dump_command:
            rewriter: ExternalRewriter = ExternalRewriter(table, partitions = settings["workers"])  # type: ignore
            print(rewriter.command(args.file))
            return 0

        if args.external:
            run_external(args, config, table)  # type: ignore
            return 0

        if args.file == "-":
            convert(sys.stdin, args.output, config, table = table)
        else:
            with open(pathlib.Path(args.file), "r", encoding = "utf-8") as fp_in:
                convert(fp_in, args.output, config, table = table)

    except NtAbbrevError as ex:
        log_msg: str = str(ex)
        logger.error(log_msg)
        return ex.exit_code

    except OSError as ex:
        log_msg = str(ex)
        logger.error(log_msg)
        return EXIT_IO_ERROR

    except UnicodeDecodeError as ex:
        log_msg = f"input {args.file} is not valid UTF-8: {ex}"
        logger.error(log_msg)
        return EXIT_IO_ERROR

    return 0
