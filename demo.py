#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Example using `nt_abbrev` to shrink an N-Triples file into JSON lines.

see copyright/license README.md
"""

import logging
import pathlib
import sys

from nt_abbrev import Abbreviator, JsonWriter, Pipeline, PipelineStats, RuleTable


if __name__ == "__main__":
    logger: logging.Logger = logging.getLogger(__name__)
    logging.basicConfig(level = logging.INFO) # DEBUG

    if len(sys.argv) < 2:
        print("needs a file path specified as a CLI argument")
        sys.exit(-1)

    ## load the built-in rules, and show how they read in Turtle
    table: RuleTable = RuleTable.default()
    print(table.preamble())

    ## abbreviate each triple, writing JSON to stdout
    nt_path: pathlib.Path = pathlib.Path(sys.argv[1])

    with open(nt_path, "r", encoding = "utf-8") as fp_nt:
        pipeline: Pipeline = Pipeline(
            JsonWriter(sys.stdout),
            abbreviator = Abbreviator(table),
            language = "en",
            ignore_errors = True,
        )

        stats: PipelineStats = pipeline.run(fp_nt)

    print(stats.get_summary(), file = sys.stderr)
