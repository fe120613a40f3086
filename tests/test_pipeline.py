#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
unit tests:

  * Pipeline Orchestrator
  * External rewrite strategy

see copyright/license README.md
"""

from collections import Counter
import io
import os
import shutil
import tempfile

import pytest

from nt_abbrev import Abbreviator, ConfigError, ExternalRewriter, JsonWriter, KeyValueStore, NTriplesWriter, Pipeline, PipelineError, PipelineState, PipelineStats, RecordWriter, RuleTable, SerializationError, Triple, TripleParseError, TsvWriter  # pylint: disable=C0301


RULES: str = """
a     http://x/y/
b     http://x/
<NULL> http://drop/
"""

SAMPLE: list[ str ] = [
    "# a comment",
    '<http://x/y/s1> <http://x/p> "the deep blue c" .',
    "",
    "<http://x/s2> <http://x/p> <http://drop/o2> .",
    '<http://x/s3> <http://x/label> "atom"@fr .',
    '<http://x/s3> <http://x/label> "atom"@en .',
    '_:b0 <http://x/p> "42"^^<http://x/int> .',
]


def make_lines (
    count: int,
    ) -> list[ str ]:
    """
Generate a larger input, with a comment every hundred lines.
    """
    return [
        "# comment" if i % 100 == 0 else f'<http://x/y/s{i}> <http://x/p{i % 7}> "value {i}" .'
        for i in range(count)
    ]


def run_pipeline (
    lines: list[ str ],
    *,
    writer_class: type[ RecordWriter ] = JsonWriter,
    **kwargs,
    ) -> tuple[ list[ str ], PipelineStats ]:
    """
Run a pipeline with the test rules, returning the output records and
the run statistics.
    """
    fp: io.StringIO = io.StringIO()

    pipeline: Pipeline = Pipeline(
        writer_class(fp),
        abbreviator = Abbreviator(RuleTable.from_text(RULES)),
        **kwargs,
    )

    stats: PipelineStats = pipeline.run(lines)

    assert pipeline.state == PipelineState.DONE
    return fp.getvalue().splitlines(), stats


def test_inline (
    *,
    debug: bool = False,
    ) -> None:
    """
The sequential fallback strips, abbreviates, and keeps input order.
    """
    records, stats = run_pipeline(SAMPLE, workers = 0, writer_class = TsvWriter)

    if debug:
        print("\n".join(records))
        print(stats.get_summary())

    assert records == [
        "a:s1\tb:p\tthe deep blue c",
        "b:s2\tb:p\to2",
        'b:s3\tb:label\tatom"@fr',
        'b:s3\tb:label\tatom"@en',
        '_:b0\tb:p\t42"^^<http://x/int',
    ]

    assert stats.lines_read == len(SAMPLE)
    assert stats.records_written == 5
    assert stats.lines_dropped == 2
    assert stats.errors == 0


def test_ntriples_language (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
N-Triples output keeps brackets and quotes, abbreviating only IRIs,
and the language filter drops the French label.
    """
    records, _ = run_pipeline(SAMPLE, workers = 2, ordered = True, language = "en", writer_class = NTriplesWriter)

    assert records == [
        '<a:s1> <b:p> "the deep blue c" .',
        "<b:s2> <b:p> <o2> .",
        '<b:s3> <b:label> "atom"@en .',
        '_:b0 <b:p> "42"^^<b:int> .',
    ]


def test_concurrent_no_loss (
    *,
    debug: bool = False,
    ) -> None:
    """
Many workers produce the same multiset of records as one worker: no
line gets lost or duplicated.
    """
    lines: list[ str ] = make_lines(5000)

    single, _ = run_pipeline(lines, workers = 1)
    multi, stats = run_pipeline(lines, workers = 8, queue_size = 16)

    if debug:
        print(stats.get_summary())

    assert len(single) == 4950
    assert Counter(multi) == Counter(single)
    assert stats.records_written == 4950
    assert stats.lines_dropped == 50


def test_ordered (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
With `ordered` set, a threaded run reproduces the inline output
exactly, using the reorder buffer allocated from the key/value store.
    """
    class CountingStore (KeyValueStore):  # pylint: disable=R0903
        """
Track allocations.
        """
        allocated: int = 0

        def allocate (
            self,
            ) -> dict:
            self.allocated += 1
            return {}

    store: CountingStore = CountingStore()
    lines: list[ str ] = make_lines(3000)

    inline, _ = run_pipeline(lines, workers = 0)
    ordered, _ = run_pipeline(lines, workers = 6, queue_size = 8, ordered = True, kv_store = store)

    assert ordered == inline
    assert store.allocated == 1


def test_strict_error (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
A malformed line aborts the run by default, in both modes, without
hanging even with tiny queues.
    """
    lines: list[ str ] = make_lines(2000)
    lines[500] = "a"

    with pytest.raises(TripleParseError) as exc_info:
        run_pipeline(lines, workers = 4, queue_size = 1)

    assert exc_info.value.line == "a"
    assert exc_info.value.line_num == 501

    with pytest.raises(TripleParseError):
        run_pipeline(lines, workers = 0)


def test_ignore_errors (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
In ignore mode a malformed line gets logged and skipped.
    """
    lines: list[ str ] = SAMPLE + [ "a", "<http://x/s4> <http://x/p> <http://x/o4> ." ]

    records, stats = run_pipeline(lines, workers = 3, ignore_errors = True, ordered = True)

    assert len(records) == 6
    assert records[-1] == '{"s":"b:s4","p":"b:p","o":"b:o4"}'
    assert stats.errors == 1
    assert stats.lines_dropped == 3


def test_writer_failure (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
A serialization error in the writer thread cancels the run and gets
raised to the caller.
    """
    class BrokenWriter (JsonWriter):
        """
Fail on the tenth record.
        """

        def format_record (
            self,
            triple: Triple,
            ) -> str:
            if self.count == 9:
                raise SerializationError("cannot encode")

            return super().format_record(triple)

    with pytest.raises(SerializationError):
        run_pipeline(make_lines(1000), workers = 4, writer_class = BrokenWriter)


def test_flush_keeps_first_error (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
When flushing the sink also fails after a fatal error, the caller
still sees the first error.
    """
    class FailingFlushWriter (JsonWriter):
        """
Fail on the tenth record, then again on flush.
        """

        def format_record (
            self,
            triple: Triple,
            ) -> str:
            if self.count == 9:
                raise SerializationError("cannot encode")

            return super().format_record(triple)


        def flush (
            self,
            ) -> None:
            raise OSError("disk full")

    with pytest.raises(SerializationError):
        run_pipeline(make_lines(1000), workers = 4, writer_class = FailingFlushWriter)

    with pytest.raises(OSError):
        run_pipeline(make_lines(10), workers = 0, writer_class = FailingFlushWriter)

    with pytest.raises(ConfigError):
        Pipeline(JsonWriter(io.StringIO()), language = 5)  # type: ignore


def test_config_errors (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
Reject negative worker counts and empty queues.
    """
    with pytest.raises(ConfigError):
        Pipeline(JsonWriter(io.StringIO()), workers = -1)

    with pytest.raises(ConfigError):
        Pipeline(JsonWriter(io.StringIO()), queue_size = 0)

    pipeline: Pipeline = Pipeline(JsonWriter(io.StringIO()))

    assert pipeline.workers == (os.cpu_count() or 1)
    assert pipeline.state == PipelineState.INIT


def test_external_command (
    *,
    debug: bool = False,
    ) -> None:
    """
Build one `perl` stage per partition of the rules.
    """
    rewriter: ExternalRewriter = ExternalRewriter(RuleTable.from_text(RULES), partitions = 2)
    cmd: str = rewriter.command("in file.nt")

    if debug:
        print(cmd)

    stages: list[ str ] = cmd.split(" | ")

    assert len(stages) == 2
    assert stages[0].startswith("LANG=C perl -lnpe ")
    assert stages[0].endswith(" < 'in file.nt'")
    assert "s@\\Qhttp://x/y/\\E@a:@g; s@\\Qhttp://drop/\\E@@g" in stages[0]
    assert "s@\\Qhttp://x/\\E@b:@g" in stages[1]

    assert ExternalRewriter(RuleTable([])).command("-") == "cat"


def test_external_unsafe_rules (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
Rules which `perl` would interpolate, or which would break the pattern
delimiter, get rejected instead of building a broken command.
    """
    for text in [ "a http://x/@y/", "a http://x/$y/", "a http://x/\\y/", "a$b http://x/" ]:
        rewriter: ExternalRewriter = ExternalRewriter(RuleTable.from_text(text), partitions = 1)

        with pytest.raises(PipelineError):
            rewriter.command("in.nt")

    # a null shortcut never reaches the replacement
    table: RuleTable = RuleTable.from_text("$ http://x/", null_value = "$")

    assert ExternalRewriter(table, partitions = 1).command("-") == "LANG=C perl -lnpe 's@\\Qhttp://x/\\E@@g'"


@pytest.mark.skipif(shutil.which("perl") is None, reason = "needs perl")
def test_external_run (
    *,
    debug: bool = False,  # pylint: disable=W0613
    ) -> None:
    """
Rewrite a file with the external pipeline.
    """
    rewriter: ExternalRewriter = ExternalRewriter(RuleTable.from_text(RULES), partitions = 1)

    with tempfile.TemporaryDirectory() as tmp_dir:
        in_path: str = os.path.join(tmp_dir, "in.nt")
        out_path: str = os.path.join(tmp_dir, "out.nt")

        with open(in_path, "w", encoding = "utf-8") as fp:
            fp.write("<http://x/y/s> <http://x/p> <http://drop/o> .\n")

        rewriter.run(in_path, out_path)

        with open(out_path, "r", encoding = "utf-8") as fp:
            assert fp.read() == "<a:s> <b:p> <o> .\n"


if __name__ == "__main__":
    test_inline(debug = True)
    test_concurrent_no_loss(debug = True)
    test_external_command(debug = True)
