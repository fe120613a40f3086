#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Streaming pipeline which parses, filters, and abbreviates N-Triples
lines across a pool of worker threads, then hands the results to a
single record writer.

Architecture:

  * one reader (the calling thread) puts numbered lines onto a bounded
    work queue
  * `workers` threads each parse and abbreviate lines, putting results
    onto a bounded result queue
  * one writer thread drains the result queue into the record writer

Shutdown sends one stop signal per worker after the input runs out,
waits for the workers to finish, then stops the writer. Records appear
in whatever order the workers finish them, unless the pipeline runs
with `ordered = True`, which reinstates input order with a reorder
buffer in the writer thread.

see copyright/license README.md
"""

from dataclasses import dataclass
from enum import Enum
import logging
import os
import queue
import shlex
import subprocess
import threading
import time
import typing

from .abbrev import Abbreviator
from .errors import ConfigError, PipelineError, TripleParseError
from .rules import Rule, RuleTable, partition_rules
from .triple import Triple, accepts_language, parse_triple
from .util import KeyValueStore
from .writer import RecordWriter


# stop signal for the worker and writer threads
_STOP: object = object()

# characters which perl interpolates in, or uses to delimit, a substitution
UNSAFE_CHARS: str = "@$\\"


class PipelineState (str, Enum):
    """
Lifecycle of one pipeline run.
    """
    INIT = "init"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"


@dataclass
class PipelineStats:
    """
Counts collected during one pipeline run.
    """
    lines_read: int = 0
    records_written: int = 0
    lines_dropped: int = 0
    errors: int = 0
    duration_seconds: float = 0.0

    def get_summary (
        self,
        ) -> str:
        """
Human-readable, one-line summary.
        """
        summary: str = " ".join([
            f"read: {self.lines_read}",
            f"written: {self.records_written}",
            f"dropped: {self.lines_dropped}",
            f"errors: {self.errors}",
            f"elapsed: {self.duration_seconds:.2f}s",
        ])

        if self.duration_seconds > 0:
            rate: float = self.lines_read / self.duration_seconds
            summary += f" rate: {rate:.0f} lines/s"

        return summary


class Pipeline:  # pylint: disable=R0902
    """
Concurrent, in-process rewrite of a stream of N-Triples lines.
    """

    def __init__ (  # pylint: disable=R0913
        self,
        writer: RecordWriter,
        *,
        abbreviator: Abbreviator | None = None,
        language: str | None = None,
        ignore_errors: bool = False,
        workers: int | None = None,
        queue_size: int = 1024,
        ordered: bool = False,
        kv_store: KeyValueStore = KeyValueStore(),
        debug: bool = False,
        ) -> None:
        """
Constructor.

Without an `abbreviator` the terms pass through unabbreviated. The
number of `workers` defaults to the processor count, while `workers = 0`
runs each line inline in the calling thread.

Override `KeyValueStore` to replace the Python built-in `dict` used
for the reorder buffer when `ordered` is set.
        """
        self.logger: logging.Logger = logging.getLogger(__name__)

        if workers is None:
            workers = os.cpu_count() or 1

        if workers < 0:
            raise ConfigError(f"workers must not be negative: {workers}")

        if queue_size < 1:
            raise ConfigError(f"queue_size must be positive: {queue_size}")

        if language is not None and not isinstance(language, str):
            raise ConfigError(f"language must be a string: {language!r}")

        self.writer: RecordWriter = writer
        self.abbreviator: Abbreviator | None = abbreviator
        self.language: str | None = language
        self.ignore_errors: bool = ignore_errors
        self.workers: int = workers
        self.queue_size: int = queue_size
        self.ordered: bool = ordered
        self.kv_store: KeyValueStore = kv_store
        self.debug: bool = debug

        self.state: PipelineState = PipelineState.INIT
        self.stats: PipelineStats = PipelineStats()

        self._lock: threading.Lock = threading.Lock()
        self._cancelled: threading.Event = threading.Event()
        self._error: BaseException | None = None


    def process_line (
        self,
        line: str,
        *,
        line_num: int | None = None,
        ) -> Triple | None:
        """
Parse, filter, strip, and abbreviate one input line. Returns `None`
for a line which produces no record: blank, comment, or an object in
a language other than the one requested.

Safe to call from several threads at once.
        """
        triple: Triple | None = parse_triple(line, line_num = line_num)

        if triple is None:
            return None

        if not accepts_language(triple.object, self.language):
            return None

        embellished: bool = self.writer.EMBELLISHED

        if not embellished:
            triple = triple.unembellished()

        if self.abbreviator is not None:
            triple = self.abbreviator.abbreviate(triple, embellished = embellished)

        if self.debug:
            log_msg: str = f"line {line_num}: {triple}"
            self.logger.debug(log_msg)

        return triple


    def run (
        self,
        lines: typing.Iterable[ str ],
        ) -> PipelineStats:
        """
Process every line from the input, writing records through the
writer. A fatal error stops the run and gets raised here once all of
the threads have finished; records written before the error remain in
the sink.
        """
        self.stats = PipelineStats()
        self._error = None
        self._cancelled.clear()

        start_time: float = time.time()

        try:
            if self.workers == 0:
                self._run_inline(lines)
            else:
                self._run_threaded(lines)
        finally:
            # a flush failure never replaces an earlier fatal error
            try:
                self.writer.flush()
            except Exception as ex:  # pylint: disable=W0718
                self._fail(ex)

            self.stats.duration_seconds = time.time() - start_time
            self._set_state(PipelineState.DONE)

            log_msg: str = self.stats.get_summary()
            self.logger.info(log_msg)

        if self._error is not None:
            raise self._error

        return self.stats


    ######################################################################
    ## execution

    def _set_state (
        self,
        state: PipelineState,
        ) -> None:
        self.state = state

        log_msg: str = f"pipeline state: {state.value}"
        self.logger.debug(log_msg)


    def _handle_parse_error (
        self,
        ex: TripleParseError,
        ) -> None:
        """
Log and skip a malformed line in ignore mode, otherwise re-raise.
        """
        with self._lock:
            self.stats.errors += 1

        if not self.ignore_errors:
            raise ex

        log_msg: str = str(ex)
        self.logger.warning(log_msg)


    def _fail (
        self,
        ex: BaseException,
        ) -> None:
        """
Record the first fatal error and cancel the run.
        """
        with self._lock:
            if self._error is None:
                self._error = ex

        if not self._cancelled.is_set():
            log_msg: str = f"cancelling run: {ex}"
            self.logger.error(log_msg)
            self._cancelled.set()


    def _emit (
        self,
        triple: Triple | None,
        ) -> None:
        if triple is None:
            self.stats.lines_dropped += 1
            return

        self.writer.write(triple)
        self.stats.records_written += 1


    def _run_inline (
        self,
        lines: typing.Iterable[ str ],
        ) -> None:
        """
Sequential fallback, which preserves input order.
        """
        self._set_state(PipelineState.STREAMING)

        for line_num, line in enumerate(lines, start = 1):
            self.stats.lines_read += 1
            triple: Triple | None = None

            try:
                triple = self.process_line(line, line_num = line_num)
            except TripleParseError as ex:
                self._handle_parse_error(ex)

            self._emit(triple)

        self._set_state(PipelineState.DRAINING)


    def _run_threaded (
        self,
        lines: typing.Iterable[ str ],
        ) -> None:
        work_queue: queue.Queue = queue.Queue(maxsize = self.queue_size)
        result_queue: queue.Queue = queue.Queue(maxsize = self.queue_size)

        writer_thread: threading.Thread = threading.Thread(
            target = self._write_results,
            args = ( result_queue, ),
            name = "nt-abbrev-writer",
            daemon = True,
        )

        worker_threads: list[ threading.Thread ] = [
            threading.Thread(
                target = self._work,
                args = ( work_queue, result_queue, ),
                name = f"nt-abbrev-worker-{i}",
                daemon = True,
            )
            for i in range(self.workers)
        ]

        writer_thread.start()

        for thread in worker_threads:
            thread.start()

        self._set_state(PipelineState.STREAMING)

        try:
            for line_num, line in enumerate(lines, start = 1):
                if self._cancelled.is_set():
                    break

                work_queue.put(( line_num, line, ))
                self.stats.lines_read += 1

        finally:
            self._set_state(PipelineState.DRAINING)

            for _ in worker_threads:
                work_queue.put(_STOP)

            for thread in worker_threads:
                thread.join()

            result_queue.put(_STOP)
            writer_thread.join()


    def _work (
        self,
        work_queue: queue.Queue,
        result_queue: queue.Queue,
        ) -> None:
        """
Worker loop: runs until it receives a stop signal. After cancellation
the worker keeps draining the work queue without processing, so that
the reader never blocks.
        """
        while True:
            item: typing.Any = work_queue.get()

            if item is _STOP:
                break

            line_num, line = item
            triple: Triple | None = None

            if not self._cancelled.is_set():
                try:
                    triple = self.process_line(line, line_num = line_num)
                except TripleParseError as ex:
                    try:
                        self._handle_parse_error(ex)
                    except TripleParseError as fatal_ex:
                        self._fail(fatal_ex)
                except Exception as ex:  # pylint: disable=W0718
                    self._fail(ex)

            result_queue.put(( line_num, triple, ))


    def _write_results (
        self,
        result_queue: queue.Queue,
        ) -> None:
        """
Writer loop: the only thread which touches the sink.
        """
        pending: dict = self.kv_store.allocate()
        next_seq: int = 1

        while True:
            item: typing.Any = result_queue.get()

            if item is _STOP:
                break

            if self._cancelled.is_set():
                continue

            line_num, triple = item

            try:
                if self.ordered:
                    pending[line_num] = triple

                    while next_seq in pending:
                        self._emit(pending.pop(next_seq))
                        next_seq += 1
                else:
                    self._emit(triple)

            except Exception as ex:  # pylint: disable=W0718
                self._fail(ex)


class ExternalRewriter:
    """
Alternate strategy which delegates prefix rewriting to a shell
pipeline of `perl` substitutions, one stage per partition of the
rules.

Unlike the in-process `Pipeline`, each substitution replaces the prefix
wherever it occurs in a line, and the partitions do not preserve table
order between stages.
    """

    def __init__ (
        self,
        table: RuleTable,
        *,
        partitions: int | None = None,
        ) -> None:
        """
Constructor.
        """
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.table: RuleTable = table
        self.partitions: int = partitions or os.cpu_count() or 1


    def substitution (
        self,
        rule: Rule,
        ) -> str:
        """
Render one rule as a `perl` substitution, quoting the prefix.

Raises `PipelineError` for a rule which contains characters that `perl`
would interpolate, or which would end the pattern early.
        """
        replacement: str = rule.shortcut + ":"

        if rule.shortcut == self.table.null_value:
            replacement = ""

        if any(char in UNSAFE_CHARS for char in rule.prefix + replacement):
            raise PipelineError(f"rule cannot run as a perl substitution: {rule}")

        return f"s@\\Q{rule.prefix}\\E@{replacement}@g"


    def command (
        self,
        input_path: str,
        ) -> str:
        """
Build the shell pipeline which rewrites `input_path` to stdout; use
`-` to read stdin.
        """
        redirect: str = ""

        if input_path != "-":
            redirect = f" < {shlex.quote(str(input_path))}"

        stages: list[ str ] = [
            "LANG=C perl -lnpe " + shlex.quote("; ".join(map(self.substitution, part)))
            for part in partition_rules(list(self.table), self.partitions)
        ]

        if len(stages) == 0:
            return "cat" + redirect

        stages[0] += redirect
        return " | ".join(stages)


    def run (
        self,
        input_path: str,
        output_path: str,
        ) -> None:
        """
Execute the pipeline, writing the rewritten lines to `output_path`.
        """
        cmd: str = f"{self.command(input_path)} > {shlex.quote(str(output_path))}"

        log_msg: str = f"running: {cmd}"
        self.logger.debug(log_msg)

        proc: subprocess.CompletedProcess = subprocess.run(  # pylint: disable=W1510
            cmd,
            shell = True,
            capture_output = True,
            text = True,
        )

        if proc.returncode != 0:
            raise PipelineError(
                f"external rewrite failed with status {proc.returncode}: {proc.stderr.strip()}"
            )
