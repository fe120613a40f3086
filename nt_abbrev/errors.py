#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Error kinds raised while abbreviating N-Triples, each of which maps to
a distinct process exit code.

see copyright/license README.md
"""


class NtAbbrevError (Exception):
    """
Base class for all errors raised by `nt_abbrev`.
    """
    exit_code: int = 1


class RuleParseError (NtAbbrevError):
    """
A rule line had fewer than two whitespace-separated fields.
    """
    exit_code: int = 3

    def __init__ (
        self,
        line: str,
        *,
        line_num: int | None = None,
        ) -> None:
        self.line: str = line
        self.line_num: int | None = line_num

        msg: str = f"Broken rule: {line}"

        if line_num is not None:
            msg = f"Broken rule at line {line_num}: {line}"

        super().__init__(msg)


class TripleParseError (NtAbbrevError):
    """
An input line could not be split into subject, predicate, and object.
    """
    exit_code: int = 4

    def __init__ (
        self,
        line: str,
        *,
        line_num: int | None = None,
        ) -> None:
        self.line: str = line
        self.line_num: int | None = line_num

        msg: str = f"Broken input: {line}"

        if line_num is not None:
            msg = f"Broken input at line {line_num}: {line}"

        super().__init__(msg)


class UnknownFormatError (NtAbbrevError):
    """
The requested output format has no writer.
    """
    exit_code: int = 5

    def __init__ (
        self,
        format: str,  # pylint: disable=W0622
        ) -> None:
        self.format: str = format
        super().__init__(f"Unknown output format: {format}")


class SerializationError (NtAbbrevError):
    """
A writer failed to encode a record.
    """
    exit_code: int = 6


class ConfigError (NtAbbrevError):
    """
Malformed configuration file or invalid configuration value.
    """
    exit_code: int = 7


class PipelineError (NtAbbrevError):
    """
The external substitution pipeline exited with a non-zero status.
    """
    exit_code: int = 9


# names used for the same errors elsewhere
MalformedRuleError = RuleParseError
MalformedTripleError = TripleParseError
