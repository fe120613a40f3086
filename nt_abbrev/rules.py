#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Abbreviation rules: an ordered table of IRI prefixes and the short
namespace tokens which replace them.

see copyright/license README.md
"""

from dataclasses import dataclass
import importlib.resources
import logging
import pathlib
import typing

import rdflib

from .errors import RuleParseError


COMMENT_MARKERS: tuple[ str, ... ] = ( "#", "//" )
DEFAULT_RULES_RESOURCE: str = "default.rules"

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen = True)
class Rule:
    """
One abbreviation rule: a literal IRI `prefix` which gets rewritten as
`shortcut` followed by a colon.
    """
    prefix: str
    shortcut: str

    def __str__ (
        self,
        ) -> str:
        return f"{self.shortcut}\t{self.prefix}"


def parse_rules (
    text: str,
    ) -> list[ Rule ]:
    """
Parse a ruleset, one `shortcut<whitespace>prefix` pair per line.

Blank lines and lines starting with `#` or `//` get skipped. Parsing
stops at the first line with fewer than two fields, raising a
`RuleParseError` which reports the offending line.
    """
    rules: list[ Rule ] = []

    for line_num, raw_line in enumerate(text.splitlines(), start = 1):
        line: str = raw_line.strip()

        if len(line) == 0 or line.startswith(COMMENT_MARKERS):
            continue

        fields: list[ str ] = line.split()

        if len(fields) < 2:
            raise RuleParseError(line, line_num = line_num)

        rules.append(Rule(prefix = fields[1], shortcut = fields[0]))

    return rules


def dump_rules (
    rules: typing.Iterable[ Rule ],
    ) -> str:
    """
Render rules as `shortcut<TAB>prefix` lines, sorted.
    """
    return "\n".join(sorted(str(rule) for rule in rules))


def partition_rules (
    rules: typing.Sequence[ Rule ],
    count: int,
    ) -> list[ list[ Rule ] ]:
    """
Divide the rules round-robin into at most `count` partitions.
    """
    count = min(len(rules), count)

    if count < 1:
        return []

    partitions: list[ list[ Rule ] ] = [ [] for _ in range(count) ]

    for i, rule in enumerate(rules):
        partitions[i % count].append(rule)

    return partitions


class RuleTable:
    """
Immutable, ordered collection of abbreviation rules.

A table is built once at startup and then shared read-only by all of
the workers in a pipeline.
    """

    def __init__ (
        self,
        rules: typing.Iterable[ Rule ],
        *,
        null_value: str = "<NULL>",
        ) -> None:
        """
Constructor.

A rule whose shortcut equals `null_value` deletes its prefix rather
than abbreviating it.
        """
        self.rules: tuple[ Rule, ... ] = tuple(rules)
        self.null_value: str = null_value


    @classmethod
    def from_text (
        cls,
        text: str,
        *,
        null_value: str = "<NULL>",
        ) -> "RuleTable":
        """
Build a table from ruleset text.
        """
        return cls(parse_rules(text), null_value = null_value)


    @classmethod
    def from_path (
        cls,
        rules_path: pathlib.Path,
        *,
        null_value: str = "<NULL>",
        encoding: str = "utf-8",
        ) -> "RuleTable":
        """
Build a table from a ruleset file.
        """
        with open(rules_path, "r", encoding = encoding) as fp:
            text: str = fp.read()

        table: RuleTable = cls.from_text(text, null_value = null_value)

        log_msg: str = f"loaded {len(table)} rules from {rules_path}"
        logger.info(log_msg)

        return table


    @classmethod
    def default (
        cls,
        *,
        null_value: str = "<NULL>",
        ) -> "RuleTable":
        """
Build a table from the built-in ruleset which ships as package data.
        """
        return cls.from_text(
            load_default_rules(),
            null_value = null_value,
        )


    def __len__ (
        self,
        ) -> int:
        return len(self.rules)


    def __iter__ (
        self,
        ) -> typing.Iterator[ Rule ]:
        return iter(self.rules)


    def __getitem__ (
        self,
        index: int,
        ) -> Rule:
        return self.rules[index]


    def dump (
        self,
        ) -> str:
        """
Render the table for introspection, see `dump_rules()`.
        """
        return dump_rules(self.rules)


    ######################################################################
    ## RDFlib integration

    def namespaces (
        self,
        ) -> dict[ str, rdflib.Namespace ]:
        """
Map each shortcut to its namespace. When a shortcut occurs more than
once, the earliest rule wins, consistent with table order. Null-marker
rules have no namespace.
        """
        ns_map: dict[ str, rdflib.Namespace ] = {}

        for rule in self.rules:
            if rule.shortcut == self.null_value or rule.shortcut in ns_map:
                continue

            ns_map[rule.shortcut] = rdflib.Namespace(rule.prefix)

        return ns_map


    def expand (
        self,
        curie: str,
        ) -> rdflib.URIRef:
        """
Expand an abbreviated name such as `dbp:Berlin` back into a full IRI.
        """
        parts: list[ str ] = curie.split(":", 1)

        if len(parts) != 2:
            raise ValueError(f"not an abbreviated name: {curie}")

        ns: rdflib.Namespace | None = self.namespaces().get(parts[0])

        if ns is None:
            raise ValueError(f"no rule for shortcut: {parts[0]}")

        return ns[parts[1]]


    def bind (
        self,
        graph: rdflib.Graph,
        ) -> rdflib.Graph:
        """
Bind the table's namespaces into an RDFlib graph, so that serializing
the graph uses the same abbreviations.
        """
        for shortcut, ns in self.namespaces().items():
            graph.bind(shortcut, ns, override = True)

        return graph


    def preamble (
        self,
        ) -> str:
        """
Render Turtle `@prefix` declarations for the table.
        """
        lines: list[ str ] = [
            f"@prefix {shortcut}: {rdflib.URIRef(str(ns)).n3()} ."
            for shortcut, ns in self.namespaces().items()
        ]

        return "\n".join(lines) + "\n"


def load_default_rules (
    ) -> str:
    """
Read the text of the built-in ruleset.
    """
    data_dir: typing.Any = importlib.resources.files(__package__) / "data"
    return (data_dir / DEFAULT_RULES_RESOURCE).read_text(encoding = "utf-8")
