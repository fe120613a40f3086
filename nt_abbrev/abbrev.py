#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Apply abbreviation rules to the terms of a triple.

see copyright/license README.md
"""

import re

from .rules import RuleTable
from .triple import Triple, is_literal, is_uri_ref


DATATYPE_MARKER: str = '"^^'


def apply_rules (
    field: str,
    table: RuleTable,
    ) -> str:
    """
Rewrite a field with each rule in table order whose prefix the field
starts with, replacing every occurrence of that prefix. More than one
rule may apply, so a specific prefix must precede any shorter prefix
which it extends.

A rule whose shortcut is the table's null value deletes the prefix.
    """
    for rule in table:
        if field.startswith(rule.prefix):
            if rule.shortcut == table.null_value:
                field = field.replace(rule.prefix, "")
            else:
                field = field.replace(rule.prefix, rule.shortcut + ":")

    return field


class Abbreviator:
    """
Precomputed form of a rule table, for applying the rules to many
millions of terms.

The replacement strings and a single pattern which matches any of the
prefixes get built once, in the constructor. An instance holds no
mutable state, so one may be shared among worker threads.
    """

    def __init__ (
        self,
        table: RuleTable,
        ) -> None:
        """
Constructor.
        """
        self.table: RuleTable = table

        self.replacements: tuple[ tuple[ str, str ], ... ] = tuple(
            (
                rule.prefix,
                "" if rule.shortcut == table.null_value else rule.shortcut + ":",
            )
            for rule in table
        )

        # longest first, although any hit at the start of a field suffices
        prefixes: list[ str ] = sorted(
            { rule.prefix for rule in table },
            key = len,
            reverse = True,
        )

        self.pat_any: re.Pattern | None = None

        if len(prefixes) > 0:
            self.pat_any = re.compile("|".join(map(re.escape, prefixes)))


    def apply (
        self,
        field: str,
        ) -> str:
        """
Abbreviate one unembellished field, with the same semantics as
`apply_rules()`.
        """
        if self.pat_any is None or self.pat_any.match(field) is None:
            return field

        for prefix, replacement in self.replacements:
            if field.startswith(prefix):
                field = field.replace(prefix, replacement)

        return field


    def apply_term (
        self,
        term: str,
        ) -> str:
        """
Abbreviate an embellished N-Triples term: only the IRI within angle
brackets gets rewritten, which for a typed literal means its datatype.
Literal text and blank nodes pass through unchanged.
        """
        if is_uri_ref(term):
            return "<" + self.apply(term[1:-1]) + ">"

        if is_literal(term):
            head, marker, datatype = term.rpartition(DATATYPE_MARKER)

            if marker and is_uri_ref(datatype):
                return head + marker + "<" + self.apply(datatype[1:-1]) + ">"

        return term


    def abbreviate (
        self,
        triple: Triple,
        *,
        embellished: bool = False,
        ) -> Triple:
        """
Abbreviate each term of a triple. Use `embellished = True` for triples
which keep their brackets and quotes.
        """
        if embellished:
            return Triple(
                subject = self.apply_term(triple.subject),
                predicate = self.apply_term(triple.predicate),
                object = self.apply_term(triple.object),
            )

        return Triple(
            subject = self.apply(triple.subject),
            predicate = self.apply(triple.predicate),
            object = self.apply(triple.object),
        )
