#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Simplistic, line-oriented N-Triples parsing.

This is not a full RDF parser: each line gets split on whitespace,
with the object reassembled from the remaining words, which handles
literals that contain spaces.

see copyright/license README.md
"""

from dataclasses import dataclass
import re

from .errors import TripleParseError


EMBELLISHMENT: str = "<>\""
TERMINATOR: str = "."

PAT_LANGUAGE: re.Pattern = re.compile(r'"@([a-zA-Z]+(?:-[a-zA-Z0-9]+)*)$')


@dataclass(frozen = True)
class Triple:
    """
Subject, predicate, and object of one N-Triples statement, each held
as a term string.
    """
    subject: str
    predicate: str
    object: str

    def unembellished (
        self,
        ) -> "Triple":
        """
Strip angle brackets and quotes from each of the terms, for the
structured output formats.
        """
        return Triple(
            subject = strip_term(self.subject),
            predicate = strip_term(self.predicate),
            object = strip_term(self.object),
        )


def strip_term (
    term: str,
    ) -> str:
    """
Remove any leading or trailing `<`, `>`, or `"` characters.
    """
    return term.strip(EMBELLISHMENT)


def is_uri_ref (
    term: str,
    ) -> bool:
    """
Is the term an IRI reference, i.e., wrapped in angle brackets?
    """
    return term.startswith("<") and term.endswith(">")


def is_literal (
    term: str,
    ) -> bool:
    """
Is the term a quoted literal?
    """
    return term.startswith('"')


def is_blank_node (
    term: str,
    ) -> bool:
    """
Is the term a blank node label?
    """
    return term.startswith("_:")


def literal_language (
    term: str,
    ) -> str | None:
    """
Get the language tag of a literal term, if any.
    """
    if not is_literal(term):
        return None

    hit: re.Match | None = PAT_LANGUAGE.search(term)

    if hit is None:
        return None

    return hit.group(1)


def accepts_language (
    term: str,
    language: str | None,
    ) -> bool:
    """
Language filter for object terms: pass a term that carries no language
tag, or which carries exactly the requested one. Tags compare without
regard to case.
    """
    if not language:
        return True

    tag: str | None = literal_language(term)

    if tag is None:
        return True

    return tag.lower() == language.lower()


def parse_triple (
    line: str,
    *,
    line_num: int | None = None,
    ) -> Triple | None:
    """
Parse one line of N-Triples.

Returns `None` for blank lines and comments. Raises `TripleParseError`
when the line has fewer than three words.

A fourth word is taken as the `.` terminator and dropped. With more
than four words, the words after the predicate get joined with single
spaces to rebuild the object, dropping the trailing terminator if the
line ends with one, whether or not it stands apart as its own word.
Terms keep their brackets and quotes here, see `Triple.unembellished()`.
    """
    line = line.strip()

    if len(line) == 0 or line.startswith("#"):
        return None

    words: list[ str ] = line.split()

    if len(words) < 3:
        raise TripleParseError(line, line_num = line_num)

    obj: str = words[2]

    if len(words) > 4:
        if words[-1] == TERMINATOR:
            obj = " ".join(words[2:-1])
        else:
            obj = " ".join(words[2:]).removesuffix(TERMINATOR)

    return Triple(
        subject = words[0],
        predicate = words[1],
        object = obj,
    )
