#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Serialize triples as line-oriented records: JSON, XML fragments, TSV,
or N-Triples.

see copyright/license README.md
"""

import json
import typing
from xml.sax.saxutils import escape

from .errors import SerializationError, UnknownFormatError
from .triple import Triple


class RecordWriter:
    """
Base class for writing one newline-terminated record per triple to a
text sink. Exactly one writer owns a given sink.
    """
    FORMAT: str = ""

    # do the records keep brackets and quotes around each term?
    EMBELLISHED: bool = False

    def __init__ (
        self,
        fp: typing.TextIO,
        ) -> None:
        """
Constructor.
        """
        self.fp: typing.TextIO = fp
        self.count: int = 0


    def format_record (
        self,
        triple: Triple,
        ) -> str:
        """
Render one triple as a record, without the line terminator.
        """
        raise NotImplementedError


    def write (
        self,
        triple: Triple,
        ) -> None:
        """
Serialize a triple and write it to the sink.
        """
        self.fp.write(self.format_record(triple))
        self.fp.write("\n")
        self.count += 1


    def flush (
        self,
        ) -> None:
        """
Flush any buffered output to the sink.
        """
        self.fp.flush()


class JsonWriter (RecordWriter):
    """
One compact JSON object per line, with keys `s`, `p`, `o`.
    """
    FORMAT: str = "json"

    def format_record (
        self,
        triple: Triple,
        ) -> str:
        try:
            return json.dumps(
                {
                    "s": triple.subject,
                    "p": triple.predicate,
                    "o": triple.object,
                },
                ensure_ascii = False,
                separators = ( ",", ":" ),
            )
        except (TypeError, ValueError) as ex:
            raise SerializationError(f"cannot encode {triple}: {ex}") from ex


class XmlWriter (RecordWriter):
    """
One `<t><s/><p/><o/></t>` element per line. There is no enclosing root
element, so the output is a stream of fragments rather than a single
XML document.
    """
    FORMAT: str = "xml"

    def format_record (
        self,
        triple: Triple,
        ) -> str:
        return "".join([
            "<t>",
            f"<s>{escape(triple.subject)}</s>",
            f"<p>{escape(triple.predicate)}</p>",
            f"<o>{escape(triple.object)}</o>",
            "</t>",
        ])


class TsvWriter (RecordWriter):
    """
Tab-separated terms. Embedded tabs or newlines do not get escaped.
    """
    FORMAT: str = "tsv"

    def format_record (
        self,
        triple: Triple,
        ) -> str:
        return "\t".join([ triple.subject, triple.predicate, triple.object ])


class NTriplesWriter (RecordWriter):
    """
Re-emit N-Triples statements, keeping brackets and quotes.
    """
    FORMAT: str = "nt"
    EMBELLISHED: bool = True

    def format_record (
        self,
        triple: Triple,
        ) -> str:
        return f"{triple.subject} {triple.predicate} {triple.object} ."


WRITERS: dict[ str, type[ RecordWriter ] ] = {
    writer_class.FORMAT: writer_class
    for writer_class in [ JsonWriter, XmlWriter, TsvWriter, NTriplesWriter ]
}


def get_writer_class (
    format: str,  # pylint: disable=W0622
    ) -> type[ RecordWriter ]:
    """
Look up the writer for an output format, raising `UnknownFormatError`
for a format which has none.
    """
    writer_class: type[ RecordWriter ] | None = WRITERS.get(format)

    if writer_class is None:
        raise UnknownFormatError(format)

    return writer_class


def get_writer (
    format: str,  # pylint: disable=W0622
    fp: typing.TextIO,
    ) -> RecordWriter:
    """
Construct the writer for an output format on a given sink.
    """
    return get_writer_class(format)(fp)
