#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Package definitions.

see copyright/license README.md
"""

__version__: str = "0.4.2"

from .abbrev import Abbreviator, apply_rules  # noqa: F401

from .config import DEFAULT_CONFIG, build_pipeline, build_rule_table, load_config  # noqa: F401

from .errors import ConfigError, MalformedRuleError, MalformedTripleError, NtAbbrevError, PipelineError, RuleParseError, SerializationError, TripleParseError, UnknownFormatError  # noqa: F401  # pylint: disable=C0301

from .pipeline import ExternalRewriter, Pipeline, PipelineState, PipelineStats  # noqa: F401

from .rules import Rule, RuleTable, dump_rules, parse_rules, partition_rules  # noqa: F401

from .triple import Triple, accepts_language, is_blank_node, is_literal, is_uri_ref, parse_triple  # noqa: F401

from .util import KeyValueStore  # noqa: F401

from .writer import JsonWriter, NTriplesWriter, RecordWriter, TsvWriter, XmlWriter, get_writer  # noqa: F401
