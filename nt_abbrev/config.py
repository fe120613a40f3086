#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration settings, as a plain `dict` with one `nt_abbrev` section.

see copyright/license README.md
"""

import copy
import json
import logging
import os
import pathlib
import typing

from .abbrev import Abbreviator
from .errors import ConfigError
from .pipeline import Pipeline
from .rules import RuleTable
from .writer import RecordWriter, get_writer


SECTION: str = "nt_abbrev"

DEFAULT_CONFIG: dict[ str, dict ] = {
    SECTION: {
        "abbreviate": False,
        "format": "nt",
        "ignore_errors": False,
        "language": None,
        "null_value": "<NULL>",
        "workers": os.cpu_count() or 1,
        "queue_size": 1024,
        "ordered": False,
        "rules_path": None,
    },
}

# accepted value types per setting; `None` is always accepted and means unset
SETTING_TYPES: dict[ str, tuple ] = {
    "abbreviate": ( bool, ),
    "format": ( str, ),
    "ignore_errors": ( bool, ),
    "language": ( str, ),
    "null_value": ( str, ),
    "workers": ( int, ),
    "queue_size": ( int, ),
    "ordered": ( bool, ),
    "rules_path": ( str, ),
}

logger: logging.Logger = logging.getLogger(__name__)


def merge_config (
    config: dict,
    overrides: dict[ str, typing.Any ],
    ) -> dict:
    """
Return a copy of `config` with the given `nt_abbrev` settings replaced.
Settings with a `None` value get skipped, so that unset CLI flags do not
override a configuration file. Raises `ConfigError` for an unknown
setting, or a value of the wrong type.
    """
    merged: dict = copy.deepcopy(config)
    section: dict = merged[SECTION]

    for key, value in overrides.items():
        if key not in section:
            raise ConfigError(f"unknown setting: {key}")

        if value is None:
            continue

        if not isinstance(value, SETTING_TYPES[key]):
            raise ConfigError(f"setting {key} has the wrong type: {value!r}")

        section[key] = value

    return merged


def load_config (
    config_path: pathlib.Path | None = None,
    *,
    encoding: str = "utf-8",
    ) -> dict:
    """
Load settings from a JSON file on top of the defaults.
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, "r", encoding = encoding) as fp:
            data: typing.Any = json.load(fp)
    except json.JSONDecodeError as ex:
        raise ConfigError(f"malformed config file {config_path}: {ex}") from ex

    if not isinstance(data, dict) or not isinstance(data.get(SECTION, {}), dict):
        raise ConfigError(f"config file {config_path} needs a `{SECTION}` object")

    log_msg: str = f"config: {config_path}"
    logger.debug(log_msg)

    return merge_config(DEFAULT_CONFIG, data.get(SECTION, {}))


def build_rule_table (
    config: dict,
    ) -> RuleTable:
    """
Load the rule table named in the settings, or the built-in one.
    """
    settings: dict = config[SECTION]
    rules_path: str | None = settings["rules_path"]

    if rules_path is None:
        return RuleTable.default(null_value = settings["null_value"])

    return RuleTable.from_path(
        pathlib.Path(rules_path),
        null_value = settings["null_value"],
    )


def build_pipeline (
    config: dict,
    fp: typing.TextIO,
    *,
    table: RuleTable | None = None,
    ) -> Pipeline:
    """
Construct a pipeline which writes to `fp`, per the settings. The output
format gets checked and the rule table loaded here, before any input
is read.
    """
    settings: dict = config[SECTION]
    writer: RecordWriter = get_writer(settings["format"], fp)
    abbreviator: Abbreviator | None = None

    if settings["abbreviate"]:
        if table is None:
            table = build_rule_table(config)

        abbreviator = Abbreviator(table)

    try:
        workers: int = int(settings["workers"])
        queue_size: int = int(settings["queue_size"])
    except (TypeError, ValueError) as ex:
        raise ConfigError(f"invalid number in settings: {ex}") from ex

    return Pipeline(
        writer,
        abbreviator = abbreviator,
        language = settings["language"],
        ignore_errors = bool(settings["ignore_errors"]),
        workers = workers,
        queue_size = queue_size,
        ordered = bool(settings["ordered"]),
    )
