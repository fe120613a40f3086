#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Generate a key/value store.

see copyright/license README.md
"""

class KeyValueStore:  # pylint: disable=R0903
    """
Generate a key/value store, aka a Python `dict` -- which holds the
records waiting in the reorder buffer of an ordered pipeline run. A
given use case can override this to use a scalable alternative if
workers run far ahead of the slowest line.
    """

    def allocate (
        self,
        ) -> dict:
        """
Override if you want to use an alternative to the Python built-in
`dict` data structure, keyed by the `int` sequence number of each
input line.
        """
        return {}
