#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Run the command line interface with `python -m nt_abbrev`.

see copyright/license README.md
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
