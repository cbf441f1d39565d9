#!/usr/bin/env python3
"""Thin wrapper so the tool runs from a checkout without installing it.

Parsing and execution live in the ``aspect_tool`` package.
"""

from __future__ import annotations

import sys

from aspect_tool.cli import main


if __name__ == "__main__":
    sys.exit(main())
