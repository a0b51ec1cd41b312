#!/usr/bin/env python3
"""Check the rate tables from a source checkout without installing the package."""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from uaetax.backend.config.validator import main


if __name__ == "__main__":
    raise SystemExit(main())
