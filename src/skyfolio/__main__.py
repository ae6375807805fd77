"""Package entry point.

This module enables running the project with:

    python -m skyfolio ...
"""

from __future__ import annotations

import sys

from skyfolio.cli import main

if __name__ == "__main__":
    sys.exit(main())
