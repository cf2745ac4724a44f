from __future__ import annotations

import sys
from pathlib import Path

if __package__ in (None, ""):
    # Run as a file path (IDE "Run Python File"): make the package importable.
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    from algebra_speed.app import run
else:
    from .app import run


def main() -> int:
    """Entry point for ``python -m algebra_speed`` and the console script."""
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
