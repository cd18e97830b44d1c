"""Console output helpers.

Every pipeline reports progress as plain line-oriented messages. Dependents
are processed concurrently, so per-dependent lines carry the dependent name
as a prefix to keep interleaved output readable.
"""

from __future__ import annotations

import sys
from typing import NoReturn


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the major phases of a run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def say(dependent: str, msg: str) -> None:
    """Print a progress line for a single dependent."""
    print(f"  [{dependent}] {msg}")


def fatal(msg: str) -> NoReturn:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the whole run, such as a
    missing token or an unreadable configuration.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
