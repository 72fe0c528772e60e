"""Boot script composition.

Core types and composition functions for the user-data DSL.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Sequence
from typing import Final

SHEBANG: Final = "#!/bin/bash"

# =============================================================================
# Core Types
# =============================================================================

type Op = str | Callable[[], str] | list[Op]
"""Operation type: either a literal string or a function returning a string."""


def resolve(op: Op) -> str:
    """Resolve an operation to its string representation."""
    match op:
        case str(op):
            return op
        case list(op):
            return "\n".join(map(lambda o: resolve(o), op))
        case None:
            return ""
        case _:
            return op()


# =============================================================================
# Composition
# =============================================================================


def script(*ops: Op | None) -> list[str]:
    """Compose operations into the ordered lines of a boot script.

    The shebang is always the first line and each operation becomes one
    entry. ``None`` operations are skipped.

    Example:
        >>> script(cd("/opt/runner"), "./svc.sh start")
        ['#!/bin/bash', 'cd "/opt/runner"', './svc.sh start']
    """
    lines = [SHEBANG]
    for op in ops:
        if op is None:
            continue
        lines.append(resolve(op))
    return lines


def encode(lines: Sequence[str]) -> str:
    """Join script lines with newlines and base64-encode them for UserData."""
    return base64.b64encode("\n".join(lines).encode()).decode()
