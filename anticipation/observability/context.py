"""
Cycle context management with context-local storage.
"""

import contextvars
import uuid
from typing import Optional

# Context variable for the running anticipation cycle
_cycle_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "cycle_id", default=None
)


def get_cycle_id() -> Optional[str]:
    """Get the current cycle ID from context."""
    return _cycle_id_var.get()


def set_cycle_id(cycle_id: str) -> contextvars.Token:
    """Set the cycle ID in context. Returns token for reset."""
    return _cycle_id_var.set(cycle_id)


def generate_cycle_id() -> str:
    """Generate a new cycle ID."""
    return f"cyc-{uuid.uuid4().hex[:16]}"


class CycleContext:
    """
    Context manager for cycle-scoped operations.

    Usage:
        with CycleContext() as ctx:
            logger.info("Cycle started")
            # All logs within this block carry ctx.cycle_id

        # Or with an existing ID:
        with CycleContext(cycle_id="cyc-abc123"):
            ...

    Detector tasks spawned with asyncio inside the block inherit the ID,
    since tasks copy the current context on creation.
    """

    def __init__(self, cycle_id: Optional[str] = None):
        self.cycle_id = cycle_id or generate_cycle_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "CycleContext":
        self._token = set_cycle_id(self.cycle_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _cycle_id_var.reset(self._token)
