"""Compensation helpers for multi-resource updates.

Neutron offers no transaction spanning a router and a port, so every
successful mutation hands back a :class:`Compensator` able to restore the
previous state.  :class:`UnwindStack` collects those while an operation is in
flight and replays them in reverse if the operation exits before it was
disarmed.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .errors import CompensationFailure

LOG = logging.getLogger(__name__)


class Compensator:
    """Reversal action captured right after a successful mutation."""

    def __init__(self, description: str, action: Callable[[], None]) -> None:
        self.description = description
        self._action = action

    def restore(self) -> None:
        """Run the reversal, raising :class:`CompensationFailure` on error."""

        try:
            self._action()
        except Exception as exc:
            raise CompensationFailure(self.description, exc) from exc

    def __call__(self) -> bool:
        """Fire-and-forget variant of :meth:`restore`.

        Returns ``False`` when the reversal failed; the failure is logged and
        never re-raised so it cannot mask the error that triggered the unwind.
        """

        LOG.debug("Unwinding: %s", self.description)
        try:
            self.restore()
        except CompensationFailure as exc:
            LOG.warning("%s during error unwind", exc)
            return False
        return True

    def __repr__(self) -> str:
        return f"Compensator({self.description!r})"


class UnwindStack:
    """Ordered stack of compensators, executed in reverse unless disarmed.

    Use as a context manager::

        with UnwindStack() as unwind:
            unwind.push(update_routes(...))
            ...
            unwind.disarm()

    Leaving the block while still armed, whether through an exception or an
    early return, runs every pushed compensator, most recent first.
    """

    def __init__(self) -> None:
        self._pending: List[Compensator] = []
        self._armed = True

    def __enter__(self) -> "UnwindStack":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._armed:
            self.unwind()
        return False

    @property
    def pending(self) -> List[Compensator]:
        return list(self._pending)

    def push(self, compensator: Optional[Compensator]) -> None:
        if compensator is not None:
            self._pending.append(compensator)

    def disarm(self) -> None:
        self._armed = False
        self._pending.clear()

    def unwind(self) -> None:
        while self._pending:
            compensator = self._pending.pop()
            compensator()
