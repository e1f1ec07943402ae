# tapegrad/core/tape.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, NamedTuple, Optional, Set, Tuple

from ..config import TapeConfig, resolve
from .entry import TapeEntry
from .errors import NameCollisionError, StaleVariableError, TapeMismatchError
from .graph_utils import LoggingObserver, TapeObserver
from .var import Variable, check_numeric

logger = logging.getLogger(__name__)


class TapeView(NamedTuple):
    """Point-in-time read of a tape: its generation and its entries."""
    generation: int
    entries: Tuple[TapeEntry, ...]


class Tape:
    """
    Append-only record of TapeEntries in forward (recording) order.

    Recording order is a topological order of the operation DAG, since an
    operation can only consume Variables that already exist. The only
    mutations are ``append`` and ``clear``; both, together with Variable
    allocation, run under one lock, so several threads may record onto the
    same tape without losing entries.
    """

    def __init__(self, config: Optional[TapeConfig] = None):
        self.config = resolve(config)
        self._entries: List[TapeEntry] = []
        self._lock = threading.Lock()
        self._name_counter = 0
        self._next_index = 0
        self._live_names: Set[str] = set()
        self._generation = 0
        self._observers: List[TapeObserver] = []
        if self.config.trace:
            self.add_observer(LoggingObserver())

    def __repr__(self):
        return f"Tape(entries={len(self)}, generation={self.generation})"

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[TapeEntry]:
        return iter(self.snapshot())

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def entries(self) -> Tuple[TapeEntry, ...]:
        return self.snapshot()

    @property
    def observers(self) -> Tuple[TapeObserver, ...]:
        with self._lock:
            return tuple(self._observers)

    # ------------------------------------------------------------------ #
    def new_variable(self, value, name: Optional[str] = None) -> Variable:
        """
        Allocate a Variable on this tape.

        Without a name, the name counter is fetched-and-incremented and the
        Variable is called ``v<counter>``. Explicit names leave the counter
        untouched. In strict mode a name that is already live raises
        NameCollisionError.
        """
        check_numeric(value)
        with self._lock:
            if name is None:
                name = f"v{self._name_counter}"
                self._name_counter += 1
            if self.config.strict_names:
                if name in self._live_names:
                    raise NameCollisionError(
                        f"variable name {name!r} is already in use on this tape"
                    )
                self._live_names.add(name)
            index = self._next_index
            self._next_index += 1
            generation = self._generation
        return Variable(value=value, name=name, index=index, generation=generation, tape=self)

    def append(self, entry: TapeEntry) -> int:
        """
        Append `entry` and return its position on the tape.

        Every input and output must belong to this tape's current generation;
        an entry built across a concurrent ``clear()`` raises StaleVariableError.
        Observers run outside the lock, so under concurrent appends they may be
        called out of tape order; the position they receive is authoritative.
        """
        with self._lock:
            for v in entry.inputs + entry.outputs:
                if v.tape is not self:
                    raise TapeMismatchError(f"variable {v.name!r} was not recorded on this tape")
                if v.generation != self._generation:
                    raise StaleVariableError(
                        f"unknown variable {v.name!r}: created before the tape was cleared"
                    )
            self._entries.append(entry)
            position = len(self._entries) - 1
            observers = tuple(self._observers)
        for obs in observers:
            obs.recorded(entry, position)
        return position

    def clear(self):
        """
        Drop every entry and reset the name counter.

        All Variables produced before the clear become stale: ``grad`` rejects
        them with StaleVariableError instead of answering with a wrong number,
        and so do the operators and ``append``.
        """
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._name_counter = 0
            self._next_index = 0
            self._live_names.clear()
            self._generation += 1
        logger.debug("tape cleared: %d entries dropped, generation %d", dropped, self._generation)

    def view(self) -> TapeView:
        with self._lock:
            return TapeView(self._generation, tuple(self._entries))

    def snapshot(self) -> Tuple[TapeEntry, ...]:
        """Consistent, immutable copy of the current entries."""
        return self.view().entries

    def add_observer(self, observer: TapeObserver):
        with self._lock:
            self._observers.append(observer)

    def remove_observer(self, observer: TapeObserver):
        with self._lock:
            self._observers.remove(observer)


# Global default tape for single-computation programs
global_tape = Tape()

_active = threading.local()


def current_tape() -> Tape:
    """The tape activated by ``use_tape`` in this thread, else ``global_tape``."""
    tape = getattr(_active, "tape", None)
    return global_tape if tape is None else tape


@contextmanager
def use_tape(tape: Optional[Tape] = None):
    """
    Context manager to record onto a dedicated tape in the calling thread:
        with use_tape() as tape:
            ... build computation ...
            grad(y, [x])
    Other threads keep their own active tape.
    """
    prev = getattr(_active, "tape", None)
    _active.tape = Tape() if tape is None else tape
    try:
        yield _active.tape
    finally:
        _active.tape = prev
