# tapegrad/core/var.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

if TYPE_CHECKING:
    from .tape import Tape

_NUMERIC = (int, float, np.integer, np.floating)


def check_numeric(value):
    if isinstance(value, bool) or not isinstance(value, _NUMERIC):
        raise TypeError(
            f"Variable only accepts real numeric scalars, but got {type(value)}"
        )


@dataclass(frozen=True, eq=False)
class Variable:
    """
    Immutable node of the reverse-mode graph.

    Attributes
    ----------
    value : numpy.float32
        Forward (primal) value, stored in the owning tape's dtype.
    name : str
        Display name; either caller-supplied or ``v<N>`` from the tape counter.
    index : int
        Dense slot allocated by the tape at creation. This, not the name, is
        the identity the gradient engine keys adjoints on.
    generation : int
        Tape generation at creation time. ``Tape.clear()`` bumps the
        generation, which makes every earlier Variable stale.
    tape : Tape
        The tape every operation on this Variable is recorded on.

    Variables are only created through ``Variable.new`` / ``Tape.new_variable``;
    arithmetic always returns a fresh Variable.
    """

    value: Any
    name: str
    index: int
    generation: int
    tape: "Tape" = field(repr=False)

    # make NumPy scalars defer to our reflected operators
    __array_ufunc__ = None

    def __post_init__(self):
        check_numeric(self.value)
        object.__setattr__(self, "value", self.tape.config.dtype(self.value))

    @classmethod
    def new(cls, value, name: Optional[str] = None, *, tape: Optional["Tape"] = None) -> "Variable":
        """Create a Variable on `tape`, or on the calling thread's current tape."""
        if tape is None:
            from .tape import current_tape
            tape = current_tape()
        return tape.new_variable(value, name)

    @property
    def key(self) -> int:
        return self.index

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return (self.tape is other.tape
                and self.generation == other.generation
                and self.index == other.index)

    def __hash__(self):
        return hash((id(self.tape), self.generation, self.index))

    def __repr__(self):
        return f"Variable({float(self.value)!r}, name={self.name!r})"

    def __float__(self):
        return float(self.value)

    def __neg__(self):
        from ..ops.arithmetic import neg
        return neg(self)


# (dunder, primitive in tapegrad.ops.arithmetic, operand order swapped)
_BINARY_OPERATORS = [
    ("__add__", "add", False), ("__radd__", "add", True),
    ("__sub__", "sub", False), ("__rsub__", "sub", True),
    ("__mul__", "mul", False), ("__rmul__", "mul", True),
    ("__truediv__", "div", False), ("__rtruediv__", "div", True),
    ("__pow__", "pow", False), ("__rpow__", "pow", True),
]


def _operator(primitive: str, swapped: bool):
    def method(self, other):
        from ..ops import arithmetic  # ops import this module
        fn = getattr(arithmetic, primitive)
        return fn(other, self) if swapped else fn(self, other)
    return method


for _dunder, _primitive, _swapped in _BINARY_OPERATORS:
    setattr(Variable, _dunder, _operator(_primitive, _swapped))


def variable(value, name: Optional[str] = None, *, tape: Optional["Tape"] = None) -> Variable:
    """Shortcut for ``Variable.new``."""
    return Variable.new(value, name, tape=tape)
