# tapegrad/core/entry.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .var import Variable

TWO_OVER_SQRT_PI = 2.0 / math.sqrt(math.pi)


class Op(str, Enum):
    """Tags of the primitive operations that can appear on a tape."""
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    NEG = "neg"
    POW = "pow"
    EXP = "exp"
    LOG = "log"
    SQRT = "sqrt"
    RELU = "relu"
    ERF = "erf"


def _pow_partials(a, p):
    # d(a^p)/dp needs log(a); outside a > 0 we treat the exponent as passive
    dp = a ** p * np.log(a) if a > 0 else 0.0
    return p * a ** (p - 1.0), dp


# Local partials ∂out/∂input_i as a function of the captured input values.
LOCAL_PARTIALS: Dict[Op, Callable[..., Tuple]] = {
    Op.ADD:  lambda a, b: (1.0, 1.0),
    Op.SUB:  lambda a, b: (1.0, -1.0),
    Op.MUL:  lambda a, b: (b, a),
    Op.DIV:  lambda a, b: (1.0 / b, -a / (b * b)),
    Op.NEG:  lambda a: (-1.0,),
    Op.POW:  _pow_partials,
    Op.EXP:  lambda a: (np.exp(a),),
    Op.LOG:  lambda a: (1.0 / a,),
    Op.SQRT: lambda a: (0.5 / np.sqrt(a),),
    Op.RELU: lambda a: (1.0 if a > 0 else 0.0,),
    Op.ERF:  lambda a: (TWO_OVER_SQRT_PI * np.exp(-a * a),),
}


@dataclass(frozen=True)
class TapeEntry:
    """
    One recorded primitive operation.

    Attributes
    ----------
    op       : Op
        Which rule in LOCAL_PARTIALS applies.
    inputs   : tuple of Variable
        Operands, in call order.
    outputs  : tuple of Variable
        Exactly one result; ``propagate`` is a single-output VJP.
    captured : tuple
        Numeric input values at recording time. The backward rule is evaluated
        against these, so nothing that happens after recording can change the
        entry's math.
    """
    op: Op
    inputs: Tuple[Variable, ...]
    outputs: Tuple[Variable, ...]
    captured: Tuple

    def __post_init__(self):
        if len(self.outputs) != 1:
            raise ValueError(
                f"a {self.op.value} entry must have exactly one output, got {len(self.outputs)}"
            )

    @classmethod
    def record(cls, op: Op, inputs: Sequence[Variable], outputs: Sequence[Variable]) -> "TapeEntry":
        inputs = tuple(inputs)
        return cls(op=Op(op), inputs=inputs, outputs=tuple(outputs),
                   captured=tuple(v.value for v in inputs))

    def local_partials(self) -> Tuple:
        with np.errstate(all="ignore"):
            return LOCAL_PARTIALS[self.op](*self.captured)

    def propagate(self, adjoints: Sequence[Optional[float]]) -> Tuple:
        """
        Vector-Jacobian product for a single-output primitive.

        `adjoints` is a one-element sequence: the adjoint of the output, or None
        when it has not received any gradient (counted as zero). Returns one
        adjoint per input, in input order.
        """
        dtype = type(self.outputs[0].value)
        (bar,) = adjoints
        bar = dtype(0.0) if bar is None else dtype(bar)
        with np.errstate(all="ignore"):
            return tuple(dtype(bar * partial) for partial in self.local_partials())

    def to_dict(self) -> dict:
        """Plain, serializable view of the entry."""
        return {
            "op": self.op.value,
            "inputs": [v.name for v in self.inputs],
            "outputs": [v.name for v in self.outputs],
            "captured": [float(x) for x in self.captured],
        }
