# tapegrad/ops/arithmetic.py
import numpy as np

from ..core.entry import Op, TapeEntry
from ..core.errors import StaleVariableError, TapeMismatchError
from ..core.tape import current_tape
from ..core.var import Variable


def _owning_tape(*xs):
    """
    The tape shared by every Variable operand (current tape if there are none).

    Operands from before the tape's last ``clear()`` are rejected: their index
    may already belong to a new Variable.
    """
    vs = [x for x in xs if isinstance(x, Variable)]
    if not vs:
        return current_tape()
    tape = vs[0].tape
    for v in vs:
        if v.tape is not tape:
            raise TapeMismatchError("operands were recorded on different tapes")
        if v.generation != tape.generation:
            raise StaleVariableError(
                f"unknown variable {v.name!r}: operand was created before the tape was cleared"
            )
    return tape


def _as_var(x, tape):
    """Ensure x is a Variable; plain numbers become auto-named Variables on `tape`."""
    return x if isinstance(x, Variable) else tape.new_variable(x)


def _record(tape, op, inputs, val):
    out = tape.new_variable(val)
    tape.append(TapeEntry.record(op, inputs, (out,)))
    return out


def _binary(x, y, f, op):
    """
    Generic binary primitive:
      - computes out.value = f(x.value, y.value) in the tape dtype
      - pushes one TapeEntry whose backward rule is selected by `op`
    IEEE-754 semantics (inf/nan) pass through unchanged.
    """
    tape = _owning_tape(x, y)
    x = _as_var(x, tape)
    y = _as_var(y, tape)
    with np.errstate(all="ignore"):
        val = f(x.value, y.value)
    return _record(tape, op, (x, y), val)


def _unary(x, f, op):
    tape = _owning_tape(x)
    x = _as_var(x, tape)
    with np.errstate(all="ignore"):
        val = f(x.value)
    return _record(tape, op, (x,), val)


def add(x, y): return _binary(x, y, lambda a, b: a + b, Op.ADD)
def sub(x, y): return _binary(x, y, lambda a, b: a - b, Op.SUB)
def mul(x, y): return _binary(x, y, lambda a, b: a * b, Op.MUL)
def div(x, y): return _binary(x, y, lambda a, b: a / b, Op.DIV)


def neg(x):
    """Unary negation: out.value = -x.value, ∂out/∂x = -1."""
    return _unary(x, lambda a: -a, Op.NEG)


def pow(x, y):
    """
    Power: out.value = x ** y.

    Local partials:
      ∂out/∂x = y * x^(y-1)
      ∂out/∂y = x^y * log(x)    (taken as 0 when x <= 0)
    """
    return _binary(x, y, lambda a, b: a ** b, Op.POW)
