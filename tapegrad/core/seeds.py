# tapegrad/core/seeds.py

#-----------------------------------------------------------------------------
# One-shot gradient helpers: wrap plain numbers as Variables, run the
# function, then seed the output with 1 and walk back. Each call records on
# its own fresh tape, so concurrent callers never see each other's entries.
#-----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Tuple

import numpy as np

from .engine import grad
from .tape import Tape, use_tape
from .var import Variable


def value(x: Any) -> Any:
    """Return the numeric value of a Variable; pass through plain numbers unchanged."""
    return x.value if isinstance(x, Variable) else x


def _scalar_output(y: Any, tape: Tape, caller: str) -> Variable:
    if isinstance(y, Variable):
        return y
    if isinstance(y, (int, float, np.integer, np.floating)) and not isinstance(y, bool):
        # constant output: nothing on the tape depends on the inputs
        return tape.new_variable(y, "y")
    raise ValueError(f"{caller} expects scalar output, got {type(y).__name__}")


def _zeros_for_absent(gs: List, dtype) -> List:
    return [dtype(0.0) if g is None else g for g in gs]


def value_and_grad(f: Callable[..., Variable], xs: Iterable[float]) -> Tuple[Any, List]:
    """
    Evaluate y = f(x0, x1, ...) and its gradient in one reverse pass.

    Example
    -------
    value_and_grad(lambda a, b: a * b, [3.0, 2.0]) -> (6.0, [2.0, 3.0])

    Inputs that do not influence y get a 0.0 partial.
    """
    with use_tape() as tape:
        args = [tape.new_variable(x, f"x{i}") for i, x in enumerate(xs)]
        y = _scalar_output(f(*args), tape, "value_and_grad(f, xs)")
        return y.value, _zeros_for_absent(grad(y, args), tape.config.dtype)


def grads(f: Callable[[Dict[str, Variable]], Variable],
          inputs: Dict[str, float]) -> Dict[str, Any]:
    """
    Keyed gradient: each input becomes a Variable named after its key, `f`
    receives the {key: Variable} mapping, and a single backward walk yields
    every partial.

    Example
    -------
    grads(lambda v: v["x"] * v["y"], {"x": 2.0, "y": 5.0}) -> {"x": 5.0, "y": 2.0}
    """
    with use_tape() as tape:
        named = {k: tape.new_variable(v, k) for k, v in inputs.items()}
        y = _scalar_output(f(named), tape, "grads(f, inputs)")
        keys = list(inputs.keys())
        gs = _zeros_for_absent(grad(y, [named[k] for k in keys]), tape.config.dtype)
        return dict(zip(keys, gs))


def grads_list(f: Callable[[List[Variable]], Variable],
               values: Iterable[float]) -> List[Any]:
    """
    Positional gradient: `f` receives a list of Variables ``x0, x1, ...`` and
    the partials come back in that order.

    Example
    -------
    grads_list(lambda xs: xs[0] * xs[0] + 3 * xs[1], [2.0, 4.0]) -> [4.0, 3.0]
    """
    with use_tape() as tape:
        xs = [tape.new_variable(v, f"x{i}") for i, v in enumerate(values)]
        y = _scalar_output(f(xs), tape, "grads_list(f, values)")
        return _zeros_for_absent(grad(y, xs), tape.config.dtype)
