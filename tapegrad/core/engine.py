# tapegrad/core/engine.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .errors import StaleVariableError, TapeMismatchError
from .tape import Tape
from .var import Variable

logger = logging.getLogger(__name__)


def _check_owned(tape: Tape, generation: int, v: Variable, role: str):
    if v.tape is not tape:
        raise TapeMismatchError(f"{role} {v.name!r} was not recorded on this tape")
    if v.generation != generation:
        raise StaleVariableError(
            f"unknown variable {v.name!r}: {role} was created before the tape was cleared"
        )


def grad(loss: Variable, wanted: Sequence[Variable], *, tape: Optional[Tape] = None) -> List:
    """
    Partial derivatives of `loss` with respect to each Variable in `wanted`.

    Args:
        loss:   the scalar Variable to differentiate.
        wanted: Variables of interest; the result has the same length and order.
        tape:   tape to read; defaults to the tape `loss` was recorded on.

    Returns:
        One entry per wanted Variable: its adjoint, or None when the Variable
        does not influence `loss` through any recorded operation.

    Notes:
        - The walk runs over a snapshot in reverse recording order; that is the
          only order in which every consumer of an output has contributed to
          its adjoint before the output is propagated further.
        - Contributions are summed, so a Variable used several times
          (``a * a``, or in two branches) gets the full multivariate chain rule.
        - The tape is only read, so repeated calls give identical results.
    """
    tape = loss.tape if tape is None else tape
    wanted = list(wanted)
    generation, entries = tape.view()
    _check_owned(tape, generation, loss, "loss")
    for v in wanted:
        _check_owned(tape, generation, v, "wanted variable")

    observers = tape.observers
    dtype = tape.config.dtype
    adjoints: Dict[int, object] = {loss.key: dtype(1.0)}
    seen: Dict[int, Variable] = {loss.key: loss}

    for entry in reversed(entries):
        outs = [adjoints.get(v.key) for v in entry.outputs]
        if all(a is None for a in outs):
            continue  # not connected to the loss
        contributions = entry.propagate(outs)
        for v, c in zip(entry.inputs, contributions):
            k = v.key
            adjoints[k] = adjoints[k] + c if k in adjoints else c
            seen[k] = v
        for obs in observers:
            obs.propagated(entry, contributions)

    if observers:
        gradients = {seen[k]: adj for k, adj in adjoints.items()}
        for obs in observers:
            obs.finished(loss, gradients)

    logger.debug("grad(%s): %d entries walked, %d adjoints", loss.name, len(entries), len(adjoints))
    return [adjoints.get(v.key) for v in wanted]
