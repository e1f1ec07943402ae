# tapegrad/core/__init__.py

"""
Core public API of the reverse-mode engine.

Exports:
    Variable      : Immutable graph node (value + identity).
    variable      : Shortcut for Variable.new.
    Tape          : Append-only, lock-guarded record of TapeEntries.
    TapeEntry, Op : One recorded primitive and its rule tag.
    global_tape   : The default tape for single-computation programs.
    current_tape  : The tape active in the calling thread.
    use_tape      : Context manager to record onto a dedicated tape.
    grad          : Reverse pass from a scalar loss to the wanted Variables.
    value, value_and_grad, grads, grads_list : function-level helpers.
"""

from .var import Variable, variable
from .entry import Op, TapeEntry
from .tape import Tape, TapeView, global_tape, current_tape, use_tape
from .engine import grad
from .seeds import value, value_and_grad, grads, grads_list
from .graph_utils import TapeObserver, LoggingObserver, summarize, print_graph_summary, to_frame
from .errors import TapeError, StaleVariableError, TapeMismatchError, NameCollisionError

__all__ = [
    "Variable", "variable",
    "Op", "TapeEntry",
    "Tape", "TapeView", "global_tape", "current_tape", "use_tape",
    "grad",
    "value", "value_and_grad", "grads", "grads_list",
    "TapeObserver", "LoggingObserver", "summarize", "print_graph_summary", "to_frame",
    "TapeError", "StaleVariableError", "TapeMismatchError", "NameCollisionError",
]
