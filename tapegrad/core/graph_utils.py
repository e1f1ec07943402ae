# tapegrad/core/graph_utils.py
"""
Diagnostics layered on top of the tape.

Nothing in here is needed to compute gradients. Observers receive callbacks
from the tape (every recorded entry) and from ``grad`` (every propagated entry
and the final adjoints); the remaining helpers summarize or tabulate a tape.
"""

import logging
from collections import Counter
from typing import Dict

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_INFIX = {"add": "+", "sub": "-", "mul": "*", "div": "/", "pow": "**"}


class TapeObserver:
    """Base class for tape observers; every hook is a no-op."""

    def recorded(self, entry, position):
        """
        Called after `entry` has been appended at `position`.

        With several threads recording, calls can arrive out of tape order;
        sort on `position` when order matters.
        """

    def propagated(self, entry, adjoints):
        """Called by ``grad`` after `entry` produced per-input `adjoints`."""

    def finished(self, loss, gradients):
        """Called by ``grad`` with {Variable: adjoint} once the walk is over."""


class LoggingObserver(TapeObserver):
    """Logs each recorded operation and each accumulated gradient."""

    def __init__(self, log: logging.Logger = None, level: int = logging.DEBUG):
        self.log = log or logger
        self.level = level

    def recorded(self, entry, position):
        self.log.log(self.level, "%s", format_entry(entry), extra={"tape_position": position})

    def propagated(self, entry, adjoints):
        if not self.log.isEnabledFor(self.level):
            return
        for v, adj in zip(entry.inputs, adjoints):
            self.log.log(self.level, "  %s -> %s: %s", entry.outputs[0].name, v.name, adj)

    def finished(self, loss, gradients):
        if not self.log.isEnabledFor(self.level):
            return
        self.log.log(self.level, "d%s:", loss.name)
        for v, adj in gradients.items():
            self.log.log(self.level, "d%s_d%s = %s", loss.name, v.name, adj)


def format_entry(entry) -> str:
    """
    One-line rendering of an entry, e.g. ``v2 = a * b = 3.0 * 2.0 = 6.0``.
    """
    out = entry.outputs[0]
    names = [v.name for v in entry.inputs]
    vals = [f"{float(x):g}" for x in entry.captured]
    tag = entry.op.value
    if tag in _INFIX:
        sym = _INFIX[tag]
        return (f"{out.name} = {names[0]} {sym} {names[1]}"
                f" = {vals[0]} {sym} {vals[1]} = {float(out.value):g}")
    if tag == "neg":
        return f"{out.name} = -{names[0]} = -{vals[0]} = {float(out.value):g}"
    return (f"{out.name} = {tag}({', '.join(names)})"
            f" = {tag}({', '.join(vals)}) = {float(out.value):g}")


def summarize(tape) -> Dict:
    """
    Statistics of the recorded graph.

    Returns a dict with entry/edge counts, fan-in and fan-out figures (fan-out
    counts how many entries consume each recorded output) and the op breakdown.
    """
    entries = tape.snapshot()
    if not entries:
        return {"entries": 0, "edges": 0, "max_fan_in": 0, "avg_fan_in": 0.0,
                "max_fan_out": 0, "avg_fan_out": 0.0, "operations": {}}

    fan_ins = [len(e.inputs) for e in entries]
    consumers = Counter(v.key for e in entries for v in e.inputs)
    fan_outs = [consumers.get(e.outputs[0].key, 0) for e in entries]
    ops = Counter(e.op.value for e in entries)

    return {
        "entries": len(entries),
        "edges": sum(fan_ins),
        "max_fan_in": max(fan_ins),
        "avg_fan_in": float(np.mean(fan_ins)),
        "max_fan_out": max(fan_outs),
        "avg_fan_out": float(np.mean(fan_outs)),
        "operations": dict(ops),
    }


def print_graph_summary(tape, detailed: bool = False) -> Dict:
    """Print ``summarize(tape)``; with `detailed`, list up to 100 entries."""
    stats = summarize(tape)
    if not stats["entries"]:
        print("Empty computation graph")
        return stats

    print("\n" + "=" * 70)
    print("COMPUTATION GRAPH SUMMARY")
    print("=" * 70)
    print(f"Total entries:      {stats['entries']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    for op, count in Counter(stats["operations"]).most_common(10):
        pct = 100.0 * count / stats["entries"]
        print(f"  {op:12s}: {count:6,} ({pct:5.1f}%)")

    if detailed:
        print()
        for i, entry in enumerate(tape.snapshot()[:100]):
            print(f"Entry {i:3d}: {format_entry(entry)}")

    print("=" * 70 + "\n")
    return stats


def to_frame(tape) -> pd.DataFrame:
    """One row per entry, in recording order."""
    rows = []
    for entry in tape.snapshot():
        row = entry.to_dict()
        row["output"] = row["outputs"][0]
        row["value"] = float(entry.outputs[0].value)
        rows.append(row)
    return pd.DataFrame(rows, columns=["op", "inputs", "outputs", "captured", "output", "value"])
