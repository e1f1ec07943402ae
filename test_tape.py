"""
Variable allocation, tape bookkeeping, and thread behaviour.
"""

import dataclasses
import threading

import numpy as np
import pytest

from tapegrad import (
    NameCollisionError, Op, StaleVariableError, Tape, TapeConfig, TapeEntry, Variable,
    current_tape, global_tape, grad, use_tape, variable,
)


def test_explicit_name():
    t = Tape()
    x = t.new_variable(3.0, "x")
    assert x.value == 3.0
    assert x.name == "x"
    assert isinstance(x.value, np.float32)


def test_auto_name_generation():
    t = Tape()
    v0 = t.new_variable(3.0)
    v1 = t.new_variable(3.0)
    assert v0.name == "v0"
    assert v1.name == "v1"


def test_explicit_names_do_not_consume_counter():
    t = Tape()
    t.new_variable(1.0, "a")
    assert t.new_variable(1.0).name == "v0"
    t.new_variable(1.0, "b")
    assert t.new_variable(1.0).name == "v1"


def test_indices_are_dense_and_unique():
    t = Tape()
    vs = [t.new_variable(1.0, "same") for _ in range(3)]
    assert [v.key for v in vs] == [0, 1, 2]
    assert vs[0] != vs[1]


def test_same_name_is_still_a_distinct_node():
    # identity is the tape index, so reused names cannot merge nodes
    with use_tape():
        a = variable(3.0, "n")
        b = variable(2.0, "n")
        assert grad(a * b, [a, b]) == [2.0, 3.0]


def test_clear_resets_identity():
    with use_tape() as t:
        Variable.new(1.0)
        Variable.new(1.0)
        variable(1.0) * variable(2.0)
        assert len(t) == 1
        t.clear()
        assert len(t) == 0
        assert t.generation == 1
        assert [Variable.new(5.0).name, Variable.new(5.0).name] == ["v0", "v1"]


def test_variables_are_immutable():
    x = Tape().new_variable(3.0, "x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        x.value = 4.0


def test_non_numeric_values_are_rejected():
    t = Tape()
    with pytest.raises(TypeError):
        t.new_variable("3.0")
    with pytest.raises(TypeError):
        t.new_variable(True)
    with pytest.raises(TypeError):
        t.new_variable([1.0, 2.0])
    # a rejected value does not consume a name
    assert t.new_variable(1.0).name == "v0"


def test_strict_mode_detects_name_collisions():
    t = Tape(TapeConfig(strict_names=True))
    t.new_variable(1.0, "a")
    with pytest.raises(NameCollisionError):
        t.new_variable(2.0, "a")
    t.new_variable(1.0, "v0")
    with pytest.raises(NameCollisionError):
        t.new_variable(1.0)
    t.clear()
    assert t.new_variable(1.0, "a").name == "a"


def test_default_mode_allows_reused_names():
    t = Tape()
    t.new_variable(1.0, "a")
    assert t.new_variable(2.0, "a").name == "a"


def test_config_is_copied_per_tape():
    cfg = TapeConfig(strict_names=True)
    t = Tape(cfg)
    cfg.strict_names = False
    assert t.config.strict_names is True
    assert Tape().config.strict_names is False


def test_entries_in_recording_order():
    with use_tape() as t:
        a = variable(3.0, "a")
        b = variable(2.0, "b")
        c = a * b
        d = c - a
        ops = [e.op for e in t.entries]
        assert ops == [Op.MUL, Op.SUB]
        assert t.entries[1].inputs == (c, a)
        assert t.entries[1].outputs == (d,)


def test_append_returns_position():
    t = Tape()
    a = t.new_variable(1.0, "a")
    out = t.new_variable(-1.0)
    entry = TapeEntry.record(Op.NEG, [a], [out])
    assert t.append(entry) == 0
    assert t.append(entry) == 1
    assert len(t) == 2


def test_append_rejects_entry_from_before_clear():
    t = Tape()
    a = t.new_variable(1.0, "a")
    entry = TapeEntry.record(Op.NEG, [a], [t.new_variable(-1.0)])
    t.clear()
    with pytest.raises(StaleVariableError):
        t.append(entry)
    assert len(t) == 0


def test_snapshot_is_frozen():
    with use_tape() as t:
        a = variable(1.0, "a")
        a + a
        snap = t.snapshot()
        a * a
        assert isinstance(snap, tuple)
        assert len(snap) == 1
        assert len(t.snapshot()) == 2


def test_use_tape_restores_previous():
    assert current_tape() is global_tape
    with use_tape() as outer:
        assert current_tape() is outer
        inner_tape = Tape()
        with use_tape(inner_tape) as inner:
            assert inner is inner_tape
            assert variable(1.0).tape is inner_tape
        assert current_tape() is outer
    assert current_tape() is global_tape


def test_use_tape_accepts_an_empty_tape():
    t = Tape()
    with use_tape(t) as active:
        assert active is t


def test_concurrent_appends_lose_nothing():
    t = Tape()
    a = t.new_variable(2.0, "a")
    n_threads, per_thread = 8, 250
    results = [[] for _ in range(n_threads)]
    start = threading.Barrier(n_threads)

    def work(i):
        start.wait()
        for _ in range(per_thread):
            results[i].append(a * a)

    threads = [threading.Thread(target=work, args=(i,)) for i in range(n_threads)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert len(t) == n_threads * per_thread
    outs = [v for rs in results for v in rs]
    assert len({v.name for v in outs}) == len(outs)
    assert len({v.key for v in outs}) == len(outs)
    assert grad(outs[0], [a]) == [4.0]


def test_use_tape_is_thread_scoped():
    results = {}
    errors = []
    start = threading.Barrier(4)

    def work(i):
        try:
            with use_tape() as t:
                start.wait()
                x = variable(float(i + 1), "x")
                y = x * x * x
                results[i] = (len(t), grad(y, [x])[0], current_tape() is t)
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=work, args=(i,)) for i in range(4)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert errors == []
    for i, (n_entries, dx, own) in results.items():
        assert n_entries == 2
        assert dx == 3.0 * (i + 1) ** 2
        assert own
    assert current_tape() is global_tape


def test_clear_during_recording_leaves_no_stale_entries():
    t = Tape()
    n_workers, per_worker = 4, 300
    stop = threading.Event()
    errors = []

    def clearer():
        while not stop.is_set():
            t.clear()

    def work():
        try:
            for _ in range(per_worker):
                try:
                    x = t.new_variable(2.0)
                    x * x
                except StaleVariableError:
                    pass  # x was invalidated by a clear before the product was recorded
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    workers = [threading.Thread(target=work) for _ in range(n_workers)]
    cl = threading.Thread(target=clearer)
    cl.start()
    for th in workers:
        th.start()
    for th in workers:
        th.join()
    stop.set()
    cl.join()

    assert errors == []
    view = t.view()
    for entry in view.entries:
        for v in entry.inputs + entry.outputs:
            assert v.generation == view.generation
