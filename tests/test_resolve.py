import pytest

from taskgraph import Orchestrator, RunOptions, Task, Topology
from taskgraph.exceptions import (
    CyclicDependencyError,
    DuplicateTaskError,
    MissingDependencyError,
    UnknownTaskError,
)


def _noop(context, resource): ...


def _task(name, *dependencies, priority=0):
    return Task(name=name, execute=_noop, dependencies=dependencies, priority=priority)


def test_resolution_failure_cyclic():
    tasks = [_task("a", "c"), _task("b", "a"), _task("c", "b")]

    with pytest.raises(CyclicDependencyError) as exc_info:
        Topology.resolve(tasks)

    assert exc_info.value.cycles
    assert set(exc_info.value.cycles[0]) == {"a", "b", "c"}
    assert "a" in str(exc_info.value)


def test_resolution_failure_self_dependency():
    with pytest.raises(CyclicDependencyError) as exc_info:
        Topology.resolve([_task("a", "a")])

    assert exc_info.value.cycles == [("a",)]


def test_resolution_failure_missing_dependency():
    with pytest.raises(MissingDependencyError) as exc_info:
        Topology.resolve([_task("x", "y")])

    assert exc_info.value.task_name == "x"
    assert exc_info.value.dependency == "y"


def test_resolution_failure_duplicate():
    with pytest.raises(DuplicateTaskError, match="'a'"):
        Topology.resolve([_task("a"), _task("a")])


def test_register_duplicate():
    orchestrator = Orchestrator()
    orchestrator.register(_task("a"))

    with pytest.raises(DuplicateTaskError):
        orchestrator.register(_task("a", priority=3))

    assert orchestrator.tasks == (_task("a"),)


def test_sequential_order_priority_tie_break():
    tasks = [_task("A", priority=5), _task("B", priority=1), _task("C", "B")]

    orders = [[t.name for t in Topology.resolve(tasks).order] for _ in range(5)]

    assert orders[0] == ["B", "C", "A"]
    assert all(order == orders[0] for order in orders)


def test_sequential_order_registration_tie_break():
    tasks = [_task("z"), _task("y"), _task("x"), _task("w", "x")]

    assert [t.name for t in Topology.resolve(tasks).order] == ["z", "y", "x", "w"]


def test_sequential_order_respects_dependencies_over_priority():
    tasks = [_task("late", priority=100), _task("early", "late", priority=-100)]

    assert [t.name for t in Topology.resolve(tasks).order] == ["late", "early"]


def test_levels():
    tasks = [
        _task("b", priority=2),
        _task("a", priority=1),
        _task("c", "a", "b"),
        _task("d", "a"),
        _task("e", "c"),
    ]

    levels = [[t.name for t in level] for level in Topology.resolve(tasks).levels]

    assert levels == [["a", "b"], ["c", "d"], ["e"]]


def test_only_includes_transitive_dependencies():
    tasks = [_task("a"), _task("b", "a"), _task("c", "b"), _task("unrelated")]

    topology = Topology.resolve(tasks, only={"c"})

    assert [t.name for t in topology.order] == ["a", "b", "c"]


def test_only_unknown_task():
    with pytest.raises(UnknownTaskError):
        Topology.resolve([_task("a")], only={"missing"})


def test_topology_str():
    topology = Topology.resolve([_task("a"), _task("b", "a")])

    rendered = str(topology)
    assert "a" in rendered
    assert "b" in rendered


@pytest.mark.parametrize("parallel", (False, True), ids=("sequential", "parallel"))
def test_resolve_plan(parallel):
    orchestrator = Orchestrator()
    for task in (_task("a"), _task("b"), _task("c", "a", "b")):
        orchestrator.register(task)

    plan = orchestrator.resolve(RunOptions(parallel=parallel))

    if parallel:
        assert plan.levels == [["a", "b"], ["c"]]
    else:
        assert plan.levels == [["a"], ["b"], ["c"]]
    assert plan.order == ["a", "b", "c"]


def test_only_still_rejects_cycles_outside_selection():
    tasks = [_task("a"), _task("x", "y"), _task("y", "x")]

    with pytest.raises(CyclicDependencyError) as exc_info:
        Topology.resolve(tasks, only={"a"})

    assert set(exc_info.value.cycles[0]) == {"x", "y"}
