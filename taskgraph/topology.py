"""
Dependency resolution for a set of tasks.
"""

import logging
from typing import TYPE_CHECKING

import networkx as nx
from networkx import generate_network_text

from .exceptions import (
    CyclicDependencyError,
    DuplicateTaskError,
    MissingDependencyError,
    UnknownTaskError,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable

    from networkx import DiGraph

    from .task import Task

logger = logging.getLogger(__name__)


class Topology:
    def __init__(
        self,
        *,
        digraph: "DiGraph",
        order: list["Task"],
        levels: list[list["Task"]],
    ) -> None:
        self.digraph = digraph
        self.order = order
        self.levels = levels

    @classmethod
    def resolve(
        cls, tasks: "Iterable[Task]", only: "Iterable[str] | None" = None
    ) -> "Topology":
        registered: dict[str, "Task"] = {}
        for task in tasks:
            if task.name in registered:
                raise DuplicateTaskError(task.name)

            registered[task.name] = task

        # validate references before attempting any ordering
        for task in registered.values():
            for dependency in sorted(task.dependencies):
                if dependency not in registered:
                    raise MissingDependencyError(task.name, dependency)

        digraph = nx.DiGraph()

        # nodes keep registration order, which is the final tie-break
        for index, task in enumerate(registered.values()):
            digraph.add_node(task.name, task=task, index=index)

        for task in registered.values():
            for dependency in task.dependencies:
                digraph.add_edge(dependency, task.name)

        # check the full registered set, not just the selected subset
        if not nx.is_directed_acyclic_graph(digraph):
            # sort cycles by length for better error reporting
            cycles = sorted(
                (tuple(cycle) for cycle in nx.simple_cycles(digraph)),
                key=lambda cycle: (len(cycle), cycle),
            )

            raise CyclicDependencyError(cycles)

        if only is not None:
            selected = set(only)
            if unknown := selected - registered.keys():
                raise UnknownTaskError(unknown)

            for name in list(selected):
                selected |= nx.ancestors(digraph, name)

            digraph = digraph.subgraph(selected).copy()

        def tie_break(name: str) -> tuple[int, int]:
            node = digraph.nodes[name]
            return node["task"].priority, node["index"]

        order = list(nx.lexicographical_topological_sort(digraph, key=tie_break))

        levels = [
            sorted(generation, key=tie_break)
            for generation in nx.topological_generations(digraph)
        ]

        logger.debug("Resolved order: %s", order)
        logger.debug("Resolved levels: %s", levels)

        return cls(
            digraph=digraph,
            order=[digraph.nodes[name]["task"] for name in order],
            levels=[[digraph.nodes[name]["task"] for name in level] for level in levels],
        )

    def __str__(self) -> str:
        return "\n".join(generate_network_text(self.digraph, vertical_chains=True))
