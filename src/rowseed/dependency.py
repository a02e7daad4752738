"""Row dependency graph with cycle-tolerant ordering."""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class _Visit(Enum):
    IN_PROGRESS = 1
    DONE = 2


class DependencyGraph:
    """
    Directed graph of row dependencies.

    An edge ``row -> prerequisite`` means row must run no earlier than
    prerequisite. Vertices are row identifiers.
    """

    def __init__(self):
        self._edges: dict[str, list[str]] = {}
        self._cycles: list[list[str]] = []

    def add_row(self, row_id: str) -> None:
        """Add a vertex (idempotent)."""
        self._edges.setdefault(row_id, [])

    def add_dependency(self, row_id: str, depends_on: str) -> None:
        """
        Add an edge: row_id depends on depends_on.

        Self-edges and duplicate edges are ignored.
        """
        self.add_row(row_id)
        self.add_row(depends_on)
        if row_id == depends_on:
            return
        edges = self._edges[row_id]
        if depends_on not in edges:
            edges.append(depends_on)

    def get_dependencies(self, row_id: str) -> list[str]:
        """Get the direct prerequisites of a row."""
        return list(self._edges.get(row_id, []))

    @property
    def rows(self) -> list[str]:
        return list(self._edges)

    @property
    def cycles(self) -> list[list[str]]:
        """Cycles found by the last sort, each as a list of row identifiers."""
        return [list(cycle) for cycle in self._cycles]

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def execution_order(self) -> list[str]:
        """
        Order rows so prerequisites come first.

        Depth-first search with an explicit stack; a vertex reached again
        while still on the stack closes a cycle, which is logged and
        recorded instead of raised. The order is best effort when cycles
        exist.

        Returns:
            Every row identifier, prerequisites before dependents
        """
        self._cycles = []
        state: dict[str, _Visit] = {}
        order: list[str] = []

        for root in sorted(self._edges):
            if root in state:
                continue
            state[root] = _Visit.IN_PROGRESS
            path = [root]
            stack = [(root, iter(sorted(self._edges[root])))]

            while stack:
                vertex, children = stack[-1]
                child = next(children, None)
                if child is None:
                    stack.pop()
                    path.pop()
                    state[vertex] = _Visit.DONE
                    order.append(vertex)
                    continue

                child_state = state.get(child)
                if child_state is _Visit.DONE:
                    continue
                if child_state is _Visit.IN_PROGRESS:
                    cycle = path[path.index(child) :] + [child]
                    self._cycles.append(cycle)
                    logger.warning(
                        f"Dependency cycle detected: {' -> '.join(cycle)}. "
                        f"Rows will run in a best-effort order."
                    )
                    continue

                state[child] = _Visit.IN_PROGRESS
                path.append(child)
                stack.append((child, iter(sorted(self._edges[child]))))

        return order

    def topological_sort(self) -> list[str]:
        """
        Sort rows with dependents first.

        This is the reverse of execution_order(): the least depended-upon
        rows sort last.
        """
        return list(reversed(self.execution_order()))
