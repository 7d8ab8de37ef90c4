"""
Task dependency validation utilities.

Works on an in-memory dependency map (``dependent -> [prerequisites]``) and
keeps it free of circular dependencies.
"""

from typing import Callable, Iterable, Iterator, Optional

from timeblock.core.config import get_settings
from timeblock.core.exceptions import DependencyCycleError, ValidationError
from timeblock.core.logger import setup_logger

logger = setup_logger(__name__)

DependencyGraph = dict[str, list[str]]
EdgeScorer = Callable[[str, str], float]


class DependencyValidator:
    """Validator for task dependency maps."""

    def __init__(self, max_rounds: Optional[int] = None):
        """
        Initialize validator.

        Args:
            max_rounds: Cycle-resolution rounds before giving up (None = settings)
        """
        if max_rounds is None:
            max_rounds = get_settings().MAX_CYCLE_RESOLUTION_ROUNDS
        self.max_rounds = max_rounds

    def validate_hints(
        self,
        hints: dict[str, list[str]],
        task_ids: Iterable[str],
    ) -> DependencyGraph:
        """
        Validate caller-supplied dependency hints.

        Args:
            hints: Dependent task id -> prerequisite task ids
            task_ids: Ids of the tasks in this run

        Returns:
            A copy of the hints with every known task present

        Raises:
            ValidationError: If hints reference unknown tasks, a task depends
                on itself, or a prerequisite is listed twice
        """
        known = set(task_ids)
        graph: DependencyGraph = {task_id: [] for task_id in known}

        for dependent_id, prerequisite_ids in hints.items():
            # 1. Dependent must be part of this run
            if dependent_id not in known:
                raise ValidationError(
                    f"Dependency hint references unknown task {dependent_id!r}",
                    details={"task_id": dependent_id},
                )

            # 2. Check for self-dependency
            if dependent_id in prerequisite_ids:
                raise ValidationError(
                    f"Task {dependent_id!r} cannot depend on itself",
                    details={"task_id": dependent_id},
                )

            # 3. Check for duplicate dependencies
            if len(prerequisite_ids) != len(set(prerequisite_ids)):
                raise ValidationError(
                    f"Task {dependent_id!r} lists a prerequisite more than once",
                    details={"task_id": dependent_id},
                )

            # 4. Prerequisites must be part of this run
            for prerequisite_id in prerequisite_ids:
                if prerequisite_id not in known:
                    raise ValidationError(
                        f"Task {dependent_id!r} depends on unknown task {prerequisite_id!r}",
                        details={"task_id": dependent_id, "prerequisite_id": prerequisite_id},
                    )

            graph[dependent_id] = list(prerequisite_ids)

        return graph

    @staticmethod
    def depends_on(graph: DependencyGraph, source_id: str, target_id: str) -> bool:
        """Whether ``source_id`` transitively depends on ``target_id``."""
        visited: set[str] = set()
        stack = list(graph.get(source_id, []))
        while stack:
            current = stack.pop()
            if current == target_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(graph.get(current, []))
        return False

    def would_create_cycle(
        self,
        graph: DependencyGraph,
        dependent_id: str,
        prerequisite_id: str,
        direct_only: bool = False,
    ) -> bool:
        """
        Check whether adding ``dependent_id -> prerequisite_id`` closes a cycle.

        Args:
            graph: Current dependency map
            dependent_id: Task that would gain a prerequisite
            prerequisite_id: Task that would become the prerequisite
            direct_only: Only look for the immediate reverse edge
        """
        if dependent_id == prerequisite_id:
            return True
        if direct_only:
            return dependent_id in graph.get(prerequisite_id, [])
        return self.depends_on(graph, prerequisite_id, dependent_id)

    @staticmethod
    def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
        """
        Enumerate cycles using DFS.

        Each cycle is returned as ``[a, b, ..., z]`` where every node depends
        on the next one and ``z`` depends on ``a``. The walk is iterative.
        """
        visited: set[str] = set()
        on_stack: set[str] = set()
        path: list[str] = []
        cycles: list[list[str]] = []
        frames: list[tuple[str, Iterator[str]]] = []

        def enter(node: str) -> None:
            visited.add(node)
            on_stack.add(node)
            path.append(node)
            frames.append((node, iter(graph.get(node, []))))

        for root in graph:
            if root in visited:
                continue
            enter(root)
            while frames:
                node, prerequisites = frames[-1]
                prerequisite_id = next(prerequisites, None)
                if prerequisite_id is None:
                    frames.pop()
                    path.pop()
                    on_stack.discard(node)
                elif prerequisite_id in on_stack:
                    cycles.append(path[path.index(prerequisite_id):])
                elif prerequisite_id not in visited:
                    enter(prerequisite_id)
        return cycles

    def resolve_cycles(
        self,
        graph: DependencyGraph,
        scorer: EdgeScorer,
    ) -> list[tuple[str, str]]:
        """
        Break every cycle by removing its weakest edge, in place.

        Detection re-runs after each round until the graph is acyclic. This is
        a greedy heuristic and does not look for a minimum set of removals.

        Args:
            graph: Dependency map, modified in place
            scorer: ``scorer(dependent_id, prerequisite_id)``; lowest is removed

        Returns:
            The removed ``(dependent_id, prerequisite_id)`` edges

        Raises:
            DependencyCycleError: If cycles remain after ``max_rounds`` rounds
        """
        removed: list[tuple[str, str]] = []

        for _ in range(self.max_rounds):
            cycles = self.detect_cycles(graph)
            if not cycles:
                return removed

            for cycle in cycles:
                edges = [
                    (cycle[i], cycle[(i + 1) % len(cycle)])
                    for i in range(len(cycle))
                ]
                # An earlier removal this round may already have broken it
                edges = [(dep, pre) for dep, pre in edges if pre in graph.get(dep, [])]
                if len(edges) < len(cycle):
                    continue

                dependent_id, prerequisite_id = min(edges, key=lambda edge: scorer(*edge))
                graph[dependent_id].remove(prerequisite_id)
                removed.append((dependent_id, prerequisite_id))
                logger.debug(
                    f"Removed dependency {dependent_id} -> {prerequisite_id} "
                    f"to break cycle {' -> '.join(cycle)}"
                )

        self.ensure_acyclic(graph)
        return removed

    def ensure_acyclic(self, graph: DependencyGraph) -> None:
        """
        Raises:
            DependencyCycleError: If the graph still contains a cycle
        """
        cycles = self.detect_cycles(graph)
        if cycles:
            raise DependencyCycleError(
                f"Circular dependencies remain after {self.max_rounds} resolution rounds",
                cycles=cycles,
            )


def topological_order(task_ids: list[str], graph: DependencyGraph) -> list[str]:
    """
    Order task ids so every prerequisite comes before its dependents.

    Stable: among tasks whose prerequisites are all released, the one that
    appears first in ``task_ids`` goes first. Tasks caught in a cycle keep
    their input order at the end.
    """
    position = {task_id: index for index, task_id in enumerate(task_ids)}
    dependents: dict[str, list[str]] = {task_id: [] for task_id in task_ids}
    indegree: dict[str, int] = {task_id: 0 for task_id in task_ids}

    for task_id in task_ids:
        for prerequisite_id in set(graph.get(task_id, [])):
            if prerequisite_id in position:
                dependents[prerequisite_id].append(task_id)
                indegree[task_id] += 1

    ready = [task_id for task_id in task_ids if indegree[task_id] == 0]
    ordered: list[str] = []

    while ready:
        next_id = min(ready, key=position.__getitem__)
        ready.remove(next_id)
        ordered.append(next_id)
        for dependent_id in dependents[next_id]:
            indegree[dependent_id] -= 1
            if indegree[dependent_id] <= 0 and dependent_id not in ready:
                ready.append(dependent_id)

    if len(ordered) < len(task_ids):
        placed = set(ordered)
        ordered.extend(task_id for task_id in task_ids if task_id not in placed)
    return ordered
