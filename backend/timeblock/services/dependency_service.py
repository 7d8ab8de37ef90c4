"""
Dependency graph builder.

Produces an acyclic ``dependent -> [prerequisites]`` map for one scheduling
run from explicit ``idx`` ordering and semantic rules over task names.
"""

from collections import Counter
from typing import Callable, Optional

from timeblock.core.logger import setup_logger
from timeblock.models.enums import DependencySource
from timeblock.models.task import SchedulableTask
from timeblock.services.dependency_rules import (
    DEPENDENCY_RULES,
    FORBIDDEN_EDGES,
    DependencyRule,
    ForbiddenEdge,
    score_dependency_edge,
    topic_overlap_score,
)
from timeblock.utils.dependency_validator import DependencyGraph, DependencyValidator

logger = setup_logger(__name__)

TaskEdgeScorer = Callable[[SchedulableTask, SchedulableTask], float]


class DependencyService:
    """
    Service for inferring task dependencies.

    Provides:
    - Sequence edges from ``idx`` within a priority bucket
    - Semantic edges from the declarative rule table
    - Forbidden-edge cleanup and cycle resolution
    """

    def __init__(
        self,
        validator: Optional[DependencyValidator] = None,
        scorer: Optional[TaskEdgeScorer] = None,
        rules: tuple[DependencyRule, ...] = DEPENDENCY_RULES,
        forbidden_edges: tuple[ForbiddenEdge, ...] = FORBIDDEN_EDGES,
    ):
        """
        Initialize dependency service.

        Args:
            validator: Graph validator (None = default round limit)
            scorer: Edge strength used to break cycles; lowest is removed
            rules: Inference rules applied to every task pair
            forbidden_edges: Edge directions removed after inference
        """
        self.validator = validator or DependencyValidator()
        self.scorer = scorer or score_dependency_edge
        self.rules = rules
        self.forbidden_edges = forbidden_edges

    def build_dependencies(
        self,
        tasks: list[SchedulableTask],
        hints: Optional[dict[str, list[str]]] = None,
    ) -> DependencyGraph:
        """
        Build the dependency map for a run.

        Args:
            tasks: Tasks of this run
            hints: Pre-computed map keyed by task id; replaces inference

        Returns:
            Acyclic map with an entry for every task

        Raises:
            ValidationError: If hints reference unknown tasks or self-dependencies
            DependencyCycleError: If cycles survive resolution
        """
        task_map = {task.id: task for task in tasks}
        sources: Counter = Counter()

        if hints is not None:
            graph = self.validator.validate_hints(hints, task_map.keys())
            sources[DependencySource.PROVIDED] = sum(len(prereqs) for prereqs in graph.values())
        else:
            graph = {task.id: [] for task in tasks}
            self._add_sequence_edges(tasks, graph, sources)
            self._add_semantic_edges(tasks, graph, sources)
            self._remove_forbidden_edges(task_map, graph)

        removed = self.validator.resolve_cycles(
            graph,
            lambda dependent_id, prerequisite_id: self.scorer(
                task_map[dependent_id], task_map[prerequisite_id]
            ),
        )

        edge_count = sum(len(prereqs) for prereqs in graph.values())
        logger.info(
            f"Dependency graph: {edge_count} edges for {len(tasks)} tasks "
            f"(sequence={sources[DependencySource.SEQUENCE]}, "
            f"semantic={sources[DependencySource.SEMANTIC]}, "
            f"provided={sources[DependencySource.PROVIDED]}, "
            f"cycle_removed={len(removed)})"
        )
        return graph

    def _add_edge(
        self,
        graph: DependencyGraph,
        dependent: SchedulableTask,
        prerequisite: SchedulableTask,
        source: DependencySource,
        sources: Counter,
    ) -> bool:
        if prerequisite.id in graph[dependent.id]:
            return False

        # Forward edges (against idx order) only get the direct reverse check
        direct_only = (
            dependent.idx is not None
            and prerequisite.idx is not None
            and dependent.idx < prerequisite.idx
        )
        if self.validator.would_create_cycle(graph, dependent.id, prerequisite.id, direct_only):
            logger.debug(
                f"Skipped {source.value} dependency {dependent.name!r} -> "
                f"{prerequisite.name!r}: would create a cycle"
            )
            return False

        graph[dependent.id].append(prerequisite.id)
        sources[source] += 1
        return True

    def _add_sequence_edges(
        self,
        tasks: list[SchedulableTask],
        graph: DependencyGraph,
        sources: Counter,
    ) -> None:
        """Chain same-priority tasks by ascending ``idx``."""
        buckets: dict[int, list[SchedulableTask]] = {}
        for task in tasks:
            if task.idx is not None:
                buckets.setdefault(task.priority, []).append(task)

        for bucket in buckets.values():
            bucket.sort(key=lambda task: (task.idx, task.name))
            previous_group: list[SchedulableTask] = []
            current_group: list[SchedulableTask] = []
            current_idx: Optional[int] = None

            for task in bucket:
                if task.idx != current_idx:
                    previous_group, current_group = current_group, []
                    current_idx = task.idx
                current_group.append(task)
                # Tasks sharing an idx are peers and get no edge between them
                for prerequisite in previous_group:
                    self._add_edge(graph, task, prerequisite, DependencySource.SEQUENCE, sources)

    def _add_semantic_edges(
        self,
        tasks: list[SchedulableTask],
        graph: DependencyGraph,
        sources: Counter,
    ) -> None:
        for rule in self.rules:
            producers = [task for task in tasks if rule.is_producer(task.lower_name)]
            if not producers:
                continue
            consumers = [task for task in tasks if rule.is_consumer(task.lower_name)]
            action_phrases = rule.action_phrases

            for consumer in consumers:
                for producer in producers:
                    if producer.id == consumer.id:
                        continue
                    confidence = topic_overlap_score(
                        consumer.name, producer.name, ignore=action_phrases
                    )
                    if confidence <= 0:
                        continue
                    if self._add_edge(graph, consumer, producer, DependencySource.SEMANTIC, sources):
                        logger.debug(
                            f"Rule {rule.name}: {consumer.name!r} depends on "
                            f"{producer.name!r} (confidence={confidence:.2f})"
                        )

    def _remove_forbidden_edges(
        self,
        task_map: dict[str, SchedulableTask],
        graph: DependencyGraph,
    ) -> None:
        for dependent_id, prerequisite_ids in graph.items():
            dependent_lower = task_map[dependent_id].lower_name
            kept = []
            for prerequisite_id in prerequisite_ids:
                prerequisite_lower = task_map[prerequisite_id].lower_name
                rule = next(
                    (
                        edge
                        for edge in self.forbidden_edges
                        if edge.forbids(dependent_lower, prerequisite_lower)
                    ),
                    None,
                )
                if rule is None:
                    kept.append(prerequisite_id)
                else:
                    logger.debug(
                        f"Removed forbidden dependency ({rule.name}): "
                        f"{dependent_id} -> {prerequisite_id}"
                    )
            graph[dependent_id] = kept
