"""
Dependency graph engine: pure functions over a snapshot of tasks and edges.

Handles:
- Dependency construction and cycle-safe validation
- Blocking chains and completion gating
- Similarity-ranked dependency suggestions
- Visualization export (nodes + prerequisite -> dependent edges)

Nothing here keeps state or performs I/O; callers re-invoke after every
change to their task or dependency collections.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import structlog

from taskdeps.core.config import Settings, get_settings
from taskdeps.core.ids import Clock, IdFactory, new_dependency_id, utcnow
from taskdeps.schemas.common import BLOCKING_TYPES, DependencyType
from taskdeps.schemas.dependencies import (
    Dependency,
    DependencyChain,
    DependencyGraph,
    DependencyListItem,
    DependencySuggestion,
    GraphEdge,
    GraphNode,
    TaskDependencies,
    ValidationResult,
)
from taskdeps.schemas.tasks import TaskSnapshot
from taskdeps.services.similarity import calculate_confidence, shares_keywords

log = structlog.get_logger()

UNKNOWN_TASK_TITLE = "Unknown Task"
UNKNOWN_DEPENDENCY_REASON = "Blocked by unknown dependency"
SELF_DEPENDENCY_REASON = "Task cannot depend on itself"
CIRCULAR_DEPENDENCY_REASON = "This would create a circular dependency"
DUPLICATE_DEPENDENCY_REASON = "Dependency already exists"

_DONE = object()


class DependencyError(Exception):
    """Raised by :func:`add_dependency` when an edge is rejected."""

    def __init__(self, reason: str, task_id: str, depends_on_task_id: str):
        super().__init__(reason)
        self.reason = reason
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _index_tasks(tasks: Iterable[TaskSnapshot]) -> dict[str, TaskSnapshot]:
    index: dict[str, TaskSnapshot] = {}
    for task in tasks:
        index.setdefault(task.id, task)
    return index


def _adjacency(dependencies: Iterable[Dependency]) -> dict[str, list[str]]:
    """task_id -> [depends_on_task_id], edge order preserved."""
    adj: dict[str, list[str]] = defaultdict(list)
    for dep in dependencies:
        adj[dep.task_id].append(dep.depends_on_task_id)
    return adj


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def find_task(task_id: str, tasks: Sequence[TaskSnapshot]) -> Optional[TaskSnapshot]:
    return next((t for t in tasks if t.id == task_id), None)


def get_task_title(task_id: str, tasks: Sequence[TaskSnapshot]) -> str:
    task = find_task(task_id, tasks)
    return task.title if task else UNKNOWN_TASK_TITLE


# ---------------------------------------------------------------------------
# Construction & validation
# ---------------------------------------------------------------------------


def create_dependency(
    task_id: str,
    depends_on_task_id: str,
    type: DependencyType = DependencyType.BLOCKS,
    *,
    id_factory: Optional[IdFactory] = None,
    clock: Optional[Clock] = None,
) -> Dependency:
    """Build a new edge record. Does not validate; see :func:`validate_dependency`.

    ``type`` is a closed set: a value outside :class:`DependencyType` raises
    ``ValueError`` here, at the boundary where records are created.
    """
    dep = Dependency(
        id=(id_factory or new_dependency_id)(),
        task_id=task_id,
        depends_on_task_id=depends_on_task_id,
        type=DependencyType(type),
        created_at=(clock or utcnow)(),
    )
    log.debug("dependency.created", dependency_id=dep.id, task_id=task_id,
              depends_on=depends_on_task_id, type=dep.type.value)
    return dep


def _has_path(adj: dict[str, list[str]], from_id: str, to_id: str) -> bool:
    """DFS following depends-on edges from ``from_id`` looking for ``to_id``."""
    visited: set[str] = set()
    stack = [from_id]
    while stack:
        current = stack.pop()
        if current == to_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(reversed(adj.get(current, [])))
    return False


def validate_dependency(
    task_id: str,
    depends_on_task_id: str,
    existing: Sequence[Dependency],
) -> ValidationResult:
    if task_id == depends_on_task_id:
        log.debug("dependency.rejected", task_id=task_id, reason=SELF_DEPENDENCY_REASON)
        return ValidationResult(is_valid=False, reason=SELF_DEPENDENCY_REASON)

    # Adding task -> depends_on closes a cycle iff depends_on already
    # (transitively) depends on task.
    if _has_path(_adjacency(existing), depends_on_task_id, task_id):
        log.debug("dependency.rejected", task_id=task_id, depends_on=depends_on_task_id,
                  reason=CIRCULAR_DEPENDENCY_REASON)
        return ValidationResult(is_valid=False, reason=CIRCULAR_DEPENDENCY_REASON)

    return ValidationResult(is_valid=True)


def add_dependency(
    task_id: str,
    depends_on_task_id: str,
    dependencies: Sequence[Dependency],
    type: DependencyType = DependencyType.BLOCKS,
    *,
    id_factory: Optional[IdFactory] = None,
    clock: Optional[Clock] = None,
) -> Dependency:
    """Validate and build a new edge; the caller stores it.

    Raises :class:`DependencyError` for duplicates, self-dependencies and
    edges that would close a cycle. ``dependencies`` is not modified.
    """
    duplicate = any(
        d.task_id == task_id and d.depends_on_task_id == depends_on_task_id
        for d in dependencies
    )
    if duplicate:
        raise DependencyError(DUPLICATE_DEPENDENCY_REASON, task_id, depends_on_task_id)

    result = validate_dependency(task_id, depends_on_task_id, dependencies)
    if not result.is_valid:
        raise DependencyError(result.reason or "", task_id, depends_on_task_id)

    return create_dependency(
        task_id, depends_on_task_id, type, id_factory=id_factory, clock=clock
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_task_dependencies(
    task_id: str, dependencies: Sequence[Dependency]
) -> TaskDependencies:
    partitioned: dict[DependencyType, list[Dependency]] = defaultdict(list)
    for dep in dependencies:
        if dep.task_id == task_id:
            partitioned[dep.type].append(dep)
    return TaskDependencies(
        blocks=partitioned[DependencyType.BLOCKS],
        requires=partitioned[DependencyType.REQUIRES],
        suggests=partitioned[DependencyType.SUGGESTS],
    )


def describe_task_dependencies(
    task_id: str,
    dependencies: Sequence[Dependency],
    tasks: Sequence[TaskSnapshot],
) -> list[DependencyListItem]:
    """Outgoing edges of a task with labels and prerequisite titles resolved."""
    index = _index_tasks(tasks)
    items = []
    for dep in dependencies:
        if dep.task_id != task_id:
            continue
        prerequisite = index.get(dep.depends_on_task_id)
        items.append(
            DependencyListItem(
                dependency=dep,
                type_label=dep.type.label,
                depends_on_title=prerequisite.title if prerequisite else UNKNOWN_TASK_TITLE,
            )
        )
    return items


def get_available_dependency_targets(
    task_id: str,
    tasks: Sequence[TaskSnapshot],
    dependencies: Sequence[Dependency],
) -> list[TaskSnapshot]:
    """Tasks ``task_id`` could be made to depend on (cycle check not applied)."""
    already = {d.depends_on_task_id for d in dependencies if d.task_id == task_id}
    return [
        t for t in tasks
        if t.id != task_id and not t.completed and t.id not in already
    ]


@dataclass
class _ChainDepths:
    """Per-node depth over the depends-on graph, computed once per edge set.

    ``depth``/``next_hop`` cover every node that cannot reach a cycle;
    ``cyclic`` holds the nodes that can.
    """
    depth: dict[str, int] = field(default_factory=dict)
    next_hop: dict[str, str] = field(default_factory=dict)
    cyclic: set[str] = field(default_factory=set)


def _chain_depths(adj: dict[str, list[str]]) -> _ChainDepths:
    """One post-order DFS over the whole graph, memoizing longest depth.

    A node reaching a node still on the DFS stack (or an already tainted
    node) can reach a cycle and is left out of the memo.
    """
    result = _ChainDepths()
    state: dict[str, int] = {}  # 1 = on stack, 2 = finished
    for root in list(adj):
        if root in state:
            continue
        state[root] = 1
        stack = [(root, iter(adj.get(root, [])))]
        while stack:
            node, children = stack[-1]
            child = next(children, _DONE)
            if child is _DONE:
                stack.pop()
                state[node] = 2
                if node in result.cyclic:
                    if stack:
                        result.cyclic.add(stack[-1][0])
                    continue
                best = 0
                for dep_id in adj.get(node, []):
                    if result.depth[dep_id] + 1 > best:
                        best = result.depth[dep_id] + 1
                        result.next_hop[node] = dep_id
                result.depth[node] = best
                continue
            seen = state.get(child)
            if seen is None:
                state[child] = 1
                stack.append((child, iter(adj.get(child, []))))
            elif seen == 1 or child in result.cyclic:
                result.cyclic.add(node)
    return result


def _follow(task_id: str, depths: _ChainDepths) -> list[str]:
    path = [task_id]
    while path[-1] in depths.next_hop:
        path.append(depths.next_hop[path[-1]])
    return path


def _longest_path(
    task_id: str, adj: dict[str, list[str]], depths: _ChainDepths
) -> list[str]:
    """Longest depends-on path from ``task_id``.

    Nodes that cannot reach a cycle are answered from the memo. Otherwise an
    iterative DFS runs whose visited set is the current root-to-node path, so
    sibling branches never share state; it drops back to the memo as soon as
    it steps onto an acyclic node. An edge back onto the path counts as one
    step and is not followed.
    """
    if task_id not in depths.cyclic:
        return _follow(task_id, depths)

    best = [task_id]
    on_path = {task_id}
    stack = [(task_id, iter(adj.get(task_id, [])))]
    while stack:
        node, children = stack[-1]
        child = next(children, _DONE)
        if child is _DONE:
            stack.pop()
            on_path.discard(node)
            continue
        if child not in depths.cyclic:
            if len(stack) + 1 + depths.depth.get(child, 0) > len(best):
                best = [n for n, _ in stack] + _follow(child, depths)
            continue
        if len(stack) + 1 > len(best):
            best = [n for n, _ in stack] + [child]
        if child in on_path:
            continue
        on_path.add(child)
        stack.append((child, iter(adj.get(child, []))))
    return best


def get_longest_chain(task_id: str, dependencies: Sequence[Dependency]) -> list[str]:
    """Ids along one longest dependency path starting at ``task_id``."""
    adj = _adjacency(dependencies)
    return _longest_path(task_id, adj, _chain_depths(adj))


def _build_chain(
    task_id: str,
    dependencies: Sequence[Dependency],
    index: dict[str, TaskSnapshot],
    adj: dict[str, list[str]],
    depths: _ChainDepths,
    settings: Settings,
) -> DependencyChain:
    blocked_by: list[str] = []
    blocks: list[str] = []

    for dep in dependencies:
        if dep.type not in BLOCKING_TYPES:
            continue
        if dep.task_id == task_id:
            prerequisite = index.get(dep.depends_on_task_id)
            if prerequisite is None:
                if settings.unknown_prerequisite_blocks:
                    blocked_by.append(dep.depends_on_task_id)
            elif not prerequisite.completed:
                blocked_by.append(dep.depends_on_task_id)
        if dep.depends_on_task_id == task_id:
            dependent = index.get(dep.task_id)
            if dependent is not None and not dependent.completed:
                blocks.append(dep.task_id)

    blocked_by = _unique(blocked_by)
    return DependencyChain(
        task_id=task_id,
        blocked_by=blocked_by,
        blocks=_unique(blocks),
        chain_length=len(_longest_path(task_id, adj, depths)) - 1,
        is_blocked=bool(blocked_by),
    )


def get_dependency_chain(
    task_id: str,
    dependencies: Sequence[Dependency],
    tasks: Sequence[TaskSnapshot],
    settings: Optional[Settings] = None,
) -> DependencyChain:
    """Direct blockers, direct dependents and depth of ``task_id``.

    ``suggests`` edges never block, but they do count towards ``chain_length``.
    """
    adj = _adjacency(dependencies)
    return _build_chain(
        task_id,
        dependencies,
        _index_tasks(tasks),
        adj,
        _chain_depths(adj),
        settings or get_settings(),
    )


def can_complete_task(
    task_id: str,
    dependencies: Sequence[Dependency],
    tasks: Sequence[TaskSnapshot],
    settings: Optional[Settings] = None,
) -> bool:
    return not get_dependency_chain(task_id, dependencies, tasks, settings).is_blocked


def get_blocking_reasons(
    task_id: str,
    dependencies: Sequence[Dependency],
    tasks: Sequence[TaskSnapshot],
    settings: Optional[Settings] = None,
) -> list[str]:
    chain = get_dependency_chain(task_id, dependencies, tasks, settings)
    index = _index_tasks(tasks)
    reasons = []
    for blocking_id in chain.blocked_by:
        blocking_task = index.get(blocking_id)
        if blocking_task is None:
            reasons.append(UNKNOWN_DEPENDENCY_REASON)
        else:
            reasons.append(f'Blocked by "{blocking_task.title}"')
    return reasons


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def generate_dependency_suggestions(
    tasks: Sequence[TaskSnapshot],
    existing: Sequence[Dependency],
    settings: Optional[Settings] = None,
) -> list[DependencySuggestion]:
    """Rank candidate dependencies between open tasks of the same project.

    Sorted by confidence, highest first; equal scores keep encounter order.
    """
    settings = settings or get_settings()
    existing_pairs = {(d.task_id, d.depends_on_task_id) for d in existing}

    buckets: dict[Optional[str], list[TaskSnapshot]] = defaultdict(list)
    for task in tasks:
        buckets[task.project_id or None].append(task)

    suggestions: list[DependencySuggestion] = []
    for project_tasks in buckets.values():
        open_tasks = [t for t in project_tasks if not t.completed]
        for task in open_tasks:
            for other in open_tasks:
                if other.id == task.id:
                    continue
                if not shares_keywords(task, other, settings):
                    continue
                if (task.id, other.id) in existing_pairs:
                    continue
                confidence = calculate_confidence(task, other, settings)
                if confidence < settings.min_suggestion_confidence:
                    continue
                suggestions.append(
                    DependencySuggestion(
                        task_id=task.id,
                        suggested_dependency=other.id,
                        reason=f'Similar context: "{other.title}"',
                        confidence=confidence,
                    )
                )

    log.debug("dependency.suggestions_generated", tasks=len(tasks),
              projects=len(buckets), suggestions=len(suggestions))
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


def get_suggestions_for_task(
    task_id: str, suggestions: Sequence[DependencySuggestion]
) -> list[DependencySuggestion]:
    return [s for s in suggestions if s.task_id == task_id]


# ---------------------------------------------------------------------------
# Visualization
# ---------------------------------------------------------------------------


def get_dependency_visualization(
    tasks: Sequence[TaskSnapshot],
    dependencies: Sequence[Dependency],
    settings: Optional[Settings] = None,
) -> DependencyGraph:
    settings = settings or get_settings()
    index = _index_tasks(tasks)
    adj = _adjacency(dependencies)
    depths = _chain_depths(adj)

    nodes = [
        GraphNode(
            id=task.id,
            label=task.title,
            completed=task.completed,
            project_id=task.project_id,
            is_blocked=_build_chain(
                task.id, dependencies, index, adj, depths, settings
            ).is_blocked,
        )
        for task in tasks
    ]
    edges = [
        GraphEdge(
            id=dep.id,
            source=dep.depends_on_task_id,
            target=dep.task_id,
            type=dep.type,
        )
        for dep in dependencies
    ]
    return DependencyGraph(nodes=nodes, edges=edges)
