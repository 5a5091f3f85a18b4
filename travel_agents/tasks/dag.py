"""
Explicit task dependency graph.

Validates a generated task list (unique ids, known dependencies, no
cycles, no forward references) and exposes its topological layers. Any
violation means the task builder is broken, so it is raised, never
repaired.
"""

from collections import deque
from typing import Dict, Iterable, List, Sequence, Tuple

from travel_agents.shared.contracts import PlannerTask
from travel_agents.shared.errors import TaskGraphCycleError, TaskGraphError


class TaskDag:
    """Directed acyclic graph over a task list, keyed by task id."""

    def __init__(self, tasks: Sequence[PlannerTask]):
        self.order: List[str] = []
        self.tasks: Dict[str, PlannerTask] = {}
        for task in tasks:
            if task.id in self.tasks:
                raise TaskGraphError(f"Duplicate task id '{task.id}'")
            self.tasks[task.id] = task
            self.order.append(task.id)

        for task in tasks:
            for dep in task.dependencies:
                if dep not in self.tasks:
                    raise TaskGraphError(f"Task '{task.id}' depends on unknown task '{dep}'")

        self._layers = self._compute_layers()
        self._check_no_forward_references()

    def _compute_layers(self) -> List[List[str]]:
        """Kahn's algorithm, grouping tasks whose dependencies are all in earlier layers."""
        indegree = {task_id: len(set(self.tasks[task_id].dependencies)) for task_id in self.order}
        dependents: Dict[str, List[str]] = {task_id: [] for task_id in self.order}
        for task_id in self.order:
            for dep in set(self.tasks[task_id].dependencies):
                dependents[dep].append(task_id)

        layers: List[List[str]] = []
        ready = deque(task_id for task_id in self.order if indegree[task_id] == 0)
        visited = 0
        while ready:
            layer = list(ready)
            ready.clear()
            layers.append(layer)
            visited += len(layer)
            for task_id in layer:
                for child in dependents[task_id]:
                    indegree[child] -= 1
                    if indegree[child] == 0:
                        ready.append(child)

        if visited != len(self.order):
            stuck = [task_id for task_id in self.order if indegree[task_id] > 0]
            raise TaskGraphCycleError(stuck)
        return layers

    def _check_no_forward_references(self) -> None:
        seen = set()
        for task_id in self.order:
            for dep in self.tasks[task_id].dependencies:
                if dep not in seen:
                    raise TaskGraphError(
                        f"Task '{task_id}' references '{dep}' before it is defined"
                    )
            seen.add(task_id)

    def layers(self) -> List[List[str]]:
        """Topological waves: every task's dependencies sit in an earlier wave."""
        return [list(layer) for layer in self._layers]

    def topological_order(self) -> List[str]:
        return [task_id for layer in self._layers for task_id in layer]

    def dependencies(self, task_id: str) -> Tuple[str, ...]:
        return self.tasks[task_id].dependencies

    def ready(self, done: Iterable[str], pending: Iterable[str]) -> List[str]:
        """Pending tasks whose dependencies are all in ``done``, in list order."""
        done_set = set(done)
        pending_set = set(pending)
        return [
            task_id
            for task_id in self.order
            if task_id in pending_set
            and all(dep in done_set for dep in self.tasks[task_id].dependencies)
        ]

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.tasks
