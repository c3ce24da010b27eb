"""
Stage graph for the exchange pipeline.

Stages run one at a time in dependency order and share a single context
dict: whatever a stage returns is merged into it for the stages after it.
A stage whose dependencies did not all succeed is skipped, which keeps a
half-built artifact (a JWS whose encryption failed, say) away from later
stages. Stages may be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

Stage = Callable[[dict[str, Any]], Any]


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TaskNode:
    name: str
    execute_fn: Stage
    depends_on: list[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    exception: BaseException | None = None
    duration_ms: float = 0.0

    def report(self) -> dict[str, Any]:
        if self.status == TaskStatus.SKIPPED:
            return {"status": self.status.value}
        return {
            "status": self.status.value,
            "duration_ms": round(self.duration_ms, 2),
            "error": self.error,
        }


class DAG:
    """
    Named graph of stages.

        dag = DAG("bind_exchange")
        dag.add_task("sign", sign)
        dag.add_task("encrypt", encrypt, depends_on=["sign"])
        summary = await dag.run({"bundle": bundle})
    """

    def __init__(self, name: str):
        self.name = name
        self.tasks: dict[str, TaskNode] = {}

    def add_task(self, name: str, execute_fn: Stage, depends_on: list[str] | None = None) -> DAG:
        if name in self.tasks:
            raise ValueError(f"Duplicate task name: {name}")
        self.tasks[name] = TaskNode(name, execute_fn, list(depends_on or []))
        return self

    def _topological_sort(self) -> list[str]:
        """Stage names in an order where every dependency comes first."""
        dependents: dict[str, list[str]] = {name: [] for name in self.tasks}
        waiting: dict[str, int] = {}
        for node in self.tasks.values():
            for dep in node.depends_on:
                if dep not in self.tasks:
                    raise ValueError(f"Task '{node.name}' depends on unknown task '{dep}'")
                dependents[dep].append(node.name)
            waiting[node.name] = len(node.depends_on)

        ready = deque(name for name, count in waiting.items() if count == 0)
        order: list[str] = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for child in dependents[name]:
                waiting[child] -= 1
                if waiting[child] == 0:
                    ready.append(child)

        if len(order) != len(self.tasks):
            stuck = sorted(set(self.tasks) - set(order))
            raise ValueError(f"Cycle detected in DAG between {', '.join(stuck)}")
        return order

    def _reset(self) -> None:
        for name, node in self.tasks.items():
            self.tasks[name] = TaskNode(node.name, node.execute_fn, node.depends_on)

    async def _run_task(self, node: TaskNode, context: dict[str, Any]) -> None:
        node.status = TaskStatus.RUNNING
        logger.info("Running stage '%s'", node.name)
        started = time.perf_counter()
        try:
            outcome = node.execute_fn(context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            node.status = TaskStatus.FAILED
            node.error = str(exc)
            node.exception = exc
            logger.error("Stage '%s' failed: %s", node.name, exc)
        else:
            node.result = outcome or {}
            node.status = TaskStatus.SUCCESS
            context.update(node.result)
        finally:
            node.duration_ms = (time.perf_counter() - started) * 1000

    async def run(self, initial_context: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run every stage once and return a per-stage summary."""
        order = self._topological_sort()
        self._reset()
        context = dict(initial_context or {})
        logger.info("Starting '%s' (%s)", self.name, " -> ".join(order))

        for name in order:
            node = self.tasks[name]
            blocked = [d for d in node.depends_on if self.tasks[d].status != TaskStatus.SUCCESS]
            if blocked:
                node.status = TaskStatus.SKIPPED
                logger.warning("Skipping '%s': %s did not succeed", name, ", ".join(blocked))
                continue
            await self._run_task(node, context)

        ok = all(node.status == TaskStatus.SUCCESS for node in self.tasks.values())
        status = "completed" if ok else "failed"
        logger.info("'%s' %s", self.name, status)
        return {
            "pipeline": self.name,
            "status": status,
            "tasks": {name: self.tasks[name].report() for name in order},
        }

    def failed_task(self) -> TaskNode | None:
        return next((n for n in self.tasks.values() if n.status == TaskStatus.FAILED), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tasks": {name: {"depends_on": node.depends_on} for name, node in self.tasks.items()},
        }
