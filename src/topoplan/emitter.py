"""
Plan emitter.

Linearizes a resource graph into the operation records handed to the
external provisioning engine. Emission is pure data production: nothing is
executed and nothing is assumed to have been executed.

The order is a stable topological sort. Whenever several nodes are ready,
the one with the lowest `(emit_rank, registration index)` goes first, so the
same graph always yields the same plan and related resources stay grouped:
networks, then subnets, route tables, default routes, target groups and load
balancers, listeners, scaling groups and their attachments, peering links
and finally peering routes.
"""

import heapq
import json
from collections import Counter
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from topoplan._introspection import get_refs, iter_references
from topoplan._logging import get_logger
from topoplan.graph import GraphSnapshot, ResourceGraph
from topoplan.nodes import ResourceNode
from topoplan.resolver import ReferenceResolver
from topoplan.settings import get_settings

__all__ = ["OpType", "Operation", "Plan", "PlanEmitter", "emit"]

logger = get_logger(__name__)


class OpType(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Operation:
    """One instruction for the provisioning engine."""

    op_type: OpType
    resource_type: str
    resource_id: str
    parameters: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "op_type": self.op_type.value,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "parameters": dict(self.parameters),
        }


class Plan:
    """Ordered, restartable sequence of operations.

    Operations are built on iteration; every iteration yields the same
    sequence.
    """

    def __init__(self, snapshot: GraphSnapshot, order: tuple[str, ...], resolver: ReferenceResolver) -> None:
        self._snapshot = snapshot
        self._order = order
        self._resolver = resolver

    def __iter__(self) -> Iterator[Operation]:
        for node_id in self._order:
            node = self._snapshot.get(node_id)
            yield Operation(
                op_type=OpType.CREATE,
                resource_type=node.resource_type,
                resource_id=node.node_id,
                parameters=_parameters(node, self._resolver),
            )

    def __len__(self) -> int:
        return len(self._order)

    @property
    def resource_ids(self) -> tuple[str, ...]:
        return self._order

    def resource_counts(self) -> Counter[str]:
        return Counter(self._snapshot.get(node_id).resource_type for node_id in self._order)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [operation.to_dict() for operation in self]

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dicts(), indent=indent)


class PlanEmitter:
    """Emits plans with a fixed context (region and other context values)."""

    def __init__(self, context: Mapping[str, Any] | None = None) -> None:
        self.context = dict(context) if context is not None else get_settings().context()

    def emit(self, graph: ResourceGraph | GraphSnapshot) -> Plan:
        """Snapshot, check and order a graph.

        Raises:
            CyclicReferenceError: If references form a cycle.
            UnresolvedDependencyError: If a reference or context value
                cannot be resolved.
        """
        snapshot = graph.snapshot() if isinstance(graph, ResourceGraph) else graph
        resolver = ReferenceResolver(snapshot, self.context)

        resolver.check_acyclic()
        for node in snapshot:
            _validate(node, resolver)

        order = _stable_topological_order(snapshot, resolver)
        logger.info("plan_emitted", operations=len(order))
        return Plan(snapshot, order, resolver)


def emit(graph: ResourceGraph | GraphSnapshot, context: Mapping[str, Any] | None = None) -> Plan:
    """Emit a plan for `graph`; see `PlanEmitter.emit`."""
    return PlanEmitter(context).emit(graph)


def _validate(node: ResourceNode, resolver: ReferenceResolver) -> None:
    for _, reference in iter_references(node):
        resolver.resolve(reference)
    for info in get_refs(type(node)).values():
        if info.is_context:
            resolver.resolve_context(info.attr)


def _stable_topological_order(snapshot: GraphSnapshot, resolver: ReferenceResolver) -> tuple[str, ...]:
    pending: dict[str, int] = {}
    dependents: dict[str, list[str]] = {node.node_id: [] for node in snapshot}
    ready: list[tuple[int, int, str]] = []

    for position, node in enumerate(snapshot):
        dependencies = resolver.dependencies(node)
        pending[node.node_id] = len(dependencies)
        for dependency in dependencies:
            dependents[dependency].append(node.node_id)
        if not dependencies:
            heapq.heappush(ready, (node.emit_rank, position, node.node_id))

    order: list[str] = []
    while ready:
        _, _, node_id = heapq.heappop(ready)
        order.append(node_id)
        for dependent in dependents[node_id]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                node = snapshot.get(dependent)
                heapq.heappush(ready, (node.emit_rank, snapshot.index[dependent], dependent))

    return tuple(order)


def _parameters(node: ResourceNode, resolver: ReferenceResolver) -> dict[str, Any]:
    refs = get_refs(type(node))
    parameters: dict[str, Any] = {}

    for field in fields(node):
        if field.name == "node_id":
            continue
        value = getattr(node, field.name)
        info = refs.get(field.name)
        if info is None:
            parameters[field.name] = list(value) if isinstance(value, tuple) else value
        elif info.is_context:
            parameters[field.name] = resolver.resolve_context(info.attr)
        elif value is None:
            parameters[field.name] = None
        elif info.is_list:
            parameters[field.name] = [resolver.resolve(item) for item in value]
        else:
            parameters[field.name] = resolver.resolve(value)

    return parameters
