"""
The shared resource graph.

`ResourceGraph` is the mutable registry the builder and the peering planner
add nodes to. Nodes keep their registration order, which the emitter uses to
break ties. Edges live on the nodes themselves (see `topoplan.nodes`), so the
graph only has to store nodes by id.

Additions made inside `transaction()` are all kept or all discarded, which
is how a failing `define_network` or `peer` call leaves no partial node set
behind. `snapshot()` hands the current state to the emitter as an immutable
value.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, TypeVar

from topoplan._logging import get_logger
from topoplan.errors import ConfigurationError
from topoplan.nodes import ResourceNode

__all__ = ["ResourceGraph", "GraphSnapshot"]

logger = get_logger(__name__)

N = TypeVar("N", bound=ResourceNode)


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable view of a resource graph at one point in time."""

    nodes: tuple[ResourceNode, ...]
    index: Mapping[str, int]

    @classmethod
    def of(cls, nodes: tuple[ResourceNode, ...]) -> "GraphSnapshot":
        index = {node.node_id: position for position, node in enumerate(nodes)}
        return cls(nodes=nodes, index=MappingProxyType(index))

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.index

    def get(self, node_id: str) -> ResourceNode | None:
        position = self.index.get(node_id)
        if position is None:
            return None
        return self.nodes[position]


class ResourceGraph:
    """Ordered, transactional registry of resource nodes.

    Not safe for concurrent mutation.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, ResourceNode] = {}
        self._staged: list[str] | None = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(list(self._nodes.values()))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> ResourceNode | None:
        return self._nodes.get(node_id)

    def nodes_of_type(self, node_type: type[N]) -> list[N]:
        return [node for node in self._nodes.values() if isinstance(node, node_type)]

    def add(self, node: N) -> N:
        """Register a node and return it.

        Raises:
            ConfigurationError: If a node with the same id is already registered.
        """
        if node.node_id in self._nodes:
            raise ConfigurationError(f"Node id already registered: {node.node_id!r}")
        self._nodes[node.node_id] = node
        if self._staged is not None:
            self._staged.append(node.node_id)
        return node

    @contextmanager
    def transaction(self) -> Iterator["ResourceGraph"]:
        """Keep every node added in the block, or none of them.

        Transactions nest; only the outermost one commits or rolls back.
        """
        if self._staged is not None:
            yield self
            return

        self._staged = []
        try:
            yield self
        except BaseException:
            for node_id in reversed(self._staged):
                del self._nodes[node_id]
            logger.debug("graph_transaction_rolled_back", discarded=len(self._staged))
            raise
        finally:
            self._staged = None

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot.of(tuple(self._nodes.values()))
