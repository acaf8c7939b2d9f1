"""
Topology facade.

Owns one resource graph and the builder, planner and emitter working on it,
enforcing the two construction phases: define every network, then link them,
then emit.

Example::

    topology = Topology(availability_zones=["us-east-1a", "us-east-1b"])
    web1 = topology.define_network({"name": "VPC1", "cidr": "10.42.11.0/24"})
    web2 = topology.define_network({"name": "VPC2", "cidr": "10.7.11.0/24"})
    topology.peer(web1, web2)

    for operation in topology.emit():
        print(operation.resource_type, operation.resource_id)
"""

from collections.abc import Mapping, Sequence
from typing import Any

from topoplan.builder import NetworkHandle, TopologyBuilder
from topoplan.config import NetworkConfig
from topoplan.emitter import Plan, PlanEmitter
from topoplan.errors import ConfigurationError
from topoplan.graph import ResourceGraph
from topoplan.nodes import PeeringLink
from topoplan.peering import PeeringPlanner

__all__ = ["Topology"]


class Topology:
    """One resource graph together with the builder, planner and emitter using it.

    Networks are looked up by name, so `peer` and `mesh` accept either
    handles or the names given to `define_network`.
    """

    def __init__(
        self,
        availability_zones: Sequence[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.graph = ResourceGraph()
        self.builder = TopologyBuilder(self.graph, availability_zones)
        self.planner = PeeringPlanner(self.graph)
        self.emitter = PlanEmitter(context)
        self.networks: dict[str, NetworkHandle] = {}

    def define_network(self, config: NetworkConfig | Mapping[str, Any]) -> NetworkHandle:
        handle = self.builder.define_network(config)
        self.networks[handle.name] = handle
        return handle

    def network(self, name: str) -> NetworkHandle:
        """Look up a defined network by name.

        Raises:
            ConfigurationError: If no network of that name has been defined.
        """
        try:
            return self.networks[name]
        except KeyError:
            raise ConfigurationError(f"Unknown network {name!r}") from None

    def peer(self, a: NetworkHandle | str, b: NetworkHandle | str) -> PeeringLink:
        return self.planner.peer(self._handle(a), self._handle(b))

    def mesh(self, *names: str) -> list[PeeringLink]:
        """Peer every pair of the named networks, or of all networks if none are named."""
        handles = [self.network(name) for name in names] if names else list(self.networks.values())
        return self.planner.mesh(handles)

    def emit(self) -> Plan:
        return self.emitter.emit(self.graph)

    def _handle(self, value: NetworkHandle | str) -> NetworkHandle:
        if isinstance(value, NetworkHandle):
            return value
        return self.network(value)
