"""
topoplan: a declarative infrastructure topology compiler.

Callers declare networks with their load-balanced, autoscaled web tier and
the peering links between them. topoplan builds an immutable resource graph
and emits a deterministic, dependency-ordered plan of operations for an
external provisioning engine. It never talks to a cloud API itself.

Overview:
    Construction happens in two phases:

    1. `define_network(config)` once per network: registers the network, its
       public/private subnets, route tables, gateways, load balancer, target
       group and scaling group, and returns a `NetworkHandle`.
    2. `peer(a, b)` for each pair to connect: registers a `PeeringLink` and
       one `Route` per private subnet per direction.

    `emit(graph)` then returns a `Plan`, a lazy and restartable sequence of
    `Operation` records in stable topological order.

Quick Start::

    from topoplan import Topology

    topology = Topology(availability_zones=["us-east-1a", "us-east-1b"])
    vpc1 = topology.define_network({
        "name": "VPC1",
        "cidr": "10.42.11.0/24",
        "scaling": {"min_capacity": 2, "desired_capacity": 3, "max_capacity": 5},
    })
    vpc2 = topology.define_network({"name": "VPC2", "cidr": "10.7.11.0/24"})
    topology.peer(vpc1, vpc2)

    print(topology.emit().to_json())

Node edges:
    Node classes declare their edges with reference markers, and the
    resolver and emitter discover them through `get_refs`::

        @dataclass(frozen=True, kw_only=True)
        class Route(ResourceNode):
            route_table: Ref[RouteTable]
            peering_connection: Attr[PeeringLink, "connection_id"]
            destination_cidr: str

Exports:
    Building:
        - `Topology`, `TopologyBuilder`, `NetworkHandle`, `PeeringPlanner`
        - `NetworkConfig`, `ListenerSpec`, `ScalingBounds`, `LaunchSpec`
        - `ResourceGraph`, `GraphSnapshot`
        - `load_topology`, `build_topology`

    Emission:
        - `ReferenceResolver`, `PlanEmitter`, `Plan`, `Operation`, `OpType`, `emit`

    Reference markers:
        - `Ref`, `Attr`, `RefList`, `ContextRef`, `RefInfo`, `get_refs`

    Errors:
        - `TopologyError`, `ConfigurationError`, `OverlapError`,
          `DuplicateLinkError`, `CyclicReferenceError`,
          `UnresolvedDependencyError`
"""

from topoplan._introspection import RefInfo, get_refs, iter_references
from topoplan._logging import configure_logging
from topoplan._types import Attr, ContextRef, Ref, RefList
from topoplan.builder import NetworkHandle, TopologyBuilder
from topoplan.config import LaunchSpec, ListenerSpec, NetworkConfig, ScalingBounds
from topoplan.emitter import Operation, OpType, Plan, PlanEmitter, emit
from topoplan.errors import (
    ConfigurationError,
    CyclicReferenceError,
    DuplicateLinkError,
    OverlapError,
    TopologyError,
    UnresolvedDependencyError,
)
from topoplan.graph import GraphSnapshot, ResourceGraph
from topoplan.loader import build_topology, load_topology
from topoplan.nodes import Reference
from topoplan.peering import PeeringPlanner
from topoplan.resolver import ReferenceResolver
from topoplan.topology import Topology

__all__ = [
    # Building
    "Topology",
    "TopologyBuilder",
    "NetworkHandle",
    "PeeringPlanner",
    "NetworkConfig",
    "ListenerSpec",
    "ScalingBounds",
    "LaunchSpec",
    "ResourceGraph",
    "GraphSnapshot",
    "Reference",
    "load_topology",
    "build_topology",
    # Emission
    "ReferenceResolver",
    "PlanEmitter",
    "Plan",
    "Operation",
    "OpType",
    "emit",
    # Reference markers
    "Ref",
    "Attr",
    "RefList",
    "ContextRef",
    "RefInfo",
    "get_refs",
    "iter_references",
    # Errors
    "TopologyError",
    "ConfigurationError",
    "OverlapError",
    "DuplicateLinkError",
    "CyclicReferenceError",
    "UnresolvedDependencyError",
    # Logging
    "configure_logging",
]

__version__ = "0.1.0"
