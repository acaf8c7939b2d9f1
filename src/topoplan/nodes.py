"""
Resource nodes.

One frozen dataclass per kind of infrastructure object. Edges to other
nodes are fields annotated with the reference markers and hold a symbolic
`Reference`; everything else is a plain parameter passed through to the
emitted operation.

Class variables on every node:

- `resource_type`: the backend resource type name written into the plan
- `emit_rank`: grouping used to break ties between ready nodes at emission
- `attributes`: backend-assigned attributes an `Attr` reference may name
"""

from dataclasses import dataclass
from typing import ClassVar

from topoplan._types import Attr, ContextRef, Ref, RefList
from topoplan.errors import ConfigurationError

__all__ = [
    "Reference",
    "ResourceNode",
    "Network",
    "FlowLog",
    "InternetGateway",
    "Subnet",
    "RouteTable",
    "NatGateway",
    "DefaultRoute",
    "TargetGroup",
    "LoadBalancer",
    "Listener",
    "ScalingGroup",
    "ScalingPolicy",
    "TargetGroupAttachment",
    "PeeringLink",
    "Route",
]

PUBLIC = "public"
PRIVATE = "private"


@dataclass(frozen=True)
class Reference:
    """A symbolic reference to a node, or to one of its backend attributes."""

    target: str
    attr: str | None = None

    def __str__(self) -> str:
        if self.attr is None:
            return self.target
        return f"{self.target}.{self.attr}"


@dataclass(frozen=True, kw_only=True)
class ResourceNode:
    """Immutable description of one infrastructure object."""

    resource_type: ClassVar[str] = "Resource"
    emit_rank: ClassVar[int] = 0
    attributes: ClassVar[tuple[str, ...]] = ()

    node_id: str

    @property
    def ref(self) -> Reference:
        """A reference to this node."""
        return Reference(self.node_id)

    def attr(self, name: str) -> Reference:
        """A reference to a backend-assigned attribute of this node."""
        return Reference(self.node_id, name)


@dataclass(frozen=True, kw_only=True)
class Network(ResourceNode):
    resource_type: ClassVar[str] = "Network"
    emit_rank: ClassVar[int] = 0
    attributes: ClassVar[tuple[str, ...]] = ("network_id",)

    cidr: str
    availability_zones: tuple[str, ...]
    region: ContextRef["region"] = None
    enable_dns_support: bool = True
    enable_dns_hostnames: bool = True


@dataclass(frozen=True, kw_only=True)
class FlowLog(ResourceNode):
    resource_type: ClassVar[str] = "FlowLog"
    emit_rank: ClassVar[int] = 1

    network: Ref[Network]
    traffic_type: str = "ALL"
    destination: str = "cloud-watch-logs"


@dataclass(frozen=True, kw_only=True)
class InternetGateway(ResourceNode):
    resource_type: ClassVar[str] = "InternetGateway"
    emit_rank: ClassVar[int] = 1

    network: Ref[Network]


@dataclass(frozen=True, kw_only=True)
class Subnet(ResourceNode):
    resource_type: ClassVar[str] = "Subnet"
    emit_rank: ClassVar[int] = 1

    network: Ref[Network]
    cidr: str
    availability_zone: str
    tier: str
    map_public_ip_on_launch: bool = False

    @property
    def is_private(self) -> bool:
        return self.tier == PRIVATE


@dataclass(frozen=True, kw_only=True)
class RouteTable(ResourceNode):
    resource_type: ClassVar[str] = "RouteTable"
    emit_rank: ClassVar[int] = 2

    subnet: Ref[Subnet]


@dataclass(frozen=True, kw_only=True)
class NatGateway(ResourceNode):
    resource_type: ClassVar[str] = "NatGateway"
    emit_rank: ClassVar[int] = 2

    subnet: Ref[Subnet]


@dataclass(frozen=True, kw_only=True)
class DefaultRoute(ResourceNode):
    """Egress route of a subnet, via the internet gateway or a NAT gateway."""

    resource_type: ClassVar[str] = "DefaultRoute"
    emit_rank: ClassVar[int] = 3

    route_table: Ref[RouteTable]
    destination_cidr: str = "0.0.0.0/0"
    gateway: Ref[InternetGateway] | None = None
    nat_gateway: Ref[NatGateway] | None = None


@dataclass(frozen=True, kw_only=True)
class TargetGroup(ResourceNode):
    resource_type: ClassVar[str] = "TargetGroup"
    emit_rank: ClassVar[int] = 4
    attributes: ClassVar[tuple[str, ...]] = ("arn",)

    network: Ref[Network]
    protocol: str
    port: int
    target_type: str = "instance"


@dataclass(frozen=True, kw_only=True)
class LoadBalancer(ResourceNode):
    resource_type: ClassVar[str] = "LoadBalancer"
    emit_rank: ClassVar[int] = 4
    attributes: ClassVar[tuple[str, ...]] = ("arn", "dns_name")

    network: Ref[Network]
    subnets: RefList[Subnet]
    scheme: str = "internet-facing"


@dataclass(frozen=True, kw_only=True)
class Listener(ResourceNode):
    resource_type: ClassVar[str] = "Listener"
    emit_rank: ClassVar[int] = 5

    load_balancer: Ref[LoadBalancer]
    default_target_group: Ref[TargetGroup]
    protocol: str
    port: int


@dataclass(frozen=True, kw_only=True)
class ScalingGroup(ResourceNode):
    """Pool of instances kept within min/desired/max capacity.

    `user_data` holds the bootstrap commands run at instance boot, in
    order. They are opaque to this library.
    """

    resource_type: ClassVar[str] = "ScalingGroup"
    emit_rank: ClassVar[int] = 6

    network: Ref[Network]
    subnets: RefList[Subnet]
    min_capacity: int
    desired_capacity: int
    max_capacity: int
    machine_image: str
    instance_type: str
    user_data: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0 < self.min_capacity <= self.desired_capacity <= self.max_capacity:
            raise ConfigurationError(
                f"{self.node_id}: capacity must satisfy 0 < min <= desired <= max, got "
                f"min={self.min_capacity} desired={self.desired_capacity} max={self.max_capacity}"
            )


@dataclass(frozen=True, kw_only=True)
class ScalingPolicy(ResourceNode):
    resource_type: ClassVar[str] = "ScalingPolicy"
    emit_rank: ClassVar[int] = 7

    scaling_group: Ref[ScalingGroup]
    target_value: float
    metric: str = "cpu_utilization"


@dataclass(frozen=True, kw_only=True)
class TargetGroupAttachment(ResourceNode):
    resource_type: ClassVar[str] = "TargetGroupAttachment"
    emit_rank: ClassVar[int] = 7

    scaling_group: Ref[ScalingGroup]
    target_group: Ref[TargetGroup]


@dataclass(frozen=True, kw_only=True)
class PeeringLink(ResourceNode):
    resource_type: ClassVar[str] = "PeeringLink"
    emit_rank: ClassVar[int] = 8
    attributes: ClassVar[tuple[str, ...]] = ("connection_id",)

    requester: Ref[Network]
    accepter: Ref[Network]
    requester_cidr: str
    accepter_cidr: str

    @property
    def pair(self) -> frozenset[str]:
        """The unordered pair of network node ids this link connects."""
        return frozenset((self.requester.target, self.accepter.target))


@dataclass(frozen=True, kw_only=True)
class Route(ResourceNode):
    """Route from a private subnet to a peer network's CIDR over a peering link."""

    resource_type: ClassVar[str] = "Route"
    emit_rank: ClassVar[int] = 9

    route_table: Ref[RouteTable]
    destination_cidr: str
    peering_connection: Attr[PeeringLink, "connection_id"]
