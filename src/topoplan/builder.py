"""
Topology builder.

`TopologyBuilder.define_network` expands one `NetworkConfig` into the full
node set of a topology unit:

- the Network, an optional FlowLog and an InternetGateway
- one public and one private Subnet per availability zone, each with its
  own RouteTable and a DefaultRoute (internet gateway for public subnets,
  NAT gateway for private ones when NAT is enabled)
- NatGateways in the first public subnets
- a TargetGroup, a LoadBalancer and a Listener forwarding to the group
- a ScalingGroup on the private subnets with its CPU ScalingPolicy and its
  attachment to the TargetGroup

The whole set is registered in one graph transaction.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from ipaddress import IPv4Network
from typing import Any

from topoplan._logging import get_logger
from topoplan.cidr import allocate_subnets
from topoplan.config import NetworkConfig, load_network_config
from topoplan.errors import ConfigurationError
from topoplan.graph import ResourceGraph
from topoplan.nodes import (
    PRIVATE,
    PUBLIC,
    DefaultRoute,
    FlowLog,
    InternetGateway,
    Listener,
    LoadBalancer,
    NatGateway,
    Network,
    Reference,
    RouteTable,
    ScalingGroup,
    ScalingPolicy,
    Subnet,
    TargetGroup,
    TargetGroupAttachment,
)
from topoplan.settings import get_settings

__all__ = ["NetworkHandle", "TopologyBuilder"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class NetworkHandle:
    """What later phases need to know about a built network.

    `private_route_tables[i]` is the route table of `private_subnets[i]`.
    """

    name: str
    network: Reference
    cidr: IPv4Network
    target_group: Reference
    private_subnets: tuple[Subnet, ...]
    private_route_tables: tuple[RouteTable, ...]


class TopologyBuilder:
    """Registers the node set of each network definition into a shared graph."""

    def __init__(
        self,
        graph: ResourceGraph | None = None,
        availability_zones: Sequence[str] | None = None,
    ) -> None:
        self.graph = graph if graph is not None else ResourceGraph()
        if availability_zones is None:
            availability_zones = get_settings().availability_zones
        self.availability_zones = tuple(availability_zones)

    def define_network(self, config: NetworkConfig | Mapping[str, Any]) -> NetworkHandle:
        """Build and register every node of one network.

        Raises:
            ConfigurationError: If the configuration is invalid, the name is
                already taken, or the CIDR cannot hold the subnets. Nothing is
                registered in that case.
        """
        config = load_network_config(config)
        if config.name in self.graph:
            raise ConfigurationError(f"Network {config.name!r} is already defined")
        if not self.availability_zones:
            raise ConfigurationError("No availability zones available")

        azs = self.availability_zones[: config.max_azs]
        blocks = allocate_subnets(config.network, 2 * len(azs), config.subnet_cidr_mask)
        nat_count = len(azs) if config.nat_gateways is None else min(config.nat_gateways, len(azs))

        before = len(self.graph)
        with self.graph.transaction() as graph:
            network = graph.add(
                Network(node_id=config.name, cidr=config.cidr, availability_zones=azs)
            )
            if config.flow_logs:
                graph.add(FlowLog(node_id=f"{config.name}/FlowLog", network=network.ref))
            igw = graph.add(
                InternetGateway(node_id=f"{config.name}/InternetGateway", network=network.ref)
            )

            public_subnets: list[Subnet] = []
            nat_gateways: list[NatGateway] = []
            for i, (az, block) in enumerate(zip(azs, blocks[: len(azs)])):
                subnet, table = self._add_subnet(network, f"PublicSubnet{i + 1}", PUBLIC, az, block)
                graph.add(
                    DefaultRoute(
                        node_id=f"{subnet.node_id}/DefaultRoute",
                        route_table=table.ref,
                        gateway=igw.ref,
                    )
                )
                public_subnets.append(subnet)
                if i < nat_count:
                    nat_gateways.append(
                        graph.add(NatGateway(node_id=f"{subnet.node_id}/NatGateway", subnet=subnet.ref))
                    )

            private_subnets: list[Subnet] = []
            private_tables: list[RouteTable] = []
            for i, (az, block) in enumerate(zip(azs, blocks[len(azs) :])):
                subnet, table = self._add_subnet(network, f"PrivateSubnet{i + 1}", PRIVATE, az, block)
                if nat_gateways:
                    # Private subnets share NAT gateways round-robin when there are fewer than AZs
                    nat = nat_gateways[i % len(nat_gateways)]
                    graph.add(
                        DefaultRoute(
                            node_id=f"{subnet.node_id}/DefaultRoute",
                            route_table=table.ref,
                            nat_gateway=nat.ref,
                        )
                    )
                private_subnets.append(subnet)
                private_tables.append(table)

            target_group = self._add_web_tier(network, config, public_subnets, private_subnets)

        logger.info(
            "network_defined",
            network=config.name,
            cidr=config.cidr,
            azs=len(azs),
            nodes=len(self.graph) - before,
        )
        return NetworkHandle(
            name=config.name,
            network=network.ref,
            cidr=config.network,
            target_group=target_group.ref,
            private_subnets=tuple(private_subnets),
            private_route_tables=tuple(private_tables),
        )

    def _add_subnet(
        self, network: Network, name: str, tier: str, az: str, block: IPv4Network
    ) -> tuple[Subnet, RouteTable]:
        subnet = self.graph.add(
            Subnet(
                node_id=f"{network.node_id}/{name}",
                network=network.ref,
                cidr=str(block),
                availability_zone=az,
                tier=tier,
                map_public_ip_on_launch=tier == PUBLIC,
            )
        )
        table = self.graph.add(RouteTable(node_id=f"{subnet.node_id}/RouteTable", subnet=subnet.ref))
        return subnet, table

    def _add_web_tier(
        self,
        network: Network,
        config: NetworkConfig,
        public_subnets: list[Subnet],
        private_subnets: list[Subnet],
    ) -> TargetGroup:
        prefix = config.name
        target_group = self.graph.add(
            TargetGroup(
                node_id=f"{prefix}/TargetGroup",
                network=network.ref,
                protocol=config.listener.protocol,
                port=config.listener.port,
            )
        )

        lb_subnets = public_subnets if config.internet_facing else private_subnets
        load_balancer = self.graph.add(
            LoadBalancer(
                node_id=f"{prefix}/LoadBalancer",
                network=network.ref,
                subnets=tuple(subnet.ref for subnet in lb_subnets),
                scheme="internet-facing" if config.internet_facing else "internal",
            )
        )
        self.graph.add(
            Listener(
                node_id=f"{load_balancer.node_id}/Listener",
                load_balancer=load_balancer.ref,
                default_target_group=target_group.ref,
                protocol=config.listener.protocol,
                port=config.listener.port,
            )
        )

        scaling = config.scaling
        group = self.graph.add(
            ScalingGroup(
                node_id=f"{prefix}/ScalingGroup",
                network=network.ref,
                subnets=tuple(subnet.ref for subnet in private_subnets),
                min_capacity=scaling.min_capacity,
                desired_capacity=scaling.desired_capacity,
                max_capacity=scaling.max_capacity,
                machine_image=config.launch.machine_image,
                instance_type=config.launch.instance_type,
                user_data=config.launch.user_data,
            )
        )
        self.graph.add(
            ScalingPolicy(
                node_id=f"{group.node_id}/CpuPolicy",
                scaling_group=group.ref,
                target_value=config.cpu_target_percent,
            )
        )
        self.graph.add(
            TargetGroupAttachment(
                node_id=f"{group.node_id}/TargetGroupAttachment",
                scaling_group=group.ref,
                target_group=target_group.ref,
            )
        )
        return target_group
