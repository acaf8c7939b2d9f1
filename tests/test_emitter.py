"""Tests for the plan emitter."""

import json

import pytest

from topoplan import (
    CyclicReferenceError,
    OpType,
    PlanEmitter,
    ResourceGraph,
    Topology,
    UnresolvedDependencyError,
    emit,
    iter_references,
)
from topoplan.nodes import Network, Reference, RouteTable, Subnet

CONTEXT = {"region": "us-east-1"}


def subnet(node_id: str, network_id: str) -> Subnet:
    return Subnet(
        node_id=node_id,
        network=Reference(network_id),
        cidr="10.0.0.0/24",
        availability_zone="us-east-1a",
        tier="private",
    )


class TestOrdering:
    def test_referenced_nodes_come_first(self, builder, graph, network_config) -> None:
        """Every node is emitted after every node it references."""
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        builder.define_network(network_config("VPC2", "10.7.11.0/24"))
        plan = emit(graph, CONTEXT)

        position = {node_id: i for i, node_id in enumerate(plan.resource_ids)}
        resolver_deps = {
            node.node_id: [ref.target for ref in _edges(node)] for node in graph
        }
        for node_id, dependencies in resolver_deps.items():
            for dependency in dependencies:
                assert position[dependency] < position[node_id]

    def test_forward_reference_reordered(self) -> None:
        """A node registered before its target is still emitted after it."""
        graph = ResourceGraph()
        graph.add(subnet("s", "VPC1"))
        graph.add(Network(node_id="VPC1", cidr="10.0.0.0/16", availability_zones=("a",)))
        assert emit(graph, CONTEXT).resource_ids == ("VPC1", "s")

    def test_ties_broken_by_rank_then_registration(self) -> None:
        graph = ResourceGraph()
        graph.add(Network(node_id="n1", cidr="10.1.0.0/16", availability_zones=("a",)))
        graph.add(subnet("n1/s1", "n1"))
        graph.add(RouteTable(node_id="n1/s1/rt", subnet=Reference("n1/s1")))
        graph.add(Network(node_id="n2", cidr="10.2.0.0/16", availability_zones=("a",)))
        graph.add(subnet("n2/s1", "n2"))
        graph.add(subnet("n1/s2", "n1"))

        assert emit(graph, CONTEXT).resource_ids == (
            "n1",
            "n2",
            "n1/s1",
            "n2/s1",
            "n1/s2",
            "n1/s1/rt",
        )

    def test_resource_type_grouping(self, topology, network_config) -> None:
        a = topology.define_network(network_config("VPC1", "10.42.11.0/24"))
        b = topology.define_network(network_config("VPC2", "10.7.11.0/24"))
        topology.peer(a, b)

        types = [operation.resource_type for operation in topology.emit()]
        expected_groups = [
            {"Network"},
            {"FlowLog", "InternetGateway", "Subnet"},
            {"RouteTable", "NatGateway"},
            {"DefaultRoute"},
            {"TargetGroup", "LoadBalancer"},
            {"Listener"},
            {"ScalingGroup"},
            {"ScalingPolicy", "TargetGroupAttachment"},
            {"PeeringLink"},
            {"Route"},
        ]
        rank = {name: i for i, group in enumerate(expected_groups) for name in group}
        assert [rank[t] for t in types] == sorted(rank[t] for t in types)

    def test_deterministic(self, network_config) -> None:
        """Two identical constructions emit identical plans."""

        def build():
            topology = Topology(availability_zones=["a", "b"], context=CONTEXT)
            a = topology.define_network(network_config("VPC1", "10.42.11.0/24"))
            b = topology.define_network(network_config("VPC2", "10.7.11.0/24"))
            topology.peer(a, b)
            return topology.emit().to_dicts()

        assert build() == build()


class TestPlan:
    def test_restartable(self, builder, graph, network_config) -> None:
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        plan = emit(graph, CONTEXT)
        assert list(plan) == list(plan)
        assert len(plan) == len(graph)

    def test_lazy(self, builder, graph, network_config) -> None:
        """Operations are produced one at a time."""
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        iterator = iter(emit(graph, CONTEXT))
        first = next(iterator)
        assert first.resource_id == "VPC1"

    def test_snapshot_isolated_from_later_changes(self, builder, graph, network_config) -> None:
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        plan = emit(graph, CONTEXT)
        size = len(plan)
        builder.define_network(network_config("VPC2", "10.7.11.0/24"))
        assert len(list(plan)) == size

    def test_operation_records(self, builder, graph, network_config) -> None:
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        operations = {op.resource_id: op for op in emit(graph, CONTEXT)}

        network = operations["VPC1"]
        assert network.op_type is OpType.CREATE
        assert network.resource_type == "Network"
        assert network.parameters["cidr"] == "10.42.11.0/24"
        assert network.parameters["region"] == "us-east-1"
        assert network.parameters["availability_zones"] == ["us-east-1a", "us-east-1b", "us-east-1c"]
        assert "node_id" not in network.parameters

        lb = operations["VPC1/LoadBalancer"]
        assert lb.parameters["network"] == "VPC1"
        assert lb.parameters["subnets"] == [
            "VPC1/PublicSubnet1",
            "VPC1/PublicSubnet2",
            "VPC1/PublicSubnet3",
        ]

        public_route = operations["VPC1/PublicSubnet1/DefaultRoute"]
        assert public_route.parameters["gateway"] == "VPC1/InternetGateway"
        assert public_route.parameters["nat_gateway"] is None

        group = operations["VPC1/ScalingGroup"]
        assert group.parameters["user_data"] == [
            "yum update -y",
            "yum install -y httpd",
            "systemctl start httpd",
        ]

    def test_json(self, builder, graph, network_config) -> None:
        builder.define_network(network_config("VPC1", "10.42.11.0/24"))
        records = json.loads(emit(graph, CONTEXT).to_json())
        assert records[0] == {
            "op_type": "create",
            "resource_type": "Network",
            "resource_id": "VPC1",
            "parameters": {
                "cidr": "10.42.11.0/24",
                "availability_zones": ["us-east-1a", "us-east-1b", "us-east-1c"],
                "region": "us-east-1",
                "enable_dns_support": True,
                "enable_dns_hostnames": True,
            },
        }

    def test_context_from_settings(self, builder, graph, monkeypatch) -> None:
        monkeypatch.setenv("TOPOPLAN_REGION", "ap-southeast-2")
        builder.define_network({"name": "VPC1", "cidr": "10.0.0.0/16"})
        network = next(iter(PlanEmitter().emit(graph)))
        assert network.parameters["region"] == "ap-southeast-2"


class TestEmitFailures:
    def test_unresolved_reference(self) -> None:
        graph = ResourceGraph()
        graph.add(subnet("s", "missing"))
        with pytest.raises(UnresolvedDependencyError):
            emit(graph, CONTEXT)

    def test_missing_context(self) -> None:
        graph = ResourceGraph()
        graph.add(Network(node_id="n", cidr="10.0.0.0/16", availability_zones=("a",)))
        with pytest.raises(UnresolvedDependencyError):
            emit(graph, {})

    def test_cycle(self) -> None:
        graph = ResourceGraph()
        graph.add(RouteTable(node_id="a", subnet=Reference("b")))
        graph.add(RouteTable(node_id="b", subnet=Reference("a")))
        with pytest.raises(CyclicReferenceError):
            emit(graph, CONTEXT)


def _edges(node):
    return [reference for _, reference in iter_references(node)]
