"""
Peering planner.

Connects two built networks with a PeeringLink and one Route per private
subnet per direction. Peering is always direct: a mesh of N networks needs
N*(N-1)/2 links and no transitive routes are computed.

Re-peering a pair that is already linked, in either argument order, raises
`DuplicateLinkError` and leaves the graph unchanged.
"""

from collections.abc import Sequence
from itertools import combinations

from topoplan._logging import get_logger
from topoplan.builder import NetworkHandle
from topoplan.cidr import overlaps
from topoplan.errors import DuplicateLinkError, OverlapError, UnresolvedDependencyError
from topoplan.graph import ResourceGraph
from topoplan.nodes import PeeringLink, Route, RouteTable

__all__ = ["PeeringPlanner"]

logger = get_logger(__name__)


class PeeringPlanner:
    """Adds peering links and their routes to a shared resource graph."""

    def __init__(self, graph: ResourceGraph) -> None:
        self.graph = graph

    def find_link(self, a: NetworkHandle, b: NetworkHandle) -> PeeringLink | None:
        """Return the link between two networks, in either direction, if any."""
        pair = frozenset((a.network.target, b.network.target))
        for link in self.graph.nodes_of_type(PeeringLink):
            if link.pair == pair:
                return link
        return None

    def peer(self, a: NetworkHandle, b: NetworkHandle) -> PeeringLink:
        """Link networks `a` and `b` and route each one's private subnets to the other.

        Raises:
            OverlapError: If the CIDR blocks overlap (including a == b).
            DuplicateLinkError: If the pair is already linked.
            UnresolvedDependencyError: If either network is not in this graph.
        """
        with self.graph.transaction():
            link, routes = self._link(a, b)
        self._log_link(link, a, b, routes)
        return link

    def mesh(self, handles: Sequence[NetworkHandle]) -> list[PeeringLink]:
        """Peer every unordered pair of `handles`, in argument order.

        All links are added or, if any pair fails, none of them.
        """
        with self.graph.transaction():
            planned = [(self._link(a, b), a, b) for a, b in combinations(handles, 2)]
        for (link, routes), a, b in planned:
            self._log_link(link, a, b, routes)
        return [link for (link, _), _, _ in planned]

    def _link(self, a: NetworkHandle, b: NetworkHandle) -> tuple[PeeringLink, int]:
        if overlaps(a.cidr, b.cidr):
            raise OverlapError(str(a.cidr), str(b.cidr))

        existing = self.find_link(a, b)
        if existing is not None:
            raise DuplicateLinkError(a.name, b.name, existing.node_id)

        for handle in (a, b):
            if handle.network.target not in self.graph:
                raise UnresolvedDependencyError(handle.network, "network is not part of this graph")

        # Names never contain "/", so these ids cannot clash with each other
        # or with the ids the builder assigns.
        link = self.graph.add(
            PeeringLink(
                node_id=f"{a.name}/Peering/{b.name}",
                requester=a.network,
                accepter=b.network,
                requester_cidr=str(a.cidr),
                accepter_cidr=str(b.cidr),
            )
        )
        routes = self._add_routes(link, a.private_route_tables, b)
        routes += self._add_routes(link, b.private_route_tables, a)
        return link, routes

    def _log_link(self, link: PeeringLink, a: NetworkHandle, b: NetworkHandle, routes: int) -> None:
        logger.info(
            "peering_planned",
            link=link.node_id,
            requester=a.name,
            accepter=b.name,
            routes=routes,
        )

    def _add_routes(
        self, link: PeeringLink, tables: Sequence[RouteTable], peer: NetworkHandle
    ) -> int:
        for table in tables:
            self.graph.add(
                Route(
                    node_id=f"{table.subnet.target}/PeerRoute/{peer.name}",
                    route_table=table.ref,
                    destination_cidr=str(peer.cidr),
                    peering_connection=link.attr("connection_id"),
                )
            )
        return len(tables)
