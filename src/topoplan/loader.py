"""
Topology documents.

A topology document declares networks and the pairs to peer::

    region: us-east-1              # optional, overrides the emission context
    availability_zones: [us-east-1a, us-east-1b, us-east-1c]   # optional
    networks:
      - name: VPC1
        cidr: 10.42.11.0/24
        flow_logs: true
        scaling: {min_capacity: 2, desired_capacity: 3, max_capacity: 5}
      - name: VPC2
        cidr: 10.7.11.0/24
    peerings:
      - [VPC1, VPC2]

Networks are all defined before any peering is planned.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from topoplan._logging import get_logger
from topoplan.errors import ConfigurationError
from topoplan.settings import get_settings
from topoplan.topology import Topology

__all__ = ["build_topology", "load_topology"]

logger = get_logger(__name__)

_KNOWN_SECTIONS = {"region", "availability_zones", "networks", "peerings"}


def load_topology(path: str | Path) -> Topology:
    """Build a topology from a YAML document.

    Raises:
        FileNotFoundError: If the document does not exist.
        ConfigurationError: If the YAML is invalid or the document is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Topology document not found: {path}")

    try:
        with open(path, "r") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    topology = build_topology(document)
    logger.info("topology_loaded", path=str(path), networks=len(topology.networks))
    return topology


def build_topology(document: Mapping[str, Any]) -> Topology:
    """Build a topology from an already parsed document."""
    if not isinstance(document, Mapping):
        raise ConfigurationError("Topology document must be a mapping")

    unknown = set(document) - _KNOWN_SECTIONS
    if unknown:
        raise ConfigurationError(f"Unknown topology sections: {sorted(unknown)}")

    networks = document.get("networks")
    if not isinstance(networks, list) or not networks:
        raise ConfigurationError("Topology document needs a non-empty 'networks' list")

    peerings = document.get("peerings") or []
    if not isinstance(peerings, list):
        raise ConfigurationError("'peerings' must be a list of network name pairs")

    context = get_settings().context()
    if "region" in document:
        context["region"] = document["region"]

    topology = Topology(
        availability_zones=document.get("availability_zones"),
        context=context,
    )
    for network in networks:
        topology.define_network(network)

    for pair in peerings:
        if not isinstance(pair, list) or len(pair) != 2:
            raise ConfigurationError(f"Peering entry must name exactly two networks, got {pair!r}")
        topology.peer(*pair)

    return topology
