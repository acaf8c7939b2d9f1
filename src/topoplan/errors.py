"""
Exception taxonomy.

Every error is raised synchronously by the call that detects it, and the
resource graph is left as it was before that call.
"""

from typing import Any

__all__ = [
    "TopologyError",
    "ConfigurationError",
    "OverlapError",
    "DuplicateLinkError",
    "CyclicReferenceError",
    "UnresolvedDependencyError",
]


class TopologyError(Exception):
    """Base class for all topoplan errors."""


class ConfigurationError(TopologyError):
    """Invalid input to the topology builder or a topology document."""


class OverlapError(TopologyError):
    """Two networks to be peered have overlapping CIDR blocks."""

    def __init__(self, cidr_a: str, cidr_b: str) -> None:
        self.cidr_a = cidr_a
        self.cidr_b = cidr_b
        super().__init__(f"CIDR blocks overlap: {cidr_a} and {cidr_b}")


class DuplicateLinkError(TopologyError):
    """A peering link already exists for the same unordered pair of networks."""

    def __init__(self, network_a: str, network_b: str, existing: str) -> None:
        self.networks = (network_a, network_b)
        self.existing = existing
        super().__init__(
            f"Networks {network_a!r} and {network_b!r} are already peered by {existing!r}"
        )


class CyclicReferenceError(TopologyError):
    """The resource graph contains a reference cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Reference cycle: " + " -> ".join(cycle))


class UnresolvedDependencyError(TopologyError):
    """A reference or context value could not be resolved at emission time."""

    def __init__(self, reference: Any, reason: str) -> None:
        self.reference = reference
        super().__init__(f"Cannot resolve {reference}: {reason}")
