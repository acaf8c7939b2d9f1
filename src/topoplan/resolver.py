"""
Reference resolver.

Turns the symbolic references held by nodes into the identifiers written
into the plan, and checks that the graph they describe is acyclic.

A plain reference resolves to the target's resource id. An attribute
reference resolves to a deferred token, `${<resource id>.<attr>}`, since the
attribute only exists once the backend has created the target; the token
still makes the target a dependency of the referring node.
"""

from collections.abc import Mapping
from typing import Any

from topoplan._introspection import iter_references
from topoplan.errors import CyclicReferenceError, UnresolvedDependencyError
from topoplan.graph import GraphSnapshot
from topoplan.nodes import Reference, ResourceNode

__all__ = ["ReferenceResolver", "deferred_token"]


def deferred_token(node_id: str, attr: str) -> str:
    return "${" + f"{node_id}.{attr}" + "}"


class ReferenceResolver:
    """Resolves references against one immutable graph snapshot."""

    def __init__(self, snapshot: GraphSnapshot, context: Mapping[str, Any] | None = None) -> None:
        self.snapshot = snapshot
        self.context = dict(context or {})

    def resolve(self, reference: Reference) -> str:
        """Return the concrete identifier a reference stands for.

        Raises:
            UnresolvedDependencyError: If the target is not in the graph, or
                does not expose the referenced attribute.
        """
        target = self.snapshot.get(reference.target)
        if target is None:
            raise UnresolvedDependencyError(reference, "no such node in the graph")
        if reference.attr is None:
            return target.node_id
        if reference.attr not in target.attributes:
            raise UnresolvedDependencyError(
                reference, f"{target.resource_type} does not expose {reference.attr!r}"
            )
        return deferred_token(target.node_id, reference.attr)

    def resolve_context(self, name: str) -> Any:
        """Return a context value such as the region.

        Raises:
            UnresolvedDependencyError: If the context has no such value.
        """
        try:
            return self.context[name]
        except KeyError:
            raise UnresolvedDependencyError(f"context value {name!r}", "not provided") from None

    def dependencies(self, node: ResourceNode) -> tuple[str, ...]:
        """Ids of the nodes `node` references, unique, in field order."""
        seen: dict[str, None] = {}
        for _, reference in iter_references(node):
            seen.setdefault(reference.target, None)
        return tuple(seen)

    def check_acyclic(self) -> None:
        """Raise `CyclicReferenceError` if any reference chain loops back.

        References to nodes outside the snapshot are ignored here; `resolve`
        reports them.
        """
        done: set[str] = set()

        for root in self.snapshot:
            if root.node_id in done:
                continue
            # Iterative DFS; `path` holds the ids on the current chain
            path: list[str] = [root.node_id]
            on_path: set[str] = {root.node_id}
            stack = [iter(self.dependencies(root))]
            while stack:
                next_id = next(stack[-1], None)
                if next_id is None:
                    stack.pop()
                    finished = path.pop()
                    on_path.discard(finished)
                    done.add(finished)
                    continue
                if next_id in on_path:
                    start = path.index(next_id)
                    raise CyclicReferenceError(path[start:] + [next_id])
                if next_id in done or next_id not in self.snapshot:
                    continue
                node = self.snapshot.get(next_id)
                path.append(next_id)
                on_path.add(next_id)
                stack.append(iter(self.dependencies(node)))
