"""
Introspection of reference markers on node classes.

Key functions:

- `get_refs`: Extract all reference fields from a node class
- `iter_references`: Walk the edges of a node instance

Example:
    Extracting references from a class::

        from topoplan import get_refs
        from topoplan.nodes import Subnet

        refs = get_refs(Subnet)
        print(refs["network"].target)  # <class 'topoplan.nodes.Network'>
"""

from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Union, get_args, get_origin, get_type_hints

from topoplan._types import Attr, ContextRef, Ref, RefList

__all__ = [
    "RefInfo",
    "get_refs",
    "iter_references",
]


@dataclass(frozen=True)
class RefInfo:
    """Metadata about a reference field.

    Attributes:
        field: The name of the field containing the reference.
        target: The referenced node class. For `ContextRef`, this is `type(None)`.
        attr: The attribute name for `Attr` types, or the context value name
            for `ContextRef`. None for other reference types.
        is_list: True if the field is a `RefList`.
        is_optional: True if the reference is optional (`Ref[T] | None`).
        is_context: True if the field is a `ContextRef`.

    Example::

        refs = get_refs(Route)

        assert refs["route_table"].target is RouteTable
        assert refs["peering_connection"].target is PeeringLink
        assert refs["peering_connection"].attr == "connection_id"
    """

    field: str
    target: type
    attr: str | None = None
    is_list: bool = False
    is_optional: bool = False
    is_context: bool = False


@lru_cache(maxsize=None)
def get_refs(cls: type) -> dict[str, RefInfo]:
    """Extract reference information from a class.

    Analyzes the type hints of a class (including inherited ones) and
    returns the fields annotated with `Ref`, `Attr`, `RefList` or
    `ContextRef`, optionally wrapped in `| None`.

    Results are cached per class; callers must not mutate the returned dict.

    Args:
        cls: The class to analyze, normally a `ResourceNode` subclass.

    Returns:
        A dictionary mapping field names to `RefInfo` objects, in field
        declaration order. Fields without reference types are not included.
    """
    refs: dict[str, RefInfo] = {}
    hints = get_type_hints(cls, include_extras=True)

    for name, hint in hints.items():
        info = _analyze_type(name, hint)
        if info is not None:
            refs[name] = info

    return refs


def iter_references(node: Any) -> Iterator[tuple[RefInfo, Any]]:
    """Yield `(info, value)` for every graph edge held by a node instance.

    List fields yield one pair per element; optional fields that are unset
    yield nothing. Context references are skipped since they do not point
    at other nodes.
    """
    for name, info in get_refs(type(node)).items():
        if info.is_context:
            continue
        value = getattr(node, name)
        if value is None:
            continue
        if info.is_list:
            for item in value:
                yield info, item
        else:
            yield info, value


def _get_origin(hint: Any) -> Any:
    """Get the origin of a type hint, handling custom _GenericAlias."""
    origin = get_origin(hint)
    if origin is not None:
        return origin
    # Our markers are not typing generics, so get_origin does not see them
    if hasattr(hint, "__origin__"):
        return hint.__origin__
    return None


def _get_args(hint: Any) -> tuple[Any, ...]:
    """Get the type arguments of a type hint, handling custom _GenericAlias."""
    args = get_args(hint)
    if args:
        return args
    if hasattr(hint, "__args__"):
        result: tuple[Any, ...] = hint.__args__
        return result
    return ()


def _literal_value(value: Any) -> Any:
    """Unwrap `Literal["name"]` to `"name"`; return anything else unchanged."""
    if _get_origin(value) is not None:
        literal_args = _get_args(value)
        if literal_args:
            return literal_args[0]
    return value


def _analyze_type(field: str, hint: Any) -> RefInfo | None:
    """Analyze a type hint and return RefInfo if it's a reference type."""
    origin = _get_origin(hint)
    args = _get_args(hint)

    if origin is Union:
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1:
            inner_info = _analyze_type(field, non_none_args[0])
            if inner_info is not None:
                return RefInfo(
                    field=inner_info.field,
                    target=inner_info.target,
                    attr=inner_info.attr,
                    is_list=inner_info.is_list,
                    is_optional=True,
                    is_context=inner_info.is_context,
                )
        return None

    if origin is Ref:
        if args:
            return RefInfo(field=field, target=args[0])
        return None

    if origin is Attr:
        if len(args) >= 2:
            return RefInfo(field=field, target=args[0], attr=_literal_value(args[1]))
        return None

    if origin is RefList:
        if args:
            return RefInfo(field=field, target=args[0], is_list=True)
        return None

    if origin is ContextRef:
        if args:
            return RefInfo(
                field=field,
                target=type(None),
                attr=_literal_value(args[0]),
                is_context=True,
            )
        return None

    return None
