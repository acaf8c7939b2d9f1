"""
Reference markers for resource node fields.

Node classes declare their edges in the resource graph through annotations
rather than through a hand-maintained dependency list:

- `Ref[T]`: the field names another node of type T
- `Attr[T, "name"]`: the field names a backend-assigned attribute of a T node
- `RefList[T]`: the field holds an ordered list of references to T nodes
- `ContextRef["name"]`: the field is filled from the emission context

The markers only carry type information. Introspection (`get_refs`) reads
them back from the class, and the resolver and emitter use that to find
every edge of a node without knowing its concrete type.

Example:
    Declaring edges on a node::

        from dataclasses import dataclass
        from topoplan import Attr, Ref

        @dataclass(frozen=True, kw_only=True)
        class Route(ResourceNode):
            route_table: Ref[RouteTable]
            peering_connection: Attr[PeeringLink, "connection_id"]
            destination_cidr: str
"""

from typing import Any, Generic, TypeVar

__all__ = [
    "Ref",
    "Attr",
    "RefList",
    "ContextRef",
]

T = TypeVar("T")
NameT = TypeVar("NameT")


class _RefMeta(type):
    """Metaclass that enables Ref[T] subscript syntax."""

    def __getitem__(cls, item: type[T]) -> Any:
        return _GenericAlias(cls, (item,))


class Ref(Generic[T], metaclass=_RefMeta):
    """A reference to another node of type T.

    The field value is a symbolic `Reference` naming the target node id.
    Emission resolves it to the target's resource id and orders the target
    first.

    Example::

        @dataclass(frozen=True, kw_only=True)
        class Subnet(ResourceNode):
            network: Ref[Network]
            cidr: str

    See Also:
        - `Attr`: For backend-assigned attributes of the target.
        - `RefList`: For ordered lists of references.
    """

    __slots__ = ()


class _AttrMeta(type):
    """Metaclass that enables Attr[T, "name"] subscript syntax."""

    def __getitem__(cls, args: tuple[type[T], str]) -> Any:
        """Create a generic alias for Attr[T, "name"].

        Raises:
            TypeError: If args is not a tuple of exactly two elements.
        """
        if not isinstance(args, tuple) or len(args) != 2:
            raise TypeError("Attr requires exactly two arguments: Attr[T, 'name']")
        return _GenericAlias(cls, args)


class Attr(Generic[T, NameT], metaclass=_AttrMeta):
    """A reference to an attribute of a T node that the backend assigns.

    Attributes such as a peering connection id do not exist until the
    provisioning engine has created the target. Emission resolves the field
    to a deferred token and still orders the target first.

    The attribute name can be given as a string or as `Literal["name"]`.

    Example::

        @dataclass(frozen=True, kw_only=True)
        class Route(ResourceNode):
            peering_connection: Attr[PeeringLink, "connection_id"]
    """

    __slots__ = ()


class _RefListMeta(type):
    """Metaclass that enables RefList[T] subscript syntax."""

    def __getitem__(cls, item: type[T]) -> Any:
        return _GenericAlias(cls, (item,))


class RefList(Generic[T], metaclass=_RefListMeta):
    """An ordered list of references to T nodes.

    The field value is a tuple of `Reference` objects. Every element is an
    edge of the node; order is preserved in the emitted parameters.

    Example::

        @dataclass(frozen=True, kw_only=True)
        class ScalingGroup(ResourceNode):
            subnets: RefList[Subnet]
    """

    __slots__ = ()


class _ContextRefMeta(type):
    """Metaclass that enables ContextRef["name"] subscript syntax."""

    def __getitem__(cls, item: str) -> Any:
        return _GenericAlias(cls, (item,))


class ContextRef(Generic[NameT], metaclass=_ContextRefMeta):
    """A value taken from the emission context, such as the region.

    Context references are not graph edges. The field value on the node is
    ignored; the emitter substitutes the named context value.

    Example::

        @dataclass(frozen=True, kw_only=True)
        class Network(ResourceNode):
            region: ContextRef["region"] = None
    """

    __slots__ = ()


class _GenericAlias:
    """A generic alias that preserves origin and args for introspection.

    Makes `Ref[T]` and the other markers visible to `get_origin`/`get_args`
    style introspection and supports `Ref[T] | None` for optional edges.
    """

    __slots__ = ("__origin__", "__args__")

    def __init__(self, origin: type, args: tuple[Any, ...]) -> None:
        self.__origin__ = origin
        self.__args__ = args

    def __repr__(self) -> str:
        args_str = ", ".join(
            arg.__name__ if isinstance(arg, type) else repr(arg)
            for arg in self.__args__
        )
        return f"{self.__origin__.__name__}[{args_str}]"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _GenericAlias):
            return (
                self.__origin__ == other.__origin__
                and self.__args__ == other.__args__
            )
        return False

    def __hash__(self) -> int:
        return hash((self.__origin__, self.__args__))

    def __or__(self, other: Any) -> Any:
        """Support for `Ref[T] | None` syntax."""
        import typing

        return typing.Union[self, other]

    def __ror__(self, other: Any) -> Any:
        """Support for `None | Ref[T]` syntax."""
        import typing

        return typing.Union[other, self]
