"""Tests for the reference marker types."""

import pytest

from topoplan import Attr, ContextRef, Ref, RefList
from topoplan.nodes import Network, PeeringLink, Subnet


class TestRef:
    """Tests for Ref[T] type."""

    def test_ref_origin_and_args(self) -> None:
        """Ref[T] should keep its origin and type argument."""
        ref_type = Ref[Network]
        assert ref_type.__origin__ is Ref
        assert ref_type.__args__ == (Network,)

    def test_ref_repr(self) -> None:
        """Ref[T] should have readable repr."""
        assert repr(Ref[Network]) == "Ref[Network]"

    def test_ref_equality(self) -> None:
        """Ref[T] should be equal to itself and differ for other targets."""
        assert Ref[Network] == Ref[Network]
        assert Ref[Network] != Ref[Subnet]

    def test_ref_hash_consistency(self) -> None:
        """Equal markers must hash equally."""
        assert hash(Ref[Network]) == hash(Ref[Network])

    def test_optional_ref(self) -> None:
        """Ref[T] | None should build a Union containing the marker."""
        optional = Ref[Network] | None
        assert Ref[Network] in optional.__args__
        assert type(None) in optional.__args__


class TestAttr:
    """Tests for Attr[T, name] type."""

    def test_attr_args(self) -> None:
        """Attr[T, name] should keep target and attribute name."""
        attr_type = Attr[PeeringLink, "connection_id"]
        assert attr_type.__origin__ is Attr
        assert attr_type.__args__ == (PeeringLink, "connection_id")

    def test_attr_requires_two_args(self) -> None:
        """Attr should require exactly two arguments."""
        with pytest.raises(TypeError):
            Attr[PeeringLink]  # type: ignore


class TestRefList:
    """Tests for RefList[T] type."""

    def test_reflist_args(self) -> None:
        """RefList[T] should keep its origin and element type."""
        reflist_type = RefList[Subnet]
        assert reflist_type.__origin__ is RefList
        assert reflist_type.__args__ == (Subnet,)


class TestContextRef:
    """Tests for ContextRef[name] type."""

    def test_contextref_args(self) -> None:
        """ContextRef[name] should keep the context value name."""
        contextref_type = ContextRef["region"]
        assert contextref_type.__origin__ is ContextRef
        assert contextref_type.__args__ == ("region",)
        assert repr(contextref_type) == "ContextRef['region']"
