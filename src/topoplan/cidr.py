"""CIDR parsing, subnet allocation and overlap checks."""

from ipaddress import IPv4Network, ip_network
from itertools import islice

from topoplan.errors import ConfigurationError

# Smallest subnet most providers accept.
MAX_SUBNET_PREFIX = 28
MIN_SUBNET_PREFIX = 16


def ipv4_network(value: str) -> IPv4Network:
    """Parse an IPv4 CIDR block in strict form (no host bits set).

    Raises:
        ValueError: If the value is not a valid IPv4 network.
    """
    network = ip_network(value, strict=True)
    if not isinstance(network, IPv4Network):
        raise ValueError(f"only IPv4 CIDR blocks are supported, got {value!r}")
    return network


def parse_cidr(value: str) -> IPv4Network:
    """Like `ipv4_network`, reporting failures as `ConfigurationError`."""
    try:
        return ipv4_network(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed CIDR block {value!r}: {exc}") from exc


def overlaps(a: str | IPv4Network, b: str | IPv4Network) -> bool:
    """True if the two CIDR blocks share any address."""
    return _as_network(a).overlaps(_as_network(b))


def allocate_subnets(
    network: IPv4Network, count: int, prefix: int | None = None
) -> list[IPv4Network]:
    """Carve `count` consecutive, equally sized subnets out of `network`.

    With `prefix=None` the range is divided evenly: the subnet prefix is the
    smallest one that yields at least `count` blocks.

    Raises:
        ConfigurationError: If the blocks would be smaller than /28, or the
            requested prefix cannot hold `count` blocks inside `network`.
    """
    if count < 1:
        raise ConfigurationError("At least one subnet must be allocated")

    if prefix is None:
        prefix = network.prefixlen + (count - 1).bit_length()
    elif prefix < network.prefixlen:
        raise ConfigurationError(
            f"Subnet prefix /{prefix} is larger than the network {network}"
        )

    if prefix > MAX_SUBNET_PREFIX:
        raise ConfigurationError(
            f"{network} cannot hold {count} subnets of at least /{MAX_SUBNET_PREFIX}"
        )
    if 2 ** (prefix - network.prefixlen) < count:
        raise ConfigurationError(
            f"{network} cannot hold {count} subnets of size /{prefix}"
        )

    return list(islice(network.subnets(new_prefix=prefix), count))


def _as_network(value: str | IPv4Network) -> IPv4Network:
    if isinstance(value, IPv4Network):
        return value
    return parse_cidr(value)
