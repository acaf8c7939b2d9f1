"""
Network configuration.

Every field of a network definition is either required or has a named
default here; nothing is left to implicit defaults further down.
`load_network_config` is the single entry point that turns caller input
into a validated `NetworkConfig`, reporting failures as `ConfigurationError`.
"""

import re
from collections.abc import Mapping
from ipaddress import IPv4Network
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from topoplan.cidr import MAX_SUBNET_PREFIX, MIN_SUBNET_PREFIX, ipv4_network
from topoplan.errors import ConfigurationError

__all__ = [
    "ListenerSpec",
    "ScalingBounds",
    "LaunchSpec",
    "NetworkConfig",
    "load_network_config",
]

# Names become part of node ids, keep them to a safe alphabet
SAFE_NAME_REGEX = re.compile(r"^[A-Za-z0-9_-]+$")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ListenerSpec(_Frozen):
    """Inbound protocol/port of the load balancer, also used by the target group."""

    protocol: Literal["HTTP", "HTTPS"] = "HTTP"
    port: int = Field(default=80, ge=1, le=65535)


class ScalingBounds(_Frozen):
    """Capacity bounds of the scaling group: 0 < min <= desired <= max."""

    min_capacity: int = Field(default=1, gt=0)
    desired_capacity: int = Field(default=1, gt=0)
    max_capacity: int = Field(default=1, gt=0)

    @model_validator(mode="after")
    def check_order(self) -> "ScalingBounds":
        if not self.min_capacity <= self.desired_capacity <= self.max_capacity:
            raise ValueError(
                "capacity must satisfy min <= desired <= max, got "
                f"min={self.min_capacity} desired={self.desired_capacity} max={self.max_capacity}"
            )
        return self


class LaunchSpec(_Frozen):
    """What the scaling group launches. `user_data` commands are opaque."""

    machine_image: str = "amazon-linux-2"
    instance_type: str = "t2.micro"
    user_data: tuple[str, ...] = ()


class NetworkConfig(_Frozen):
    """Definition of one topology unit: a network and its web tier."""

    name: str
    cidr: str
    max_azs: int = Field(default=3, ge=1)
    nat_gateways: int | None = Field(default=None, ge=0)
    flow_logs: bool = False
    subnet_cidr_mask: int | None = Field(default=None, ge=MIN_SUBNET_PREFIX, le=MAX_SUBNET_PREFIX)
    internet_facing: bool = True
    listener: ListenerSpec = Field(default_factory=ListenerSpec)
    scaling: ScalingBounds = Field(default_factory=ScalingBounds)
    launch: LaunchSpec = Field(default_factory=LaunchSpec)
    cpu_target_percent: float = Field(default=80.0, gt=0, le=100)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        if not SAFE_NAME_REGEX.match(value):
            raise ValueError(f"network name must match {SAFE_NAME_REGEX.pattern}")
        return value

    @field_validator("cidr")
    @classmethod
    def check_cidr(cls, value: str) -> str:
        return str(ipv4_network(value))

    @property
    def network(self) -> IPv4Network:
        return IPv4Network(self.cidr)


def load_network_config(data: NetworkConfig | Mapping[str, Any]) -> NetworkConfig:
    """Validate caller input into a `NetworkConfig`.

    Accepts an existing `NetworkConfig` unchanged, or a mapping with the same
    fields (nested sections as mappings).

    Raises:
        ConfigurationError: If any field is missing or invalid. The pydantic
            `ValidationError` is kept as the cause.
    """
    if isinstance(data, NetworkConfig):
        return data
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Network configuration must be a mapping, got {type(data).__name__}"
        )
    try:
        return NetworkConfig.model_validate(dict(data))
    except ValidationError as exc:
        name = data.get("name", "<unnamed>")
        raise ConfigurationError(f"Invalid configuration for network {name!r}: {exc}") from exc
