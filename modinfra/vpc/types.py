"""Configuration and result types for the VPC component."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VpcArgs:
    """
    Arguments for VpcComponent.

    Fields left as None fall back to VPC_DEFAULTS.
    """

    # Name prefix for every resource
    name: str
    cidr_block: str | None = None
    enable_dns_hostnames: bool | None = None
    enable_dns_support: bool | None = None
    enable_nat_gateway: bool | None = None
    # One NAT gateway per zone instead of a single shared one
    multi_az_nat_gateway: bool | None = None
    availability_zone_count: int | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class SubnetAllocation:
    """Address blocks for each tier, ordered by zone index."""

    public_subnets: tuple[str, ...]
    private_subnets: tuple[str, ...]


@dataclass(frozen=True)
class SubnetConfig:
    """One declared subnet: its block, zone token and tier."""

    cidr_block: str
    availability_zone: str
    is_public: bool


@dataclass(frozen=True)
class SecurityGroupRule:
    protocol: str
    from_port: int
    to_port: int
    cidr_blocks: tuple[str, ...]
