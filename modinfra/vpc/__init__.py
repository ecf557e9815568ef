from modinfra.vpc.defaults import (
    DEFAULT_EGRESS_RULES,
    DEFAULT_INGRESS_RULES,
    DEFAULT_TAGS,
    PRIVATE_SUBNET_OFFSET,
    VPC_DEFAULTS,
    calculate_subnet_cidrs,
)
from modinfra.vpc.types import SecurityGroupRule, SubnetAllocation, SubnetConfig, VpcArgs
from modinfra.vpc.vpc import VpcComponent, join_ids

__all__ = [
    "DEFAULT_EGRESS_RULES",
    "DEFAULT_INGRESS_RULES",
    "DEFAULT_TAGS",
    "PRIVATE_SUBNET_OFFSET",
    "VPC_DEFAULTS",
    "SecurityGroupRule",
    "SubnetAllocation",
    "SubnetConfig",
    "VpcArgs",
    "VpcComponent",
    "calculate_subnet_cidrs",
    "join_ids",
]
