"""
Secure default values for VPC configuration and the subnet address allocator.
"""

from modinfra.vpc.types import SecurityGroupRule, SubnetAllocation, VpcArgs

# Private subnets start this many /24 blocks after the public ones,
# leaving room to add public zones later.
PRIVATE_SUBNET_OFFSET = 10

VPC_DEFAULTS = VpcArgs(
    name="",
    # RFC 1918 private address space
    cidr_block="10.0.0.0/16",
    enable_dns_hostnames=True,
    enable_dns_support=True,
    enable_nat_gateway=True,
    # Single NAT gateway for cost; enable per-zone gateways for production HA
    multi_az_nat_gateway=False,
    availability_zone_count=2,
    tags={},
)

# Applied to every VPC resource for auditing and cost tracking
DEFAULT_TAGS: dict[str, str] = {
    "ModInfra:Module": "vpc",
    "ModInfra:ManagedBy": "modular-cdk-aws-framework",
    "ModInfra:SecurityLevel": "secure-by-default",
}

# No inbound traffic; all outbound traffic
DEFAULT_INGRESS_RULES: tuple[SecurityGroupRule, ...] = ()
DEFAULT_EGRESS_RULES: tuple[SecurityGroupRule, ...] = (
    SecurityGroupRule(protocol="-1", from_port=0, to_port=0, cidr_blocks=("0.0.0.0/0",)),
)


def calculate_subnet_cidrs(vpc_cidr: str, az_count: int) -> SubnetAllocation:
    """
    Split a /16 address block into one public and one private /24 per zone.

    Public zone i gets {o1}.{o2}.{i}.0/24 and private zone i gets
    {o1}.{o2}.{10 + i}.0/24, where o1 and o2 are the first two octets of
    `vpc_cidr`. Nothing is validated here: counts above 10 produce
    overlapping public and private blocks, and a non-positive count
    produces no subnets.

    Example:
        calculate_subnet_cidrs("10.0.0.0/16", 2) gives public 10.0.0.0/24 and
        10.0.1.0/24, private 10.0.10.0/24 and 10.0.11.0/24.
    """
    first, second = vpc_cidr.split(".")[:2]
    zones = range(az_count)

    public_subnets = tuple(f"{first}.{second}.{i}.0/24" for i in zones)
    private_subnets = tuple(f"{first}.{second}.{PRIVATE_SUBNET_OFFSET + i}.0/24" for i in zones)

    return SubnetAllocation(public_subnets=public_subnets, private_subnets=private_subnets)
