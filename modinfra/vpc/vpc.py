"""
VPC component - a multi-AZ network with public and private subnets.

Declares the VPC with CloudFormation-level (L1) resources so that every
address block comes from calculate_subnet_cidrs rather than from CDK's own
subnet planner:

- Public subnets routed through an internet gateway
- Private subnets routed through one shared NAT gateway, or one per zone
- One route table per private subnet so per-zone NAT routing can be switched on later
- Every resource tagged for auditing and cost tracking
"""

import ipaddress
from collections.abc import Sequence

from aws_cdk import Annotations, Fn, Tags
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ssm as ssm
from constructs import Construct

from modinfra.exceptions import VpcConfigurationError
from modinfra.logging import get_logger
from modinfra.merge import merge_config, merge_tags
from modinfra.vpc.defaults import (
    DEFAULT_EGRESS_RULES,
    DEFAULT_INGRESS_RULES,
    DEFAULT_TAGS,
    VPC_DEFAULTS,
    calculate_subnet_cidrs,
)
from modinfra.vpc.types import SecurityGroupRule, SubnetConfig, VpcArgs

logger = get_logger(__name__)

# Largest zone count for which public and private blocks stay disjoint
MAX_AVAILABILITY_ZONES = 10

ANY_IPV4 = "0.0.0.0/0"


def join_ids(values: Sequence[str]) -> str | None:
    """Comma-join resource ids or tokens; None for an empty list, which Fn.join rejects."""
    if not values:
        return None
    return Fn.join(",", list(values))


class VpcComponent(Construct):
    """
    Secure VPC with public/private subnets, NAT gateways and routing.

    Attributes:
        vpc: The CfnVPC resource
        vpc_id: VPC id token
        public_subnets / private_subnets: CfnSubnet per zone, in zone order
        internet_gateway: The CfnInternetGateway
        nat_gateways: CfnNatGateway list, or None when NAT is disabled
        route_tables: {"public": CfnRouteTable, "private": [CfnRouteTable, ...]}
        subnet_configs: SubnetConfig for every declared subnet
    """

    def __init__(self, scope: Construct, construct_id: str, args: VpcArgs) -> None:
        super().__init__(scope, construct_id)

        self.config = merge_config(VPC_DEFAULTS, args)
        name = self.config.name
        cidr_block = self.config.cidr_block
        az_count = self.config.availability_zone_count

        self._validate(cidr_block, az_count)

        for key, value in merge_tags(DEFAULT_TAGS, self.config.tags).items():
            Tags.of(self).add(key, value)

        self.vpc = ec2.CfnVPC(
            self,
            "Vpc",
            cidr_block=cidr_block,
            enable_dns_hostnames=self.config.enable_dns_hostnames,
            enable_dns_support=self.config.enable_dns_support,
        )
        self._name(self.vpc, f"{name}-vpc")
        self.vpc_id = self.vpc.ref

        allocation = calculate_subnet_cidrs(cidr_block, az_count)
        logger.info(
            "vpc_subnets_allocated",
            construct=self,
            cidr_block=cidr_block,
            availability_zone_count=az_count,
            public_subnets=list(allocation.public_subnets),
            private_subnets=list(allocation.private_subnets),
        )

        # Internet gateway for public subnets
        self.internet_gateway = ec2.CfnInternetGateway(self, "InternetGateway")
        self._name(self.internet_gateway, f"{name}-igw")
        self._gateway_attachment = ec2.CfnVPCGatewayAttachment(
            self,
            "InternetGatewayAttachment",
            vpc_id=self.vpc.ref,
            internet_gateway_id=self.internet_gateway.ref,
        )

        self.subnet_configs: list[SubnetConfig] = []
        self.public_subnets = [
            self._create_subnet(i, cidr, is_public=True)
            for i, cidr in enumerate(allocation.public_subnets)
        ]
        self.private_subnets = [
            self._create_subnet(i, cidr, is_public=False)
            for i, cidr in enumerate(allocation.private_subnets)
        ]
        self.public_subnet_ids = [subnet.ref for subnet in self.public_subnets]
        self.private_subnet_ids = [subnet.ref for subnet in self.private_subnets]

        self.nat_gateways = self._create_nat_gateways()

        # Public routing: one table shared by all public subnets
        public_route_table = ec2.CfnRouteTable(self, "PublicRouteTable", vpc_id=self.vpc.ref)
        self._name(public_route_table, f"{name}-public-rt")
        public_route = ec2.CfnRoute(
            self,
            "PublicRoute",
            route_table_id=public_route_table.ref,
            destination_cidr_block=ANY_IPV4,
            gateway_id=self.internet_gateway.ref,
        )
        public_route.add_dependency(self._gateway_attachment)

        for i, subnet in enumerate(self.public_subnets):
            ec2.CfnSubnetRouteTableAssociation(
                self,
                f"PublicRouteTableAssociation{i}",
                subnet_id=subnet.ref,
                route_table_id=public_route_table.ref,
            )

        # Private routing: one table per subnet
        private_route_tables = []
        for i, subnet in enumerate(self.private_subnets):
            route_table = ec2.CfnRouteTable(self, f"PrivateRouteTable{i}", vpc_id=self.vpc.ref)
            self._name(route_table, f"{name}-private-rt-{i}")

            if self.nat_gateways:
                nat_index = i if self.config.multi_az_nat_gateway else 0
                ec2.CfnRoute(
                    self,
                    f"PrivateRoute{i}",
                    route_table_id=route_table.ref,
                    destination_cidr_block=ANY_IPV4,
                    nat_gateway_id=self.nat_gateways[nat_index].ref,
                )

            ec2.CfnSubnetRouteTableAssociation(
                self,
                f"PrivateRouteTableAssociation{i}",
                subnet_id=subnet.ref,
                route_table_id=route_table.ref,
            )
            private_route_tables.append(route_table)

        self.route_tables = {
            "public": public_route_table,
            "private": private_route_tables,
        }

        logger.info(
            "vpc_created",
            construct=self,
            nat_gateway_count=len(self.nat_gateways or []),
            route_table_count=1 + len(private_route_tables),
        )

    def _validate(self, cidr_block: str, az_count: int) -> None:
        errors = []
        try:
            network = ipaddress.IPv4Network(cidr_block, strict=False)
        except ValueError as exc:
            network = None
            errors.append(f"cidr_block {cidr_block!r} is not an IPv4 network ({exc})")

        if not 0 <= az_count <= MAX_AVAILABILITY_ZONES:
            errors.append(
                f"availability_zone_count must be between 0 and {MAX_AVAILABILITY_ZONES}, "
                f"got {az_count}"
            )

        if errors:
            raise VpcConfigurationError(f"Invalid VPC configuration: {', '.join(errors)}", errors)

        if network is not None and network.prefixlen != 16:
            Annotations.of(self).add_warning_v2(
                "modinfra:vpc-prefix-length",
                f"Subnets are planned as /24 blocks inside the first two octets of "
                f"{cidr_block}; a /16 block is expected",
            )

    def _create_subnet(self, index: int, cidr_block: str, *, is_public: bool) -> ec2.CfnSubnet:
        tier = "public" if is_public else "private"
        availability_zone = Fn.select(index, Fn.get_azs())

        subnet = ec2.CfnSubnet(
            self,
            f"{tier.title()}Subnet{index}",
            vpc_id=self.vpc.ref,
            cidr_block=cidr_block,
            availability_zone=availability_zone,
            map_public_ip_on_launch=is_public,
        )
        self._name(subnet, f"{self.config.name}-{tier}-{index}")
        Tags.of(subnet).add("Type", tier)

        self.subnet_configs.append(
            SubnetConfig(
                cidr_block=cidr_block,
                availability_zone=availability_zone,
                is_public=is_public,
            )
        )
        return subnet

    def _create_nat_gateways(self) -> list[ec2.CfnNatGateway] | None:
        if not self.config.enable_nat_gateway or not self.public_subnets:
            return None

        nat_count = len(self.public_subnets) if self.config.multi_az_nat_gateway else 1
        nat_gateways = []
        for i in range(nat_count):
            eip = ec2.CfnEIP(self, f"NatEip{i}", domain="vpc")
            self._name(eip, f"{self.config.name}-nat-eip-{i}")

            subnet = self.public_subnets[min(i, len(self.public_subnets) - 1)]
            nat_gateway = ec2.CfnNatGateway(
                self,
                f"NatGateway{i}",
                allocation_id=eip.attr_allocation_id,
                subnet_id=subnet.ref,
            )
            nat_gateway.add_dependency(self._gateway_attachment)
            self._name(nat_gateway, f"{self.config.name}-nat-{i}")
            nat_gateways.append(nat_gateway)

        return nat_gateways

    @staticmethod
    def _name(resource: Construct, value: str) -> None:
        Tags.of(resource).add("Name", value)

    def export_to_ssm(self, prefix: str) -> list[ssm.StringParameter]:
        """
        Publish network identifiers as SSM parameters for other stacks.

        Writes {prefix}/network/vpc-id, public-subnet-ids, private-subnet-ids
        and availability-zones (comma-separated). List parameters are skipped
        when the VPC has no subnets, since SSM refuses empty values.
        """
        values = {
            "VpcIdParameter": ("vpc-id", self.vpc_id),
            "PublicSubnetIdsParameter": ("public-subnet-ids", join_ids(self.public_subnet_ids)),
            "PrivateSubnetIdsParameter": (
                "private-subnet-ids",
                join_ids(self.private_subnet_ids),
            ),
            "AvailabilityZonesParameter": (
                "availability-zones",
                join_ids([c.availability_zone for c in self.subnet_configs if c.is_public]),
            ),
        }

        parameters = []
        for construct_id, (suffix, value) in values.items():
            if value is None:
                continue
            parameters.append(
                ssm.StringParameter(
                    self,
                    construct_id,
                    parameter_name=f"{prefix}/network/{suffix}",
                    string_value=value,
                )
            )
        return parameters

    def create_security_group(
        self,
        construct_id: str,
        description: str,
        *,
        ingress: Sequence[SecurityGroupRule] = DEFAULT_INGRESS_RULES,
        egress: Sequence[SecurityGroupRule] = DEFAULT_EGRESS_RULES,
    ) -> ec2.CfnSecurityGroup:
        """
        Declare a security group in this VPC.

        With the default rules nothing may connect in and everything may
        connect out.
        """
        group = ec2.CfnSecurityGroup(
            self,
            construct_id,
            group_description=description,
            vpc_id=self.vpc.ref,
            security_group_ingress=[
                ec2.CfnSecurityGroup.IngressProperty(
                    ip_protocol=rule.protocol,
                    from_port=rule.from_port,
                    to_port=rule.to_port,
                    cidr_ip=cidr,
                )
                for rule in ingress
                for cidr in rule.cidr_blocks
            ],
            security_group_egress=[
                ec2.CfnSecurityGroup.EgressProperty(
                    ip_protocol=rule.protocol,
                    from_port=rule.from_port,
                    to_port=rule.to_port,
                    cidr_ip=cidr,
                )
                for rule in egress
                for cidr in rule.cidr_blocks
            ],
        )
        self._name(group, f"{self.config.name}-{construct_id.lower()}")
        return group
