"""
Network stack - VPC, subnets, routing and shared network exports.
"""

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from modinfra.vpc import VpcArgs, VpcComponent, join_ids


class NetworkStack(Stack):
    """Creates the foundational VPC and publishes its identifiers to SSM."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        vpc_cidr: str | None = None,
        availability_zone_count: int | None = None,
        multi_az_nat_gateway: bool | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        resource_prefix = self.node.try_get_context("resource_prefix") or "modinfra"

        self.network = VpcComponent(
            self,
            "Vpc",
            VpcArgs(
                name=resource_prefix,
                cidr_block=vpc_cidr,
                availability_zone_count=availability_zone_count,
                multi_az_nat_gateway=multi_az_nat_gateway,
            ),
        )

        # Default-deny group for application workloads
        self.app_security_group = self.network.create_security_group(
            "AppSecurityGroup", f"{resource_prefix} application workloads"
        )

        self.network.export_to_ssm(f"/{resource_prefix}")

        CfnOutput(
            self,
            "VpcId",
            value=self.network.vpc_id,
            description="VPC ID",
            export_name=f"{resource_prefix.title()}VpcId",
        )
        private_subnet_ids = join_ids(self.network.private_subnet_ids)
        if private_subnet_ids is not None:
            CfnOutput(
                self,
                "PrivateSubnetIds",
                value=private_subnet_ids,
                description="Private subnet IDs (comma-separated)",
            )
