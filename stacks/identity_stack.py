"""
Identity stack - service roles for application compute.
"""

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from modinfra.iam import Ec2RoleConfig, IamArgs, IamComponent, LambdaRoleConfig, ServiceRoleConfig


class IdentityStack(Stack):
    """
    Creates least-privilege roles for EC2 instances and Lambda functions.

    The EC2 role may read the asset bucket; the Lambda role may write to the
    application log group.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        bucket_arn: str,
        log_group_arn: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        resource_prefix = self.node.try_get_context("resource_prefix") or "modinfra"

        self.identity = IamComponent(
            self,
            "Identity",
            IamArgs(
                name=resource_prefix,
                service_roles=ServiceRoleConfig(
                    ec2=Ec2RoleConfig(),
                    lambda_=LambdaRoleConfig(vpc_access=True),
                ),
            ),
        )

        ec2_role = f"{resource_prefix}-ec2-role"
        lambda_role = f"{resource_prefix}-lambda-role"

        self.identity.grant_s3_access(ec2_role, bucket_arn, "read")
        self.identity.grant_cloudwatch_logs_access(lambda_role, log_group_arn)

        CfnOutput(
            self,
            "Ec2RoleArn",
            value=self.identity.role_arns[ec2_role],
            description="Role assumed by application instances",
        )
        CfnOutput(
            self,
            "LambdaRoleArn",
            value=self.identity.role_arns[lambda_role],
            description="Role assumed by application functions",
        )
