"""
Storage stack - encrypted, versioned S3 bucket for application assets.
"""

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from modinfra.s3 import S3Args, S3Component


class StorageStack(Stack):
    """Creates the application asset bucket with the secure defaults."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        resource_prefix = self.node.try_get_context("resource_prefix") or "modinfra"
        bucket_name = self.node.try_get_context("bucket_name") or f"{resource_prefix}-assets"

        self.assets = S3Component(self, "Assets", S3Args(name=bucket_name))
        self.bucket_arn = self.assets.bucket_arn

        CfnOutput(
            self,
            "BucketName",
            value=self.assets.bucket_name,
            description="S3 bucket name for application assets",
            export_name=f"{resource_prefix.title()}AssetsBucketName",
        )
