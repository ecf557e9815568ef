"""Secure-by-default AWS CDK components: VPC, S3, IAM and CloudWatch."""

__version__ = "0.1.0"
