"""
CDK validation aspects for pre-deployment checks.

These aspects run during `cdk synth` and add warnings/info annotations
for resources that drift from the secure defaults, catching issues before
deployment. Resources declared through the components pass by default;
the checks matter for overrides and for resources declared elsewhere in
the app.

Usage:
    from modinfra.validation import add_validation_aspects
    add_validation_aspects(app)
"""

from collections.abc import Mapping
from typing import Any

import aws_cdk as cdk
import jsii
from aws_cdk import aws_iam as iam
from aws_cdk import aws_logs as logs
from aws_cdk import aws_s3 as s3
from constructs import IConstruct

from modinfra.vpc.vpc import VpcComponent

_PUBLIC_ACCESS_FLAGS = {
    "block_public_acls": "blockPublicAcls",
    "block_public_policy": "blockPublicPolicy",
    "ignore_public_acls": "ignorePublicAcls",
    "restrict_public_buckets": "restrictPublicBuckets",
}


def _field(value: Any, name: str, json_name: str, default: Any) -> Any:
    # Properties set from Python come back as objects, CloudFormation-style values as dicts
    if isinstance(value, Mapping):
        return value.get(json_name, value.get(name, default))
    return getattr(value, name, default)


def _trusts_everyone(statement: Any) -> bool:
    if not isinstance(statement, dict) or statement.get("Effect") != "Allow":
        return False
    principal = statement.get("Principal")
    if principal == "*":
        return True
    if isinstance(principal, dict):
        identifiers = principal.get("AWS")
        if isinstance(identifiers, str):
            identifiers = [identifiers]
        return "*" in (identifiers or [])
    return False


@jsii.implements(cdk.IAspect)
class ProductionReadinessAspect:
    """
    Validates production-readiness requirements for deployed resources.

    Checks:
    - S3 buckets have versioning enabled
    - VPCs spanning several zones route private subnets through more than one NAT gateway
    """

    def __init__(self, enforce_ha: bool = True, enforce_versioning: bool = True):
        self._enforce_ha = enforce_ha
        self._enforce_versioning = enforce_versioning

    def visit(self, node: IConstruct) -> None:
        # S3: Versioning protects against accidental overwrites and deletes
        if self._enforce_versioning and isinstance(node, s3.CfnBucket):
            versioning = node.versioning_configuration
            status = None if versioning is None else _field(versioning, "status", "Status", None)
            if status != "Enabled":
                cdk.Annotations.of(node).add_warning_v2(
                    "modinfra:s3-versioning",
                    "S3 bucket does not have versioning enabled",
                )

        # VPC: One NAT gateway is a single point of failure for private subnets
        if (
            self._enforce_ha
            and isinstance(node, VpcComponent)
            and node.nat_gateways
            and len(node.nat_gateways) < len(node.private_subnets)
        ):
            cdk.Annotations.of(node).add_warning_v2(
                "modinfra:vpc-single-nat",
                "Private subnets share one NAT gateway; "
                "set multi_az_nat_gateway=True for production HA",
            )


@jsii.implements(cdk.IAspect)
class SecurityAspect:
    """
    Validates security requirements for deployed resources.

    Checks:
    - S3 buckets block public access
    - S3 buckets have encryption enabled
    - IAM roles do not trust every principal
    - Log groups have a retention period
    """

    def visit(self, node: IConstruct) -> None:
        if isinstance(node, s3.CfnBucket):
            self._check_bucket(node)
        elif isinstance(node, iam.CfnRole):
            self._check_role(node)
        elif isinstance(node, logs.CfnLogGroup):
            if node.retention_in_days is None:
                cdk.Annotations.of(node).add_warning_v2(
                    "modinfra:logs-retention",
                    "Log group keeps events forever; set a retention period",
                )

    @staticmethod
    def _check_bucket(bucket: s3.CfnBucket) -> None:
        public_access = bucket.public_access_block_configuration
        if public_access is None or not all(
            _field(public_access, flag, json_name, True)
            for flag, json_name in _PUBLIC_ACCESS_FLAGS.items()
        ):
            cdk.Annotations.of(bucket).add_warning_v2(
                "modinfra:s3-public-access",
                "S3 bucket does not block all public access",
            )

        if bucket.bucket_encryption is None:
            cdk.Annotations.of(bucket).add_warning_v2(
                "modinfra:s3-encryption",
                "S3 bucket has no default encryption configured",
            )

    @staticmethod
    def _check_role(role: iam.CfnRole) -> None:
        document = role.assume_role_policy_document
        # Documents built by CDK policy objects are tokens and cannot be inspected here
        if not isinstance(document, dict):
            return
        statements = document.get("Statement", [])
        if isinstance(statements, dict):
            statements = [statements]
        if any(_trusts_everyone(statement) for statement in statements):
            cdk.Annotations.of(role).add_warning_v2(
                "modinfra:iam-trust-any",
                "IAM role trust policy allows any principal to assume the role",
            )


def add_validation_aspects(
    scope: cdk.App,
    enforce_ha: bool = True,
    enforce_versioning: bool = True,
    enable_security_checks: bool = True,
) -> None:
    """
    Add validation aspects to all stacks in the CDK app.

    Args:
        scope: The CDK App (or a single stack) to add aspects to
        enforce_ha: Whether to check for high-availability configurations
        enforce_versioning: Whether to check that buckets keep object versions
        enable_security_checks: Whether to run security-related validations
    """
    cdk.Aspects.of(scope).add(
        ProductionReadinessAspect(
            enforce_ha=enforce_ha,
            enforce_versioning=enforce_versioning,
        )
    )

    if enable_security_checks:
        cdk.Aspects.of(scope).add(SecurityAspect())
