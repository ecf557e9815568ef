"""
Secure defaults, presets and name validation for IAM resources.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

from modinfra.iam.types import (
    MANAGED_POLICIES,
    SERVICE_PRINCIPALS,
    IamRoleConfig,
    InlinePolicy,
    PolicyDocument,
    PolicyStatement,
    TrustPolicyConfig,
)
from modinfra.naming import timestamp_token

# Sessions for service roles are kept short
SERVICE_ROLE_SESSION_SECONDS = 3600


@dataclass(frozen=True)
class IamDefaults:
    path: str = "/"
    # 4 hours
    max_session_duration: int = 14400
    tags: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(
            {
                "ManagedBy": "modular-cdk-aws-framework",
                "Component": "IAM",
                "SecurityLevel": "high",
                "Compliance": "required",
            }
        )
    )


IAM_DEFAULTS = IamDefaults()


# =============================================================================
# Condition blocks
# =============================================================================


def require_ssl() -> dict[str, dict[str, str]]:
    return {"Bool": {"aws:SecureTransport": "true"}}


def require_mfa() -> dict[str, dict[str, str]]:
    return {"Bool": {"aws:MultiFactorAuthPresent": "true"}}


def restrict_ip_range(cidrs: list[str]) -> dict[str, dict[str, list[str]]]:
    return {"IpAddress": {"aws:SourceIp": list(cidrs)}}


def time_restriction(start_time: str, end_time: str) -> dict[str, dict[str, str]]:
    """Allow access only between two ISO 8601 timestamps."""
    return {
        "DateGreaterThan": {"aws:CurrentTime": start_time},
        "DateLessThan": {"aws:CurrentTime": end_time},
    }


# =============================================================================
# Trust policy presets
# =============================================================================


def _service_trust(service: str) -> TrustPolicyConfig:
    return TrustPolicyConfig(
        services=[SERVICE_PRINCIPALS[service]],
        max_session_duration=SERVICE_ROLE_SESSION_SECONDS,
    )


SERVICE_ROLE_TRUST_POLICIES: Mapping[str, TrustPolicyConfig] = MappingProxyType(
    {
        "ec2": _service_trust("EC2"),
        "lambda": _service_trust("LAMBDA"),
        "ecs_task": _service_trust("ECS_TASKS"),
        "api_gateway": _service_trust("API_GATEWAY"),
        "code_build": _service_trust("CODEBUILD"),
        "step_functions": _service_trust("STEP_FUNCTIONS"),
    }
)


def cross_account_trust_policy(
    trusted_accounts: list[str],
    external_id: str | None = None,
    require_mfa: bool = True,
) -> TrustPolicyConfig:
    """Trust policy for roles assumed from other AWS accounts. MFA is required by default."""
    return TrustPolicyConfig(
        accounts=list(trusted_accounts),
        external_id=external_id,
        require_mfa=require_mfa,
        max_session_duration=SERVICE_ROLE_SESSION_SECONDS,
    )


# =============================================================================
# Common policy documents
# =============================================================================


def deny_all() -> PolicyDocument:
    return PolicyDocument(statements=[PolicyStatement(effect="Deny", actions="*", resources="*")])


def s3_read_only(bucket_arn: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["s3:GetObject", "s3:GetObjectVersion", "s3:ListBucket"],
                resources=[bucket_arn, f"{bucket_arn}/*"],
                conditions=require_ssl(),
            )
        ]
    )


def s3_write(bucket_arn: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["s3:PutObject", "s3:PutObjectAcl", "s3:DeleteObject"],
                resources=[f"{bucket_arn}/*"],
                conditions=require_ssl(),
            )
        ]
    )


def s3_full_access(bucket_arn: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["s3:*"],
                resources=[bucket_arn, f"{bucket_arn}/*"],
                conditions=require_ssl(),
            )
        ]
    )


def cloudwatch_logs_write(log_group_arns: list[str] | None = None) -> PolicyDocument:
    """Write access to the given log groups, or to every log group when none are given."""
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=[
                    "logs:CreateLogGroup",
                    "logs:CreateLogStream",
                    "logs:PutLogEvents",
                    "logs:DescribeLogStreams",
                ],
                resources=list(log_group_arns) if log_group_arns else ["arn:aws:logs:*:*:*"],
            )
        ]
    )


def ec2_describe() -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=[
                    "ec2:DescribeInstances",
                    "ec2:DescribeInstanceStatus",
                    "ec2:DescribeTags",
                    "ec2:DescribeSecurityGroups",
                    "ec2:DescribeSubnets",
                    "ec2:DescribeVpcs",
                ],
                resources="*",
            )
        ]
    )


def secrets_manager_read(secret_arn: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["secretsmanager:GetSecretValue", "secretsmanager:DescribeSecret"],
                resources=[secret_arn],
            )
        ]
    )


def parameter_store_read(parameter_path: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["ssm:GetParameter", "ssm:GetParameters", "ssm:GetParametersByPath"],
                resources=[f"arn:aws:ssm:*:*:parameter{parameter_path}"],
            )
        ]
    )


def kms_decrypt(key_arn: str) -> PolicyDocument:
    return PolicyDocument(
        statements=[
            PolicyStatement(
                effect="Allow",
                actions=["kms:Decrypt", "kms:DescribeKey"],
                resources=[key_arn],
            )
        ]
    )


COMMON_POLICIES: Mapping[str, Callable[..., PolicyDocument]] = MappingProxyType(
    {
        "deny_all": deny_all,
        "s3_read_only": s3_read_only,
        "s3_write": s3_write,
        "s3_full_access": s3_full_access,
        "cloudwatch_logs_write": cloudwatch_logs_write,
        "ec2_describe": ec2_describe,
        "secrets_manager_read": secrets_manager_read,
        "parameter_store_read": parameter_store_read,
        "kms_decrypt": kms_decrypt,
    }
)


# =============================================================================
# Service role presets
# =============================================================================


def ec2_instance_role(name: str) -> IamRoleConfig:
    """EC2 instance role with SSM and CloudWatch agent access, plus an instance profile."""
    return IamRoleConfig(
        name=name,
        trust_policy=SERVICE_ROLE_TRUST_POLICIES["ec2"],
        managed_policy_arns=[
            MANAGED_POLICIES["SSM_MANAGED_INSTANCE"],
            MANAGED_POLICIES["CLOUDWATCH_AGENT_SERVER"],
        ],
        create_instance_profile=True,
    )


def lambda_basic_role(name: str) -> IamRoleConfig:
    return IamRoleConfig(
        name=name,
        trust_policy=SERVICE_ROLE_TRUST_POLICIES["lambda"],
        managed_policy_arns=[MANAGED_POLICIES["LAMBDA_BASIC_EXECUTION"]],
    )


def lambda_vpc_role(name: str) -> IamRoleConfig:
    return IamRoleConfig(
        name=name,
        trust_policy=SERVICE_ROLE_TRUST_POLICIES["lambda"],
        managed_policy_arns=[MANAGED_POLICIES["LAMBDA_VPC_EXECUTION"]],
    )


def ecs_task_execution_role(name: str, log_group_arns: list[str] | None = None) -> IamRoleConfig:
    inline_policies = None
    if log_group_arns:
        inline_policies = [
            InlinePolicy(name="CustomLogAccess", policy=cloudwatch_logs_write(log_group_arns))
        ]
    return IamRoleConfig(
        name=name,
        trust_policy=SERVICE_ROLE_TRUST_POLICIES["ecs_task"],
        managed_policy_arns=[MANAGED_POLICIES["ECS_TASK_EXECUTION"]],
        inline_policies=inline_policies,
    )


def ecs_task_role(name: str) -> IamRoleConfig:
    return IamRoleConfig(
        name=name,
        trust_policy=SERVICE_ROLE_TRUST_POLICIES["ecs_task"],
        managed_policy_arns=[MANAGED_POLICIES["ECS_TASK_ROLE"]],
    )


SERVICE_ROLE_CONFIGS: Mapping[str, Callable[..., IamRoleConfig]] = MappingProxyType(
    {
        "ec2_instance": ec2_instance_role,
        "lambda_basic": lambda_basic_role,
        "lambda_vpc": lambda_vpc_role,
        "ecs_task_execution": ecs_task_execution_role,
        "ecs_task": ecs_task_role,
    }
)


# =============================================================================
# Name validation
# =============================================================================

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9+=,.@\-_]+$")
_PATH_NAME_PATTERN = re.compile(r"^/[a-zA-Z0-9+=,.@\-_/]*/[a-zA-Z0-9+=,.@\-_]+$")


def validate_role_name(name: str) -> list[str]:
    """Return the IAM naming rules `name` violates; empty when valid."""
    errors = []

    if not 1 <= len(name) <= 64:
        errors.append("Role name must be between 1 and 64 characters")

    if not _NAME_PATTERN.match(name):
        errors.append("Role name can only contain alphanumeric characters and +=,.@-_")

    if "/" in name and not _PATH_NAME_PATTERN.match(name):
        errors.append("Invalid path format in role name")

    return errors


def validate_policy_name(name: str) -> list[str]:
    """Return the IAM naming rules `name` violates; empty when valid."""
    errors = []

    if not 1 <= len(name) <= 128:
        errors.append("Policy name must be between 1 and 128 characters")

    if not _NAME_PATTERN.match(name):
        errors.append("Policy name can only contain alphanumeric characters and +=,.@-_")

    return errors


ResourceType = Literal["role", "policy", "user", "group"]


def generate_secure_resource_name(base_name: str, resource_type: ResourceType) -> str:
    """
    Build a unique name: <type>-<sanitized base>-<base36 timestamp>.

    Truncated to 128 characters for policies and 64 for everything else.
    """
    sanitized = re.sub(r"[^a-zA-Z0-9\-_]", "-", base_name)
    name = f"{resource_type}-{sanitized}-{timestamp_token()}"
    max_length = 128 if resource_type == "policy" else 64
    return name[:max_length]
