"""Configuration types for the IAM component."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

POLICY_VERSION = "2012-10-17"

Effect = Literal["Allow", "Deny"]
PrincipalType = Literal["AWS", "Service", "Federated", "CanonicalUser", "*"]

# Condition blocks: operator -> condition key -> value(s)
Conditions = Mapping[str, Mapping[str, Any]]


@dataclass(frozen=True)
class Principal:
    type: PrincipalType
    identifiers: list[str] | str


@dataclass(frozen=True)
class PolicyStatement:
    effect: Effect
    actions: list[str] | str
    resources: list[str] | str | None = None
    principals: list[Principal] | None = None
    conditions: Conditions | None = None
    not_actions: list[str] | str | None = None
    not_resources: list[str] | str | None = None
    not_principals: list[Principal] | None = None
    sid: str | None = None


@dataclass(frozen=True)
class PolicyDocument:
    statements: list[PolicyStatement]
    version: str = POLICY_VERSION


# A policy is either a structured document or raw JSON text.
PolicyInput = PolicyDocument | str


@dataclass(frozen=True)
class TrustPolicyConfig:
    """Who may assume a role, and under which conditions."""

    services: list[str] | None = None
    # Account ids or principal ARNs; bare ids become arn:aws:iam::<id>:root
    accounts: list[str] | None = None
    federated_providers: list[str] | None = None
    saml_providers: list[str] | None = None
    oidc_providers: list[str] | None = None
    custom_statements: list[PolicyStatement] | None = None
    require_mfa: bool = False
    external_id: str | None = None
    max_session_duration: int | None = None


@dataclass(frozen=True)
class InlinePolicy:
    name: str
    policy: PolicyInput


@dataclass(frozen=True)
class IamRoleConfig:
    name: str
    trust_policy: TrustPolicyConfig
    # ARNs, or names of policies declared in the same component
    managed_policy_arns: list[str] | None = None
    inline_policies: list[InlinePolicy] | None = None
    create_instance_profile: bool = False
    permissions_boundary: str | None = None
    description: str | None = None
    path: str | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class IamPolicyConfig:
    name: str
    policy: PolicyInput
    description: str | None = None
    path: str | None = None


@dataclass(frozen=True)
class IamUserConfig:
    name: str
    managed_policy_arns: list[str] | None = None
    inline_policies: list[InlinePolicy] | None = None
    groups: list[str] | None = None
    permissions_boundary: str | None = None
    path: str | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class IamGroupConfig:
    name: str
    managed_policy_arns: list[str] | None = None
    inline_policies: list[InlinePolicy] | None = None
    path: str | None = None


@dataclass(frozen=True)
class Ec2RoleConfig:
    additional_policies: list[str] = field(default_factory=list)
    custom_policies: list[InlinePolicy] = field(default_factory=list)


@dataclass(frozen=True)
class LambdaRoleConfig:
    vpc_access: bool = False
    additional_policies: list[str] = field(default_factory=list)
    custom_policies: list[InlinePolicy] = field(default_factory=list)


@dataclass(frozen=True)
class EcsTaskRoleConfig:
    additional_policies: list[str] = field(default_factory=list)
    custom_policies: list[InlinePolicy] = field(default_factory=list)


@dataclass(frozen=True)
class EcsExecutionRoleConfig:
    # Log group ARNs the execution role may write to
    log_groups: list[str] | None = None
    additional_policies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ServiceRoleConfig:
    """Pre-configured service roles; each one set creates one role."""

    ec2: Ec2RoleConfig | None = None
    lambda_: LambdaRoleConfig | None = None
    ecs_task: EcsTaskRoleConfig | None = None
    ecs_execution: EcsExecutionRoleConfig | None = None


@dataclass(frozen=True)
class CrossAccountConfig:
    trusted_accounts: list[str]
    external_id: str | None = None
    require_mfa: bool = True
    allowed_actions: list[str] | None = None
    allowed_resources: list[str] | None = None
    session_duration: int | None = None


@dataclass(frozen=True)
class IamArgs:
    # Component name, used as the prefix of service and cross-account role names
    name: str
    roles: list[IamRoleConfig] | None = None
    policies: list[IamPolicyConfig] | None = None
    users: list[IamUserConfig] | None = None
    groups: list[IamGroupConfig] | None = None
    service_roles: ServiceRoleConfig | None = None
    cross_account_access: CrossAccountConfig | None = None
    tags: dict[str, str] | None = None


SERVICE_PRINCIPALS: Mapping[str, str] = MappingProxyType(
    {
        "EC2": "ec2.amazonaws.com",
        "LAMBDA": "lambda.amazonaws.com",
        "ECS_TASKS": "ecs-tasks.amazonaws.com",
        "API_GATEWAY": "apigateway.amazonaws.com",
        "CLOUDFORMATION": "cloudformation.amazonaws.com",
        "CODEBUILD": "codebuild.amazonaws.com",
        "CODEPIPELINE": "codepipeline.amazonaws.com",
        "EVENTS": "events.amazonaws.com",
        "S3": "s3.amazonaws.com",
        "SNS": "sns.amazonaws.com",
        "SQS": "sqs.amazonaws.com",
        "STEP_FUNCTIONS": "states.amazonaws.com",
        "GLUE": "glue.amazonaws.com",
        "KINESIS": "kinesis.amazonaws.com",
        "FIREHOSE": "firehose.amazonaws.com",
        "RDS": "rds.amazonaws.com",
        "REDSHIFT": "redshift.amazonaws.com",
    }
)

MANAGED_POLICIES: Mapping[str, str] = MappingProxyType(
    {
        "EC2_READ_ONLY": "arn:aws:iam::aws:policy/AmazonEC2ReadOnlyAccess",
        "EC2_INSTANCE_PROFILE": "arn:aws:iam::aws:policy/service-role/AmazonEC2RoleforSSM",
        "LAMBDA_BASIC_EXECUTION": (
            "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"
        ),
        "LAMBDA_VPC_EXECUTION": (
            "arn:aws:iam::aws:policy/service-role/AWSLambdaVPCAccessExecutionRole"
        ),
        "ECS_TASK_EXECUTION": (
            "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
        ),
        "ECS_TASK_ROLE": "arn:aws:iam::aws:policy/service-role/AmazonECSTaskRolePolicy",
        "S3_READ_ONLY": "arn:aws:iam::aws:policy/AmazonS3ReadOnlyAccess",
        "S3_FULL_ACCESS": "arn:aws:iam::aws:policy/AmazonS3FullAccess",
        "CLOUDWATCH_READ_ONLY": "arn:aws:iam::aws:policy/CloudWatchReadOnlyAccess",
        "CLOUDWATCH_AGENT_SERVER": "arn:aws:iam::aws:policy/CloudWatchAgentServerPolicy",
        "SSM_MANAGED_INSTANCE": "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore",
        "READ_ONLY_ACCESS": "arn:aws:iam::aws:policy/ReadOnlyAccess",
        "POWER_USER_ACCESS": "arn:aws:iam::aws:policy/PowerUserAccess",
    }
)
