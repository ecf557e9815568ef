"""
IAM component - roles, managed policies, users and groups.

Resources are declared in dependency order: managed policies first (roles,
users and groups may reference them by name), then roles, groups, users,
service roles and the cross-account role.
"""

import dataclasses
from typing import Any, Literal

from aws_cdk import Tags
from aws_cdk import aws_iam as iam
from constructs import Construct

from modinfra.exceptions import IamNameError, ResourceNotFoundError
from modinfra.iam.defaults import (
    COMMON_POLICIES,
    IAM_DEFAULTS,
    SERVICE_ROLE_CONFIGS,
    SERVICE_ROLE_SESSION_SECONDS,
    cross_account_trust_policy,
    validate_policy_name,
    validate_role_name,
)
from modinfra.iam.documents import create_trust_policy, policy_document_to_dict, resolve_policy
from modinfra.iam.types import (
    CrossAccountConfig,
    IamArgs,
    IamGroupConfig,
    IamPolicyConfig,
    IamRoleConfig,
    IamUserConfig,
    InlinePolicy,
    PolicyDocument,
    PolicyStatement,
    ServiceRoleConfig,
)
from modinfra.logging import get_logger
from modinfra.merge import merge_tags
from modinfra.naming import logical_id

logger = get_logger(__name__)

S3Access = Literal["read", "write", "full"]

_S3_POLICIES = {
    "read": COMMON_POLICIES["s3_read_only"],
    "write": COMMON_POLICIES["s3_write"],
    "full": COMMON_POLICIES["s3_full_access"],
}


class IamComponent(Construct):
    """
    Security-first IAM management.

    Attributes are keyed by the configured resource name:
        roles, policies, users, groups, instance_profiles
        role_arns, policy_arns
    """

    def __init__(self, scope: Construct, construct_id: str, args: IamArgs) -> None:
        super().__init__(scope, construct_id)

        self.component_name = args.name
        self.roles: dict[str, iam.CfnRole] = {}
        self.policies: dict[str, iam.CfnManagedPolicy] = {}
        self.users: dict[str, iam.CfnUser] = {}
        self.groups: dict[str, iam.CfnGroup] = {}
        self.instance_profiles: dict[str, iam.CfnInstanceProfile] = {}
        self.role_arns: dict[str, str] = {}
        self.policy_arns: dict[str, str] = {}

        for key, value in merge_tags(IAM_DEFAULTS.tags, args.tags).items():
            Tags.of(self).add(key, value)

        for policy_config in args.policies or []:
            self.create_policy(policy_config)

        for role_config in args.roles or []:
            self.create_role(role_config)

        for group_config in args.groups or []:
            self.create_group(group_config)

        for user_config in args.users or []:
            self.create_user(user_config)

        if args.service_roles:
            self._create_service_roles(args.service_roles)

        if args.cross_account_access:
            self._create_cross_account_role(args.cross_account_access)

        logger.info(
            "iam_component_created",
            construct=self,
            roles=sorted(self.roles),
            policies=sorted(self.policies),
            users=sorted(self.users),
            groups=sorted(self.groups),
        )

    # =========================================================================
    # Resource creation
    # =========================================================================

    def create_policy(self, config: IamPolicyConfig) -> iam.CfnManagedPolicy:
        errors = validate_policy_name(config.name)
        if errors:
            raise IamNameError(f"Invalid policy name: {', '.join(errors)}", errors)

        policy = iam.CfnManagedPolicy(
            self,
            logical_id("Policy", config.name),
            managed_policy_name=config.name,
            path=config.path or IAM_DEFAULTS.path,
            description=config.description or f"Policy created by {self.component_name}",
            policy_document=resolve_policy(config.policy),
        )
        self.policies[config.name] = policy
        # Ref of a managed policy is its ARN
        self.policy_arns[config.name] = policy.ref
        return policy

    def create_role(self, config: IamRoleConfig) -> iam.CfnRole:
        errors = validate_role_name(config.name)
        if errors:
            raise IamNameError(f"Invalid role name: {', '.join(errors)}", errors)

        trust_policy = policy_document_to_dict(create_trust_policy(config.trust_policy))
        path = config.path or IAM_DEFAULTS.path

        role = iam.CfnRole(
            self,
            logical_id("Role", config.name),
            role_name=config.name,
            path=path,
            description=config.description or f"Role created by {self.component_name}",
            assume_role_policy_document=trust_policy,
            max_session_duration=(
                config.trust_policy.max_session_duration or IAM_DEFAULTS.max_session_duration
            ),
            managed_policy_arns=self._managed_policy_arns(config.managed_policy_arns),
            policies=self._inline_policies(config.inline_policies, iam.CfnRole.PolicyProperty),
            permissions_boundary=config.permissions_boundary,
        )
        self._tag(role, config.tags)
        self.roles[config.name] = role
        self.role_arns[config.name] = role.attr_arn

        if config.create_instance_profile:
            self.instance_profiles[config.name] = iam.CfnInstanceProfile(
                self,
                logical_id("InstanceProfile", config.name),
                instance_profile_name=f"{config.name}-profile",
                path=path,
                roles=[role.ref],
            )

        logger.debug(
            "iam_role_created",
            construct=self,
            role_name=config.name,
            trusted_services=config.trust_policy.services or [],
            instance_profile=config.create_instance_profile,
        )
        return role

    def create_group(self, config: IamGroupConfig) -> iam.CfnGroup:
        group = iam.CfnGroup(
            self,
            logical_id("Group", config.name),
            group_name=config.name,
            path=config.path or IAM_DEFAULTS.path,
            managed_policy_arns=self._managed_policy_arns(config.managed_policy_arns),
            policies=self._inline_policies(config.inline_policies, iam.CfnGroup.PolicyProperty),
        )
        self.groups[config.name] = group
        return group

    def create_user(self, config: IamUserConfig) -> iam.CfnUser:
        user = iam.CfnUser(
            self,
            logical_id("User", config.name),
            user_name=config.name,
            path=config.path or IAM_DEFAULTS.path,
            managed_policy_arns=self._managed_policy_arns(config.managed_policy_arns),
            policies=self._inline_policies(config.inline_policies, iam.CfnUser.PolicyProperty),
            groups=list(config.groups) if config.groups else None,
            permissions_boundary=config.permissions_boundary,
        )
        self._tag(user, config.tags)

        # Groups declared here must exist before the user joins them
        for group_name in config.groups or []:
            if group_name in self.groups:
                user.add_dependency(self.groups[group_name])

        self.users[config.name] = user
        return user

    def _create_service_roles(self, service_roles: ServiceRoleConfig) -> None:
        prefix = self.component_name

        if service_roles.ec2:
            preset = SERVICE_ROLE_CONFIGS["ec2_instance"](f"{prefix}-ec2-role")
            self.create_role(
                self._extend_preset(
                    preset,
                    service_roles.ec2.additional_policies,
                    service_roles.ec2.custom_policies,
                )
            )

        if service_roles.lambda_:
            preset_name = "lambda_vpc" if service_roles.lambda_.vpc_access else "lambda_basic"
            preset = SERVICE_ROLE_CONFIGS[preset_name](f"{prefix}-lambda-role")
            self.create_role(
                self._extend_preset(
                    preset,
                    service_roles.lambda_.additional_policies,
                    service_roles.lambda_.custom_policies,
                )
            )

        if service_roles.ecs_task:
            preset = SERVICE_ROLE_CONFIGS["ecs_task"](f"{prefix}-ecs-task-role")
            self.create_role(
                self._extend_preset(
                    preset,
                    service_roles.ecs_task.additional_policies,
                    service_roles.ecs_task.custom_policies,
                )
            )

        if service_roles.ecs_execution:
            preset = SERVICE_ROLE_CONFIGS["ecs_task_execution"](
                f"{prefix}-ecs-execution-role", service_roles.ecs_execution.log_groups
            )
            self.create_role(
                self._extend_preset(preset, service_roles.ecs_execution.additional_policies, [])
            )

    @staticmethod
    def _extend_preset(
        preset: IamRoleConfig,
        additional_policies: list[str],
        custom_policies: list[InlinePolicy],
    ) -> IamRoleConfig:
        return dataclasses.replace(
            preset,
            managed_policy_arns=[*(preset.managed_policy_arns or []), *additional_policies],
            inline_policies=[*(preset.inline_policies or []), *custom_policies] or None,
        )

    def _create_cross_account_role(self, config: CrossAccountConfig) -> None:
        trust_policy = dataclasses.replace(
            cross_account_trust_policy(
                config.trusted_accounts, config.external_id, config.require_mfa
            ),
            max_session_duration=config.session_duration or SERVICE_ROLE_SESSION_SECONDS,
        )

        inline_policies = []
        if config.allowed_actions or config.allowed_resources:
            inline_policies.append(
                InlinePolicy(
                    name="CrossAccountAccess",
                    policy=PolicyDocument(
                        statements=[
                            PolicyStatement(
                                effect="Allow",
                                actions=config.allowed_actions or ["*"],
                                resources=config.allowed_resources or ["*"],
                            )
                        ]
                    ),
                )
            )

        self.create_role(
            IamRoleConfig(
                name=f"{self.component_name}-cross-account-role",
                trust_policy=trust_policy,
                inline_policies=inline_policies or None,
            )
        )

    # =========================================================================
    # Grants
    # =========================================================================

    def _role(self, role_name: str) -> iam.CfnRole:
        if role_name not in self.roles:
            raise ResourceNotFoundError(f"Role {role_name} not found")
        return self.roles[role_name]

    def _attach_role_policy(
        self, role_name: str, kind: str, policy_name: str, document: PolicyDocument
    ) -> iam.CfnPolicy:
        role = self._role(role_name)
        policy = iam.CfnPolicy(
            self,
            logical_id(kind, role_name),
            policy_name=policy_name,
            policy_document=policy_document_to_dict(document),
            roles=[role.ref],
        )
        logger.debug(
            "iam_policy_granted", construct=self, role_name=role_name, policy_name=policy_name
        )
        return policy

    def grant_s3_access(
        self, role_name: str, bucket_arn: str, access: S3Access = "read"
    ) -> iam.CfnPolicy:
        """Attach S3 read, write or full access (SSL only) for one bucket."""
        if access not in _S3_POLICIES:
            raise ValueError(f"access must be one of {sorted(_S3_POLICIES)}, got {access!r}")
        return self._attach_role_policy(
            role_name,
            f"S3{access.title()}Access",
            f"S3{access.title()}Access",
            _S3_POLICIES[access](bucket_arn),
        )

    def grant_cloudwatch_logs_access(
        self, role_name: str, log_group_arn: str | None = None
    ) -> iam.CfnPolicy:
        return self._attach_role_policy(
            role_name,
            "CloudWatchLogsAccess",
            "CloudWatchLogsAccess",
            COMMON_POLICIES["cloudwatch_logs_write"]([log_group_arn] if log_group_arn else None),
        )

    def grant_secrets_manager_access(self, role_name: str, secret_arn: str) -> iam.CfnPolicy:
        return self._attach_role_policy(
            role_name,
            "SecretsManagerAccess",
            "SecretsManagerAccess",
            COMMON_POLICIES["secrets_manager_read"](secret_arn),
        )

    def grant_parameter_store_access(self, role_name: str, parameter_path: str) -> iam.CfnPolicy:
        return self._attach_role_policy(
            role_name,
            "ParameterStoreAccess",
            "ParameterStoreAccess",
            COMMON_POLICIES["parameter_store_read"](parameter_path),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _managed_policy_arns(self, arns: list[str] | None) -> list[str] | None:
        """Map names of policies declared in this component to their ARNs."""
        if not arns:
            return None
        return [self.policy_arns.get(arn, arn) for arn in arns]

    @staticmethod
    def _inline_policies(policies: list[InlinePolicy] | None, property_type: type) -> list | None:
        if not policies:
            return None
        return [
            property_type(policy_name=policy.name, policy_document=resolve_policy(policy.policy))
            for policy in policies
        ]

    @staticmethod
    def _tag(resource: Construct, tags: dict[str, str] | None) -> None:
        for key, value in (tags or {}).items():
            Tags.of(resource).add(key, value)

    def get_outputs(self) -> dict[str, Any]:
        return {
            "roles": self.roles,
            "policies": self.policies,
            "users": self.users,
            "groups": self.groups,
            "instance_profiles": self.instance_profiles,
            "role_arns": self.role_arns,
            "policy_arns": self.policy_arns,
        }
