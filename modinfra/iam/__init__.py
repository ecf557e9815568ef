from modinfra.iam.defaults import (
    COMMON_POLICIES,
    IAM_DEFAULTS,
    SERVICE_ROLE_CONFIGS,
    SERVICE_ROLE_TRUST_POLICIES,
    cross_account_trust_policy,
    generate_secure_resource_name,
    require_mfa,
    require_ssl,
    restrict_ip_range,
    time_restriction,
    validate_policy_name,
    validate_role_name,
)
from modinfra.iam.documents import (
    create_trust_policy,
    policy_document_to_dict,
    policy_document_to_json,
    resolve_policy,
)
from modinfra.iam.iam import IamComponent
from modinfra.iam.types import (
    MANAGED_POLICIES,
    SERVICE_PRINCIPALS,
    CrossAccountConfig,
    Ec2RoleConfig,
    EcsExecutionRoleConfig,
    EcsTaskRoleConfig,
    IamArgs,
    IamGroupConfig,
    IamPolicyConfig,
    IamRoleConfig,
    IamUserConfig,
    InlinePolicy,
    LambdaRoleConfig,
    PolicyDocument,
    PolicyInput,
    PolicyStatement,
    Principal,
    ServiceRoleConfig,
    TrustPolicyConfig,
)

__all__ = [
    "COMMON_POLICIES",
    "IAM_DEFAULTS",
    "MANAGED_POLICIES",
    "SERVICE_PRINCIPALS",
    "SERVICE_ROLE_CONFIGS",
    "SERVICE_ROLE_TRUST_POLICIES",
    "CrossAccountConfig",
    "Ec2RoleConfig",
    "EcsExecutionRoleConfig",
    "EcsTaskRoleConfig",
    "IamArgs",
    "IamComponent",
    "IamGroupConfig",
    "IamPolicyConfig",
    "IamRoleConfig",
    "IamUserConfig",
    "InlinePolicy",
    "LambdaRoleConfig",
    "PolicyDocument",
    "PolicyInput",
    "PolicyStatement",
    "Principal",
    "ServiceRoleConfig",
    "TrustPolicyConfig",
    "create_trust_policy",
    "cross_account_trust_policy",
    "generate_secure_resource_name",
    "policy_document_to_dict",
    "policy_document_to_json",
    "require_mfa",
    "require_ssl",
    "resolve_policy",
    "restrict_ip_range",
    "time_restriction",
    "validate_policy_name",
    "validate_role_name",
]
