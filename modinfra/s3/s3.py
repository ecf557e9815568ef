"""
S3 component - secure object storage.

Provides a bucket with:
- Encryption at rest (S3-managed by default, KMS on request)
- Versioning enabled
- All public access blocked
- TLS-only access enforced through the bucket policy
- Lifecycle management (tiering, multipart cleanup, noncurrent expiry)
- Retention on stack deletion unless force_destroy is set
"""

from datetime import datetime
from typing import Any

from aws_cdk import Annotations, Duration, RemovalPolicy, Stack, Tags
from aws_cdk import aws_iam as iam
from aws_cdk import aws_kms as kms
from aws_cdk import aws_s3 as s3
from constructs import Construct

from modinfra.exceptions import BucketNameError, ConfigurationError
from modinfra.iam.documents import resolve_policy
from modinfra.iam.types import PolicyInput
from modinfra.logging import get_logger
from modinfra.merge import merge_config, merge_tags
from modinfra.s3.defaults import (
    S3_DEFAULT_TAGS,
    S3_ENCRYPTION_DEFAULTS,
    S3_LIFECYCLE_DEFAULTS,
    S3_OBJECT_OWNERSHIP_DEFAULT,
    S3_PUBLIC_ACCESS_BLOCK_DEFAULTS,
    S3_VERSIONING_DEFAULTS,
    S3_WEBSITE_DEFAULTS,
    create_secure_bucket_policy,
    validate_bucket_name,
)
from modinfra.s3.types import (
    S3Args,
    S3CorsRule,
    S3EncryptionConfig,
    S3LifecycleRule,
    S3NotificationConfig,
    S3NotificationTarget,
    S3WebsiteConfig,
)

logger = get_logger(__name__)

OBJECT_OWNERSHIP = {
    "BucketOwnerPreferred": s3.ObjectOwnership.BUCKET_OWNER_PREFERRED,
    "BucketOwnerEnforced": s3.ObjectOwnership.BUCKET_OWNER_ENFORCED,
    "ObjectWriter": s3.ObjectOwnership.OBJECT_WRITER,
}

READ_ACTIONS = ["s3:GetObject", "s3:GetObjectVersion", "s3:ListBucket"]
WRITE_ACTIONS = ["s3:PutObject", "s3:PutObjectAcl", "s3:DeleteObject", "s3:DeleteObjectVersion"]


def _parse_date(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _days(value: int | None) -> Duration | None:
    return Duration.days(value) if value is not None else None


def lifecycle_rule_props(rule: S3LifecycleRule) -> dict[str, Any]:
    """Translate an S3LifecycleRule into keyword arguments for s3.LifecycleRule."""
    props: dict[str, Any] = {
        "id": rule.id,
        "enabled": rule.enabled,
        "prefix": rule.prefix,
        "tag_filters": dict(rule.tags) if rule.tags else None,
        "abort_incomplete_multipart_upload_after": _days(
            rule.abort_incomplete_multipart_upload_days
        ),
        "noncurrent_version_expiration": _days(rule.noncurrent_version_expiration_days),
    }

    if rule.transitions:
        props["transitions"] = [
            s3.Transition(
                storage_class=s3.StorageClass(transition.storage_class),
                transition_after=_days(transition.days),
                transition_date=_parse_date(transition.date),
            )
            for transition in rule.transitions
        ]

    if rule.expiration:
        props["expiration"] = _days(rule.expiration.days)
        props["expiration_date"] = _parse_date(rule.expiration.date)
        props["expired_object_delete_marker"] = rule.expiration.expired_object_delete_marker

    if rule.noncurrent_version_transitions:
        props["noncurrent_version_transitions"] = [
            s3.NoncurrentVersionTransition(
                storage_class=s3.StorageClass(transition.storage_class),
                transition_after=Duration.days(transition.noncurrent_days),
            )
            for transition in rule.noncurrent_version_transitions
        ]

    return {key: value for key, value in props.items() if value is not None}


def _cors_rule(rule: S3CorsRule) -> s3.CorsRule:
    return s3.CorsRule(
        allowed_methods=[s3.HttpMethods[method.upper()] for method in rule.allowed_methods],
        allowed_origins=list(rule.allowed_origins),
        allowed_headers=list(rule.allowed_headers) if rule.allowed_headers else None,
        exposed_headers=list(rule.expose_headers) if rule.expose_headers else None,
        id=rule.id,
        max_age=rule.max_age_seconds,
    )


def _notification_filter(
    target: S3NotificationTarget,
) -> s3.CfnBucket.NotificationFilterProperty | None:
    rules = []
    if target.filter_prefix:
        rules.append(s3.CfnBucket.FilterRuleProperty(name="prefix", value=target.filter_prefix))
    if target.filter_suffix:
        rules.append(s3.CfnBucket.FilterRuleProperty(name="suffix", value=target.filter_suffix))
    if not rules:
        return None
    return s3.CfnBucket.NotificationFilterProperty(
        s3_key=s3.CfnBucket.S3KeyFilterProperty(rules=rules)
    )


def _notification_configuration(
    config: S3NotificationConfig,
) -> s3.CfnBucket.NotificationConfigurationProperty:
    # CloudFormation takes one event per configuration entry
    return s3.CfnBucket.NotificationConfigurationProperty(
        lambda_configurations=[
            s3.CfnBucket.LambdaConfigurationProperty(
                event=event, function=target.arn, filter=_notification_filter(target)
            )
            for target in config.lambda_functions
            for event in target.events
        ]
        or None,
        topic_configurations=[
            s3.CfnBucket.TopicConfigurationProperty(
                event=event, topic=target.arn, filter=_notification_filter(target)
            )
            for target in config.topics
            for event in target.events
        ]
        or None,
        queue_configurations=[
            s3.CfnBucket.QueueConfigurationProperty(
                event=event, queue=target.arn, filter=_notification_filter(target)
            )
            for target in config.queues
            for event in target.events
        ]
        or None,
    )


class S3Component(Construct):
    """
    Secure S3 bucket.

    Attributes:
        bucket: The s3.Bucket
        bucket_name / bucket_arn / bucket_domain_name / bucket_regional_domain_name
        website_url / website_domain: Set when website hosting is configured
    """

    def __init__(self, scope: Construct, construct_id: str, args: S3Args) -> None:
        super().__init__(scope, construct_id)

        errors = validate_bucket_name(args.name)
        if errors:
            raise BucketNameError(f"Invalid bucket name: {', '.join(errors)}", errors)

        self.args = args
        self.encryption = merge_config(S3_ENCRYPTION_DEFAULTS, args.encryption)
        versioning = merge_config(S3_VERSIONING_DEFAULTS, args.versioning)
        public_access = merge_config(
            S3_PUBLIC_ACCESS_BLOCK_DEFAULTS,
            {
                "block_public_acls": args.block_public_acls,
                "block_public_policy": args.block_public_policy,
                "ignore_public_acls": args.ignore_public_acls,
                "restrict_public_buckets": args.restrict_public_buckets,
            },
        )
        lifecycle_rules = (
            S3_LIFECYCLE_DEFAULTS if args.lifecycle_rules is None else args.lifecycle_rules
        )
        self._unique_id_counter = 0

        for key, value in merge_tags(S3_DEFAULT_TAGS, args.tags, {"Name": args.name}).items():
            Tags.of(self).add(key, value)

        bucket_props: dict[str, Any] = {
            "bucket_name": args.name,
            "object_ownership": self._object_ownership(args.object_ownership),
            "block_public_access": s3.BlockPublicAccess(
                block_public_acls=public_access.block_public_acls,
                block_public_policy=public_access.block_public_policy,
                ignore_public_acls=public_access.ignore_public_acls,
                restrict_public_buckets=public_access.restrict_public_buckets,
            ),
            "versioned": versioning.enabled,
            "enforce_ssl": args.enforce_ssl,
            "lifecycle_rules": [
                s3.LifecycleRule(**lifecycle_rule_props(rule)) for rule in lifecycle_rules
            ],
            "cors": [_cors_rule(rule) for rule in args.cors_rules] if args.cors_rules else None,
            "transfer_acceleration": args.acceleration_status == "Enabled" or None,
            **self._encryption_props(self.encryption),
            **self._website_props(args.website),
        }

        if args.logging:
            bucket_props["server_access_logs_bucket"] = s3.Bucket.from_bucket_name(
                self, "AccessLogsBucket", args.logging.target_bucket
            )
            bucket_props["server_access_logs_prefix"] = args.logging.target_prefix

        if args.force_destroy:
            bucket_props["removal_policy"] = RemovalPolicy.DESTROY
            bucket_props["auto_delete_objects"] = True
        else:
            bucket_props["removal_policy"] = RemovalPolicy.RETAIN

        self.bucket = s3.Bucket(
            self,
            "Bucket",
            **{key: value for key, value in bucket_props.items() if value is not None},
        )

        cfn_bucket: s3.CfnBucket = self.bucket.node.default_child
        if args.notification:
            cfn_bucket.notification_configuration = _notification_configuration(
                args.notification
            )
        if args.acceleration_status == "Suspended":
            cfn_bucket.accelerate_configuration = s3.CfnBucket.AccelerateConfigurationProperty(
                acceleration_status="Suspended"
            )

        if args.policy is not None:
            self.add_policy(args.policy)

        if versioning.mfa_delete:
            Annotations.of(self).add_warning_v2(
                "modinfra:s3-mfa-delete",
                "MFA delete cannot be enabled through CloudFormation; "
                "enable it with the root account after deployment",
            )
        if args.request_payer:
            Annotations.of(self).add_warning_v2(
                "modinfra:s3-request-payer",
                f"request_payer={args.request_payer!r} cannot be set through CloudFormation "
                "and was ignored",
            )

        self.bucket_name = self.bucket.bucket_name
        self.bucket_arn = self.bucket.bucket_arn
        self.bucket_domain_name = self.bucket.bucket_domain_name
        self.bucket_regional_domain_name = self.bucket.bucket_regional_domain_name
        self.website_url = self.bucket.bucket_website_url if args.website else None
        self.website_domain = self.bucket.bucket_website_domain_name if args.website else None

        logger.info(
            "bucket_configured",
            construct=self,
            bucket_name=args.name,
            sse_algorithm=self.encryption.sse_algorithm,
            versioned=versioning.enabled,
            lifecycle_rules=[rule.id for rule in lifecycle_rules],
            enforce_ssl=args.enforce_ssl,
            website=args.website is not None,
        )

    @staticmethod
    def _object_ownership(value: str | None) -> s3.ObjectOwnership:
        value = value or S3_OBJECT_OWNERSHIP_DEFAULT
        if value not in OBJECT_OWNERSHIP:
            raise ConfigurationError(
                f"Invalid object ownership {value!r}, expected one of {sorted(OBJECT_OWNERSHIP)}"
            )
        return OBJECT_OWNERSHIP[value]

    def _encryption_props(self, config: S3EncryptionConfig) -> dict[str, Any]:
        if config.sse_algorithm == "AES256":
            return {"encryption": s3.BucketEncryption.S3_MANAGED}

        if config.sse_algorithm == "aws:kms":
            props: dict[str, Any] = {"bucket_key_enabled": config.bucket_key_enabled}
            if config.kms_key_id:
                props["encryption"] = s3.BucketEncryption.KMS
                props["encryption_key"] = self._kms_key(config.kms_key_id)
            else:
                props["encryption"] = s3.BucketEncryption.KMS_MANAGED
            return props

        raise ConfigurationError(
            f"Unsupported sse_algorithm {config.sse_algorithm!r}, expected 'AES256' or 'aws:kms'"
        )

    def _kms_key(self, key_id: str) -> kms.IKey:
        if key_id.startswith("arn:"):
            return kms.Key.from_key_arn(self, "EncryptionKey", key_id)
        if key_id.startswith("alias/"):
            return kms.Alias.from_alias_name(self, "EncryptionKey", key_id)
        key_arn = Stack.of(self).format_arn(service="kms", resource="key", resource_name=key_id)
        return kms.Key.from_key_arn(self, "EncryptionKey", key_arn)

    @staticmethod
    def _website_props(website: S3WebsiteConfig | None) -> dict[str, Any]:
        if website is None:
            return {}
        if website.redirect_all_requests_to:
            return {
                "website_redirect": s3.RedirectTarget(host_name=website.redirect_all_requests_to)
            }
        website = merge_config(S3_WEBSITE_DEFAULTS, website)
        return {
            "website_index_document": website.index_document,
            "website_error_document": website.error_document,
        }

    def _get_unique_id(self, base: str) -> str:
        """Generate a unique statement id."""
        self._unique_id_counter += 1
        return f"{base}{self._unique_id_counter}"

    def add_policy(self, policy: PolicyInput) -> None:
        """Add every statement of a structured or raw JSON policy to the bucket policy."""
        statements = resolve_policy(policy).get("Statement", [])
        if isinstance(statements, dict):
            statements = [statements]
        for statement in statements:
            self.bucket.add_to_resource_policy(iam.PolicyStatement.from_json(statement))

    def create_secure_policy(
        self,
        *,
        allow_cloudfront: bool = False,
        allowed_principals: list[str] | None = None,
        deny_insecure_transport: bool = True,
        enforce_encryption: bool = True,
    ) -> None:
        """Attach the hardened bucket policy from create_secure_bucket_policy."""
        self.add_policy(
            create_secure_bucket_policy(
                self.args.name,
                allow_cloudfront=allow_cloudfront,
                allowed_principals=allowed_principals,
                deny_insecure_transport=deny_insecure_transport,
                enforce_encryption=enforce_encryption,
                sse_algorithm=self.encryption.sse_algorithm,
            )
        )

    def add_lifecycle_rule(self, rule: S3LifecycleRule) -> None:
        self.bucket.add_lifecycle_rule(**lifecycle_rule_props(rule))

    def _grant(
        self, sid: str, principal_arn: str, actions: list[str], resources: list[str]
    ) -> iam.PolicyStatement:
        statement = iam.PolicyStatement(
            sid=self._get_unique_id(sid),
            effect=iam.Effect.ALLOW,
            principals=[iam.ArnPrincipal(principal_arn)],
            actions=actions,
            resources=resources,
        )
        self.bucket.add_to_resource_policy(statement)
        logger.debug("bucket_access_granted", construct=self, sid=statement.sid, actions=actions)
        return statement

    def grant_read_access(self, principal_arn: str) -> iam.PolicyStatement:
        return self._grant(
            "GrantReadAccess",
            principal_arn,
            READ_ACTIONS,
            [self.bucket.bucket_arn, self.bucket.arn_for_objects("*")],
        )

    def grant_write_access(self, principal_arn: str) -> iam.PolicyStatement:
        return self._grant(
            "GrantWriteAccess",
            principal_arn,
            WRITE_ACTIONS,
            [self.bucket.arn_for_objects("*")],
        )

    def grant_full_access(self, principal_arn: str) -> iam.PolicyStatement:
        return self._grant(
            "GrantFullAccess",
            principal_arn,
            ["s3:*"],
            [self.bucket.bucket_arn, self.bucket.arn_for_objects("*")],
        )
