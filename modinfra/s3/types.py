"""Configuration types for the S3 component."""

from dataclasses import dataclass

from modinfra.iam.types import PolicyInput


@dataclass(frozen=True)
class S3VersioningConfig:
    enabled: bool = True
    # Not expressible in CloudFormation; requesting it only raises a synth warning
    mfa_delete: bool = False


@dataclass(frozen=True)
class S3EncryptionConfig:
    # "AES256" or "aws:kms"
    sse_algorithm: str = "AES256"
    # KMS key ARN, key id or alias; used with aws:kms only
    kms_key_id: str | None = None
    bucket_key_enabled: bool | None = None


@dataclass(frozen=True)
class S3TransitionRule:
    storage_class: str
    days: int | None = None
    # ISO 8601 date
    date: str | None = None


@dataclass(frozen=True)
class S3ExpirationRule:
    days: int | None = None
    date: str | None = None
    expired_object_delete_marker: bool | None = None


@dataclass(frozen=True)
class S3NoncurrentVersionTransitionRule:
    noncurrent_days: int
    storage_class: str


@dataclass(frozen=True)
class S3LifecycleRule:
    id: str
    enabled: bool = True
    prefix: str | None = None
    tags: dict[str, str] | None = None
    transitions: tuple[S3TransitionRule, ...] | None = None
    expiration: S3ExpirationRule | None = None
    abort_incomplete_multipart_upload_days: int | None = None
    noncurrent_version_expiration_days: int | None = None
    noncurrent_version_transitions: tuple[S3NoncurrentVersionTransitionRule, ...] | None = None


@dataclass(frozen=True)
class S3NotificationTarget:
    """A Lambda function, SNS topic or SQS queue receiving bucket events."""

    arn: str
    # Event names such as "s3:ObjectCreated:*"
    events: tuple[str, ...]
    filter_prefix: str | None = None
    filter_suffix: str | None = None


@dataclass(frozen=True)
class S3NotificationConfig:
    lambda_functions: tuple[S3NotificationTarget, ...] = ()
    topics: tuple[S3NotificationTarget, ...] = ()
    queues: tuple[S3NotificationTarget, ...] = ()


@dataclass(frozen=True)
class S3LoggingConfig:
    target_bucket: str
    target_prefix: str = ""


@dataclass(frozen=True)
class S3CorsRule:
    allowed_methods: tuple[str, ...]
    allowed_origins: tuple[str, ...]
    allowed_headers: tuple[str, ...] | None = None
    expose_headers: tuple[str, ...] | None = None
    id: str | None = None
    max_age_seconds: int | None = None


@dataclass(frozen=True)
class S3WebsiteConfig:
    index_document: str | None = None
    error_document: str | None = None
    # Host name; when set, index and error documents are not used
    redirect_all_requests_to: str | None = None


@dataclass(frozen=True)
class S3Args:
    """
    Arguments for S3Component.

    `name` is the bucket name and must follow S3 naming rules. Every other
    field left as None uses the secure default.
    """

    name: str
    force_destroy: bool = False
    object_ownership: str | None = None
    versioning: S3VersioningConfig | None = None
    encryption: S3EncryptionConfig | None = None
    # An empty tuple disables the default lifecycle rules
    lifecycle_rules: tuple[S3LifecycleRule, ...] | None = None
    notification: S3NotificationConfig | None = None
    logging: S3LoggingConfig | None = None
    cors_rules: tuple[S3CorsRule, ...] | None = None
    # "Enabled" or "Suspended"
    acceleration_status: str | None = None
    # Not expressible in CloudFormation; requesting it only raises a synth warning
    request_payer: str | None = None
    tags: dict[str, str] | None = None
    block_public_acls: bool | None = None
    block_public_policy: bool | None = None
    ignore_public_acls: bool | None = None
    restrict_public_buckets: bool | None = None
    policy: PolicyInput | None = None
    website: S3WebsiteConfig | None = None
    # Deny any request not sent over TLS
    enforce_ssl: bool = True
