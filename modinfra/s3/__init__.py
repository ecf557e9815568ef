from modinfra.s3.defaults import (
    S3_COMMON_EVENTS,
    S3_CORS_API_DEFAULTS,
    S3_CORS_WEB_DEFAULTS,
    S3_DEFAULT_TAGS,
    S3_ENCRYPTION_DEFAULTS,
    S3_LIFECYCLE_DEFAULTS,
    S3_OBJECT_OWNERSHIP_DEFAULT,
    S3_PUBLIC_ACCESS_BLOCK_DEFAULTS,
    S3_STORAGE_CLASSES,
    S3_VERSIONING_DEFAULTS,
    S3_WEBSITE_DEFAULTS,
    create_secure_bucket_policy,
    generate_secure_bucket_name,
    validate_bucket_name,
)
from modinfra.s3.s3 import S3Component
from modinfra.s3.types import (
    S3Args,
    S3CorsRule,
    S3EncryptionConfig,
    S3ExpirationRule,
    S3LifecycleRule,
    S3LoggingConfig,
    S3NoncurrentVersionTransitionRule,
    S3NotificationConfig,
    S3NotificationTarget,
    S3TransitionRule,
    S3VersioningConfig,
    S3WebsiteConfig,
)

__all__ = [
    "S3_COMMON_EVENTS",
    "S3_CORS_API_DEFAULTS",
    "S3_CORS_WEB_DEFAULTS",
    "S3_DEFAULT_TAGS",
    "S3_ENCRYPTION_DEFAULTS",
    "S3_LIFECYCLE_DEFAULTS",
    "S3_OBJECT_OWNERSHIP_DEFAULT",
    "S3_PUBLIC_ACCESS_BLOCK_DEFAULTS",
    "S3_STORAGE_CLASSES",
    "S3_VERSIONING_DEFAULTS",
    "S3_WEBSITE_DEFAULTS",
    "S3Args",
    "S3Component",
    "S3CorsRule",
    "S3EncryptionConfig",
    "S3ExpirationRule",
    "S3LifecycleRule",
    "S3LoggingConfig",
    "S3NoncurrentVersionTransitionRule",
    "S3NotificationConfig",
    "S3NotificationTarget",
    "S3TransitionRule",
    "S3VersioningConfig",
    "S3WebsiteConfig",
    "create_secure_bucket_policy",
    "generate_secure_bucket_name",
    "validate_bucket_name",
]
