"""
Secure defaults, naming rules and policy helpers for S3 buckets.
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from modinfra.iam.types import POLICY_VERSION
from modinfra.naming import random_token, timestamp_token
from modinfra.s3.types import (
    S3CorsRule,
    S3EncryptionConfig,
    S3LifecycleRule,
    S3TransitionRule,
    S3VersioningConfig,
    S3WebsiteConfig,
)

S3_ENCRYPTION_DEFAULTS = S3EncryptionConfig(sse_algorithm="AES256", bucket_key_enabled=True)

S3_VERSIONING_DEFAULTS = S3VersioningConfig(enabled=True, mfa_delete=False)


@dataclass(frozen=True)
class PublicAccessBlockDefaults:
    block_public_acls: bool = True
    block_public_policy: bool = True
    ignore_public_acls: bool = True
    restrict_public_buckets: bool = True


S3_PUBLIC_ACCESS_BLOCK_DEFAULTS = PublicAccessBlockDefaults()

S3_OBJECT_OWNERSHIP_DEFAULT = "BucketOwnerPreferred"

S3_LIFECYCLE_DEFAULTS: tuple[S3LifecycleRule, ...] = (
    S3LifecycleRule(
        id="intelligent-tiering",
        transitions=(
            S3TransitionRule(days=30, storage_class="STANDARD_IA"),
            S3TransitionRule(days=90, storage_class="GLACIER"),
            S3TransitionRule(days=365, storage_class="DEEP_ARCHIVE"),
        ),
    ),
    S3LifecycleRule(
        id="abort-incomplete-multipart-uploads",
        abort_incomplete_multipart_upload_days=7,
    ),
    S3LifecycleRule(
        id="noncurrent-version-expiration",
        noncurrent_version_expiration_days=30,
    ),
)

S3_WEBSITE_DEFAULTS = S3WebsiteConfig(index_document="index.html", error_document="error.html")

S3_DEFAULT_TAGS: Mapping[str, str] = MappingProxyType(
    {
        "ManagedBy": "modular-cdk-aws-framework",
        "Component": "S3",
        "Environment": "production",
        "SecurityLevel": "high",
    }
)

S3_COMMON_EVENTS: Mapping[str, str] = MappingProxyType(
    {
        # Object events
        "OBJECT_CREATED": "s3:ObjectCreated:*",
        "OBJECT_CREATED_PUT": "s3:ObjectCreated:Put",
        "OBJECT_CREATED_POST": "s3:ObjectCreated:Post",
        "OBJECT_CREATED_COPY": "s3:ObjectCreated:Copy",
        "OBJECT_CREATED_MULTIPART": "s3:ObjectCreated:CompleteMultipartUpload",
        # Object removal events
        "OBJECT_REMOVED": "s3:ObjectRemoved:*",
        "OBJECT_REMOVED_DELETE": "s3:ObjectRemoved:Delete",
        "OBJECT_REMOVED_DELETE_MARKER": "s3:ObjectRemoved:DeleteMarkerCreated",
        # Lifecycle events
        "OBJECT_TRANSITION": "s3:ObjectTransition",
        "OBJECT_RESTORE": "s3:ObjectRestore:*",
        "OBJECT_RESTORE_POST": "s3:ObjectRestore:Post",
        "OBJECT_RESTORE_COMPLETED": "s3:ObjectRestore:Completed",
        # Replication events
        "REPLICATION": "s3:Replication:*",
        "REPLICATION_FAILED": "s3:Replication:OperationFailedReplication",
        "REPLICATION_MISSED": "s3:Replication:OperationMissedThreshold",
        "REPLICATION_COMPLETED": "s3:Replication:OperationReplicatedAfterThreshold",
        "REPLICATION_NOT_TRACKED": "s3:Replication:OperationNotTracked",
    }
)

S3_STORAGE_CLASSES: tuple[str, ...] = (
    "STANDARD",
    "STANDARD_IA",
    "ONEZONE_IA",
    "REDUCED_REDUNDANCY",
    "GLACIER",
    "GLACIER_IR",
    "DEEP_ARCHIVE",
    "INTELLIGENT_TIERING",
)

# Read-only access from browsers
S3_CORS_WEB_DEFAULTS = S3CorsRule(
    allowed_headers=("*",),
    allowed_methods=("GET", "HEAD"),
    allowed_origins=("*",),
    max_age_seconds=3600,
)

# Authenticated API clients; origins must be supplied by the caller
S3_CORS_API_DEFAULTS = S3CorsRule(
    allowed_headers=("Content-Type", "Authorization"),
    allowed_methods=("GET", "POST", "PUT", "DELETE", "HEAD"),
    allowed_origins=(),
    expose_headers=("ETag",),
    max_age_seconds=86400,
)

_IP_ADDRESS_PATTERN = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


def generate_secure_bucket_name(base_name: str) -> str:
    """
    Build a globally unique bucket name from `base_name`.

    Appends a base36 timestamp and a random suffix, then lowercases and
    strips characters S3 does not allow. The result is at most 63 characters.
    """
    full_name = f"{base_name}-{timestamp_token()}-{random_token()}".lower()
    full_name = re.sub(r"[^a-z0-9.-]", "-", full_name)
    full_name = re.sub(r"\.+", ".", full_name)
    full_name = re.sub(r"-+", "-", full_name)
    full_name = re.sub(r"^[.-]|[.-]$", "", full_name)
    return re.sub(r"[.-]+$", "", full_name[:63])


def validate_bucket_name(bucket_name: str) -> list[str]:
    """Return the S3 naming rules `bucket_name` violates; empty when valid."""
    errors = []

    if not 3 <= len(bucket_name) <= 63:
        errors.append("Bucket name must be between 3 and 63 characters long")

    if bucket_name != bucket_name.lower():
        errors.append("Bucket name must be lowercase")

    if not re.fullmatch(r"[a-z0-9.-]+", bucket_name):
        errors.append(
            "Bucket name can only contain lowercase letters, numbers, periods, and hyphens"
        )

    if ".." in bucket_name:
        errors.append("Bucket name cannot contain consecutive periods")

    if re.search(r"^[.-]|[.-]$", bucket_name):
        errors.append("Bucket name cannot start or end with a period or hyphen")

    if _IP_ADDRESS_PATTERN.match(bucket_name):
        errors.append("Bucket name cannot be formatted as an IP address")

    return errors


def create_secure_bucket_policy(
    bucket_name: str,
    *,
    allow_cloudfront: bool = False,
    allowed_principals: list[str] | None = None,
    deny_insecure_transport: bool = True,
    enforce_encryption: bool = True,
    sse_algorithm: str = "AES256",
) -> str:
    """
    Bucket policy JSON for common hardening and access patterns.

    Args:
        bucket_name: Bucket the policy is attached to.
        allow_cloudfront: Let the CloudFront service principal read objects.
        allowed_principals: Principal ARNs granted get/put/delete on objects.
        deny_insecure_transport: Deny any request made without TLS.
        enforce_encryption: Deny uploads that do not request `sse_algorithm`.
        sse_algorithm: Server-side encryption header value uploads must carry.
    """
    bucket_arn = f"arn:aws:s3:::{bucket_name}"
    statements = []

    if deny_insecure_transport:
        statements.append(
            {
                "Sid": "DenyInsecureTransport",
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:*",
                "Resource": [bucket_arn, f"{bucket_arn}/*"],
                "Condition": {"Bool": {"aws:SecureTransport": "false"}},
            }
        )

    if enforce_encryption:
        statements.append(
            {
                "Sid": "DenyUnencryptedObjectUploads",
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:PutObject",
                "Resource": f"{bucket_arn}/*",
                "Condition": {
                    "StringNotEquals": {"s3:x-amz-server-side-encryption": sse_algorithm}
                },
            }
        )

    if allow_cloudfront:
        statements.append(
            {
                "Sid": "AllowCloudFrontAccess",
                "Effect": "Allow",
                "Principal": {"Service": "cloudfront.amazonaws.com"},
                "Action": "s3:GetObject",
                "Resource": f"{bucket_arn}/*",
            }
        )

    if allowed_principals:
        statements.append(
            {
                "Sid": "AllowSpecificPrincipals",
                "Effect": "Allow",
                "Principal": {"AWS": list(allowed_principals)},
                "Action": ["s3:GetObject", "s3:PutObject", "s3:DeleteObject"],
                "Resource": f"{bucket_arn}/*",
            }
        )

    return json.dumps({"Version": POLICY_VERSION, "Statement": statements}, indent=2)
