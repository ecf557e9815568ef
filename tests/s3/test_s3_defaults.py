"""
Tests for S3 defaults, naming rules and the secure bucket policy.
"""

import json
import re

import pytest

from modinfra.s3 import (
    S3_DEFAULT_TAGS,
    S3_ENCRYPTION_DEFAULTS,
    S3_LIFECYCLE_DEFAULTS,
    S3_PUBLIC_ACCESS_BLOCK_DEFAULTS,
    S3_VERSIONING_DEFAULTS,
    create_secure_bucket_policy,
    generate_secure_bucket_name,
    validate_bucket_name,
)


class TestSecureDefaults:
    """Tests for the default configuration tables."""

    def test_encryption_and_versioning(self):
        """Test that buckets are encrypted and versioned unless overridden."""
        assert S3_ENCRYPTION_DEFAULTS.sse_algorithm == "AES256"
        assert S3_ENCRYPTION_DEFAULTS.bucket_key_enabled is True
        assert S3_VERSIONING_DEFAULTS.enabled is True
        assert S3_VERSIONING_DEFAULTS.mfa_delete is False

    def test_public_access_fully_blocked(self):
        """Test that all four public access settings default to on."""
        assert S3_PUBLIC_ACCESS_BLOCK_DEFAULTS.block_public_acls
        assert S3_PUBLIC_ACCESS_BLOCK_DEFAULTS.block_public_policy
        assert S3_PUBLIC_ACCESS_BLOCK_DEFAULTS.ignore_public_acls
        assert S3_PUBLIC_ACCESS_BLOCK_DEFAULTS.restrict_public_buckets

    def test_lifecycle_rules(self):
        """Test the tiering, multipart cleanup and noncurrent expiry rules."""
        rules = {rule.id: rule for rule in S3_LIFECYCLE_DEFAULTS}

        assert set(rules) == {
            "intelligent-tiering",
            "abort-incomplete-multipart-uploads",
            "noncurrent-version-expiration",
        }
        tiering = [(t.days, t.storage_class) for t in rules["intelligent-tiering"].transitions]
        assert tiering == [(30, "STANDARD_IA"), (90, "GLACIER"), (365, "DEEP_ARCHIVE")]
        assert rules["abort-incomplete-multipart-uploads"].abort_incomplete_multipart_upload_days == 7
        assert rules["noncurrent-version-expiration"].noncurrent_version_expiration_days == 30

    def test_default_tags_immutable(self):
        """Test that the shared default tags cannot be modified."""
        with pytest.raises(TypeError):
            S3_DEFAULT_TAGS["Component"] = "other"  # type: ignore[index]


class TestValidateBucketName:
    """Tests for validate_bucket_name."""

    @pytest.mark.parametrize(
        "name", ["my-bucket", "abc", "logs.example.com", "a" * 63, "bucket-2024.archive"]
    )
    def test_valid_names(self, name):
        """Test names that follow the S3 rules."""
        assert validate_bucket_name(name) == []

    @pytest.mark.parametrize(
        ("name", "message"),
        [
            ("ab", "between 3 and 63 characters"),
            ("a" * 64, "between 3 and 63 characters"),
            ("MyBucket", "must be lowercase"),
            ("my_bucket", "can only contain lowercase letters"),
            ("my..bucket", "consecutive periods"),
            ("-bucket", "cannot start or end"),
            ("bucket.", "cannot start or end"),
            ("192.168.1.1", "formatted as an IP address"),
        ],
    )
    def test_invalid_names(self, name, message):
        """Test that each rule produces its own error."""
        errors = validate_bucket_name(name)
        assert any(message in error for error in errors), errors

    def test_multiple_errors_reported(self):
        """Test that every violated rule is listed."""
        errors = validate_bucket_name("-Bad_Name")
        assert len(errors) >= 3


class TestGenerateSecureBucketName:
    """Tests for generate_secure_bucket_name."""

    def test_name_is_valid(self):
        """Test that generated names pass validation."""
        name = generate_secure_bucket_name("Acme Assets")
        assert validate_bucket_name(name) == []
        assert name.startswith("acme-assets-")

    def test_suffix_format(self):
        """Test the timestamp and random suffix."""
        name = generate_secure_bucket_name("acme")
        assert re.fullmatch(r"acme-[0-9a-z]+-[0-9a-z]{6}", name)

    def test_truncated_to_63_characters(self):
        """Test that long bases are cut to the S3 limit."""
        assert len(generate_secure_bucket_name("x" * 80)) <= 63

    def test_names_are_unique(self):
        """Test that two calls give different names."""
        assert generate_secure_bucket_name("acme") != generate_secure_bucket_name("acme")


class TestCreateSecureBucketPolicy:
    """Tests for create_secure_bucket_policy."""

    def _statements(self, **kwargs) -> dict:
        policy = json.loads(create_secure_bucket_policy("acme-assets", **kwargs))
        assert policy["Version"] == "2012-10-17"
        return {statement["Sid"]: statement for statement in policy["Statement"]}

    def test_default_statements(self):
        """Test that TLS and encryption are enforced by default."""
        statements = self._statements()

        assert set(statements) == {"DenyInsecureTransport", "DenyUnencryptedObjectUploads"}
        transport = statements["DenyInsecureTransport"]
        assert transport["Effect"] == "Deny"
        assert transport["Resource"] == ["arn:aws:s3:::acme-assets", "arn:aws:s3:::acme-assets/*"]
        assert transport["Condition"] == {"Bool": {"aws:SecureTransport": "false"}}
        uploads = statements["DenyUnencryptedObjectUploads"]
        assert uploads["Condition"] == {
            "StringNotEquals": {"s3:x-amz-server-side-encryption": "AES256"}
        }

    def test_kms_algorithm(self):
        """Test that the required upload header follows the algorithm."""
        statements = self._statements(sse_algorithm="aws:kms")
        condition = statements["DenyUnencryptedObjectUploads"]["Condition"]
        assert condition["StringNotEquals"]["s3:x-amz-server-side-encryption"] == "aws:kms"

    def test_cloudfront_and_principals(self):
        """Test the optional allow statements."""
        statements = self._statements(
            allow_cloudfront=True,
            allowed_principals=["arn:aws:iam::123456789012:role/reader"],
        )

        assert statements["AllowCloudFrontAccess"]["Principal"] == {
            "Service": "cloudfront.amazonaws.com"
        }
        assert statements["AllowSpecificPrincipals"]["Principal"] == {
            "AWS": ["arn:aws:iam::123456789012:role/reader"]
        }

    def test_all_statements_disabled(self):
        """Test that every statement can be turned off."""
        assert self._statements(deny_insecure_transport=False, enforce_encryption=False) == {}
