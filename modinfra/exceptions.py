"""Component-level exceptions."""


class ModInfraError(Exception):
    """Base exception for infrastructure component errors."""

    pass


class ConfigurationError(ModInfraError):
    """Raised when component arguments fail validation."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class VpcConfigurationError(ConfigurationError):
    """Raised when the VPC address block or zone count cannot be used."""

    pass


class BucketNameError(ConfigurationError):
    """Raised when a bucket name violates S3 naming rules."""

    pass


class IamNameError(ConfigurationError):
    """Raised when a role or policy name violates IAM naming rules."""

    pass


class AlarmConfigurationError(ConfigurationError):
    """Raised when a metric alarm definition is incomplete or inconsistent."""

    pass


class DashboardConfigurationError(ConfigurationError):
    """Raised when a dashboard has neither a body nor widgets."""

    pass


class PolicyDocumentError(ModInfraError):
    """Raised when raw policy text is not a JSON object."""

    pass


class ResourceNotFoundError(ModInfraError):
    """Raised when a grant refers to a resource the component did not create."""

    pass
