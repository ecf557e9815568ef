"""Configuration types and well-known constants for the CloudWatch component."""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

LOG_RETENTION_DAYS: Mapping[str, int] = MappingProxyType(
    {
        "ONE_DAY": 1,
        "THREE_DAYS": 3,
        "FIVE_DAYS": 5,
        "ONE_WEEK": 7,
        "TWO_WEEKS": 14,
        "ONE_MONTH": 30,
        "TWO_MONTHS": 60,
        "THREE_MONTHS": 90,
        "FOUR_MONTHS": 120,
        "FIVE_MONTHS": 150,
        "SIX_MONTHS": 180,
        "ONE_YEAR": 365,
        "EIGHTEEN_MONTHS": 400,
        "TWO_YEARS": 731,
        "FIVE_YEARS": 1827,
        "TEN_YEARS": 3653,
        "NEVER_EXPIRE": 0,
    }
)

COMPARISON_OPERATORS: Mapping[str, str] = MappingProxyType(
    {
        "GREATER_THAN_THRESHOLD": "GreaterThanThreshold",
        "GREATER_THAN_OR_EQUAL_TO_THRESHOLD": "GreaterThanOrEqualToThreshold",
        "LESS_THAN_THRESHOLD": "LessThanThreshold",
        "LESS_THAN_OR_EQUAL_TO_THRESHOLD": "LessThanOrEqualToThreshold",
        # Anomaly detection bands
        "LESS_THAN_LOWER_OR_GREATER_THAN_UPPER_THRESHOLD": "LessThanLowerOrGreaterThanUpperThreshold",
        "LESS_THAN_LOWER_THRESHOLD": "LessThanLowerThreshold",
        "GREATER_THAN_UPPER_THRESHOLD": "GreaterThanUpperThreshold",
    }
)

ALARM_STATES: Mapping[str, str] = MappingProxyType(
    {"OK": "OK", "ALARM": "ALARM", "INSUFFICIENT_DATA": "INSUFFICIENT_DATA"}
)

STATISTICS: Mapping[str, str] = MappingProxyType(
    {
        "SAMPLE_COUNT": "SampleCount",
        "AVERAGE": "Average",
        "SUM": "Sum",
        "MINIMUM": "Minimum",
        "MAXIMUM": "Maximum",
    }
)

WIDGET_TYPES: Mapping[str, str] = MappingProxyType(
    {"METRIC": "metric", "LOG": "log", "TEXT": "text", "NUMBER": "number"}
)

METRIC_NAMESPACES: Mapping[str, str] = MappingProxyType(
    {
        "EC2": "AWS/EC2",
        "RDS": "AWS/RDS",
        "LAMBDA": "AWS/Lambda",
        "ALB": "AWS/ApplicationELB",
        "API_GATEWAY": "AWS/ApiGateway",
        "CLOUDFRONT": "AWS/CloudFront",
        "ECS": "AWS/ECS",
        "S3": "AWS/S3",
        "DYNAMODB": "AWS/DynamoDB",
        "SNS": "AWS/SNS",
        "SQS": "AWS/SQS",
        "CUSTOM": "Custom",
    }
)

COMMON_METRICS: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "EC2": MappingProxyType(
            {
                "CPU_UTILIZATION": "CPUUtilization",
                "DISK_READ_BYTES": "DiskReadBytes",
                "DISK_WRITE_BYTES": "DiskWriteBytes",
                "NETWORK_IN": "NetworkIn",
                "NETWORK_OUT": "NetworkOut",
                "STATUS_CHECK_FAILED": "StatusCheckFailed",
            }
        ),
        "RDS": MappingProxyType(
            {
                "CPU_UTILIZATION": "CPUUtilization",
                "DATABASE_CONNECTIONS": "DatabaseConnections",
                "FREE_STORAGE_SPACE": "FreeStorageSpace",
                "READ_LATENCY": "ReadLatency",
                "WRITE_LATENCY": "WriteLatency",
            }
        ),
        "LAMBDA": MappingProxyType(
            {
                "INVOCATIONS": "Invocations",
                "ERRORS": "Errors",
                "DURATION": "Duration",
                "THROTTLES": "Throttles",
                "CONCURRENT_EXECUTIONS": "ConcurrentExecutions",
            }
        ),
        "ALB": MappingProxyType(
            {
                "TARGET_RESPONSE_TIME": "TargetResponseTime",
                "HTTP_CODE_TARGET_4XX": "HTTPCode_Target_4XX_Count",
                "HTTP_CODE_TARGET_5XX": "HTTPCode_Target_5XX_Count",
                "HEALTHY_HOST_COUNT": "HealthyHostCount",
                "UNHEALTHY_HOST_COUNT": "UnHealthyHostCount",
            }
        ),
    }
)


@dataclass(frozen=True)
class LogGroupConfig:
    name: str
    # None uses the component default; 0 never expires
    retention_in_days: int | None = None
    # KMS key ARN
    kms_key_id: str | None = None
    # Keep the log group when the stack is deleted
    skip_destroy: bool | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class LogStreamConfig:
    name: str
    log_group_name: str


@dataclass(frozen=True)
class MetricAlarmConfig:
    name: str
    metric_name: str
    namespace: str
    threshold: float
    comparison_operator: str
    statistic: str | None = None
    period: int = 300
    evaluation_periods: int = 2
    description: str | None = None
    datapoints_to_alarm: int | None = None
    # "breaching", "notBreaching", "ignore" or "missing"
    treat_missing_data: str | None = None
    evaluate_low_sample_count_percentile: str | None = None
    # Percentile such as "p99"; replaces `statistic` when set
    extended_statistic: str | None = None
    dimensions: dict[str, str] | None = None
    # None notifies the component topic, an empty tuple notifies nobody
    alarm_actions: tuple[str, ...] | None = None
    ok_actions: tuple[str, ...] | None = None
    insufficient_data_actions: tuple[str, ...] | None = None
    actions_enabled: bool | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class CompositeAlarmConfig:
    name: str
    # Rule expression, e.g. 'ALARM("cpu-high") AND ALARM("memory-high")'
    alarm_rule: str
    description: str | None = None
    actions_enabled: bool | None = None
    alarm_actions: tuple[str, ...] | None = None
    ok_actions: tuple[str, ...] | None = None
    insufficient_data_actions: tuple[str, ...] | None = None
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class MetricTransformationConfig:
    metric_name: str
    metric_namespace: str
    metric_value: str
    default_value: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class MetricFilterConfig:
    name: str
    log_group_name: str
    filter_pattern: str
    metric_transformation: MetricTransformationConfig


@dataclass(frozen=True)
class DashboardWidgetConfig:
    type: str
    properties: dict[str, Any]
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class DashboardConfig:
    name: str
    # Complete dashboard JSON; takes precedence over `widgets`
    dashboard_body: str | None = None
    widgets: tuple[DashboardWidgetConfig, ...] | None = None


@dataclass(frozen=True)
class NotificationConfig:
    """
    Alarm notification topic.

    Set `topic_name` to create a topic owned by the component, or
    `topic_arn` to send notifications to an existing one.
    """

    topic_name: str | None = None
    topic_arn: str | None = None
    email_endpoints: tuple[str, ...] = ()
    sms_endpoints: tuple[str, ...] = ()
    https_endpoints: tuple[str, ...] = ()
    lambda_endpoints: tuple[str, ...] = ()
    sqs_endpoints: tuple[str, ...] = ()
    enable_encryption: bool | None = None
    # Defaults to the AWS managed key for SNS
    kms_key_id: str | None = None


@dataclass(frozen=True)
class CloudWatchArgs:
    name: str
    log_groups: tuple[LogGroupConfig, ...] = ()
    log_streams: tuple[LogStreamConfig, ...] = ()
    metric_alarms: tuple[MetricAlarmConfig, ...] = ()
    composite_alarms: tuple[CompositeAlarmConfig, ...] = ()
    metric_filters: tuple[MetricFilterConfig, ...] = ()
    dashboards: tuple[DashboardConfig, ...] = ()
    notifications: NotificationConfig | None = None
    default_retention_days: int | None = None
    default_kms_key_id: str | None = None
    tags: dict[str, str] | None = None


# =============================================================================
# Alarm templates
# =============================================================================


@dataclass(frozen=True)
class Ec2AlarmTemplate:
    instance_id: str
    enable_cpu_alarm: bool = True
    cpu_threshold: float = 80
    # Disk and memory metrics come from the CloudWatch agent
    enable_disk_space_alarm: bool = False
    disk_space_threshold: float = 90
    enable_memory_alarm: bool = False
    memory_threshold: float = 90


@dataclass(frozen=True)
class RdsAlarmTemplate:
    db_instance_id: str
    enable_cpu_alarm: bool = True
    cpu_threshold: float = 80
    enable_connection_alarm: bool = False
    connection_threshold: float = 80
    enable_free_storage_alarm: bool = False
    # Bytes
    free_storage_threshold: float = 2_000_000_000


@dataclass(frozen=True)
class LambdaAlarmTemplate:
    function_name: str
    enable_error_rate_alarm: bool = True
    error_rate_threshold: float = 5
    enable_duration_alarm: bool = False
    # Milliseconds
    duration_threshold: float = 30000
    enable_throttle_alarm: bool = False
    throttle_threshold: float = 1


@dataclass(frozen=True)
class AlbAlarmTemplate:
    load_balancer_name: str
    enable_response_time_alarm: bool = False
    # Seconds
    response_time_threshold: float = 1
    enable_4xx_error_alarm: bool = False
    error_threshold_4xx: float = 10
    enable_5xx_error_alarm: bool = False
    error_threshold_5xx: float = 5


@dataclass(frozen=True)
class AlarmTemplates:
    ec2: Ec2AlarmTemplate | None = None
    rds: RdsAlarmTemplate | None = None
    lambda_: LambdaAlarmTemplate | None = None
    alb: AlbAlarmTemplate | None = None
