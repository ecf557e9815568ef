"""
Secure defaults, builders and alarm presets for CloudWatch monitoring.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from modinfra.cloudwatch.types import (
    COMMON_METRICS,
    COMPARISON_OPERATORS,
    LOG_RETENTION_DAYS,
    METRIC_NAMESPACES,
    STATISTICS,
    WIDGET_TYPES,
    AlarmTemplates,
    DashboardWidgetConfig,
    LogGroupConfig,
    MetricAlarmConfig,
    MetricFilterConfig,
    MetricTransformationConfig,
    NotificationConfig,
)
from modinfra.merge import merge_tags


@dataclass(frozen=True)
class CloudWatchDefaults:
    retention_days: int = LOG_RETENTION_DAYS["THREE_MONTHS"]
    evaluation_periods: int = 2
    # Seconds
    period: int = 300
    statistic: str = STATISTICS["AVERAGE"]
    treat_missing_data: str = "notBreaching"
    actions_enabled: bool = True
    datapoints_to_alarm: int = 2
    enable_sns_encryption: bool = True
    sns_kms_key_id: str = "alias/aws/sns"
    skip_destroy: bool = False
    tags: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(
            {
                "Component": "CloudWatch",
                "ManagedBy": "modular-cdk-aws-framework",
                "SecurityLevel": "high",
                "Compliance": "required",
                "Monitoring": "enabled",
            }
        )
    )


CLOUDWATCH_DEFAULTS = CloudWatchDefaults()

# Filter patterns for common log events
LOG_PATTERNS: Mapping[str, str] = MappingProxyType(
    {
        "ERROR": "[ERROR]",
        "WARN": "[WARN]",
        "EXCEPTION": "Exception",
        "HTTP_4XX": '[status_code="4*"]',
        "HTTP_5XX": '[status_code="5*"]',
        "TIMEOUT": "timeout",
        "CONNECTION_ERROR": "connection error",
        "DATABASE_ERROR": "database error",
        "UNAUTHORIZED": "unauthorized",
        "FORBIDDEN": "forbidden",
        "LOGIN_FAILED": "login failed",
        "SLOW_QUERY": "[duration > 1000]",
        "HIGH_MEMORY": "high memory usage",
        # Structured (JSON) logs
        "JSON_ERROR": '{ $.level = "ERROR" }',
        "JSON_LATENCY_HIGH": "{ $.latency > 1000 }",
    }
)

DEFAULT_WIDGET_WIDTH = 12
DEFAULT_WIDGET_HEIGHT = 6
DEFAULT_WIDGET_REGION = "us-east-1"


# =============================================================================
# Config builders
# =============================================================================


def create_log_group_config(
    name: str,
    *,
    retention_in_days: int | None = None,
    kms_key_id: str | None = None,
    skip_destroy: bool | None = None,
    tags: Mapping[str, str] | None = None,
) -> LogGroupConfig:
    """Log group config with default retention, deletion behaviour and tags filled in."""
    return LogGroupConfig(
        name=name,
        retention_in_days=(
            CLOUDWATCH_DEFAULTS.retention_days if retention_in_days is None else retention_in_days
        ),
        kms_key_id=kms_key_id,
        skip_destroy=CLOUDWATCH_DEFAULTS.skip_destroy if skip_destroy is None else skip_destroy,
        tags=merge_tags(CLOUDWATCH_DEFAULTS.tags, tags),
    )


def create_metric_alarm_config(
    name: str,
    metric_name: str,
    namespace: str,
    threshold: float,
    comparison_operator: str = COMPARISON_OPERATORS["GREATER_THAN_THRESHOLD"],
    **options: Any,
) -> MetricAlarmConfig:
    """
    Metric alarm config with the default statistic, period and evaluation filled in.

    Any other MetricAlarmConfig field may be passed as a keyword argument.
    Datapoints to alarm defaults to 2, capped at the number of evaluation periods.

    Args:
        name: Alarm name
        metric_name: Metric to watch, e.g. "CPUUtilization"
        namespace: Metric namespace, e.g. "AWS/EC2"
        threshold: Value compared against the statistic
        comparison_operator: CloudWatch comparison operator name
    """
    evaluation_periods = options.pop("evaluation_periods", None)
    if evaluation_periods is None:
        evaluation_periods = CLOUDWATCH_DEFAULTS.evaluation_periods

    datapoints_to_alarm = options.pop("datapoints_to_alarm", None)
    if datapoints_to_alarm is None:
        datapoints_to_alarm = min(CLOUDWATCH_DEFAULTS.datapoints_to_alarm, evaluation_periods)

    def option(key: str, default: Any) -> Any:
        value = options.pop(key, None)
        return default if value is None else value

    return MetricAlarmConfig(
        name=name,
        metric_name=metric_name,
        namespace=namespace,
        threshold=threshold,
        comparison_operator=comparison_operator,
        description=option("description", f"Alarm for {metric_name} in {namespace}"),
        statistic=option("statistic", CLOUDWATCH_DEFAULTS.statistic),
        period=option("period", CLOUDWATCH_DEFAULTS.period),
        evaluation_periods=evaluation_periods,
        datapoints_to_alarm=datapoints_to_alarm,
        treat_missing_data=option("treat_missing_data", CLOUDWATCH_DEFAULTS.treat_missing_data),
        actions_enabled=option("actions_enabled", CLOUDWATCH_DEFAULTS.actions_enabled),
        tags=merge_tags(CLOUDWATCH_DEFAULTS.tags, options.pop("tags", None)),
        **options,
    )


def create_notification_config(**options: Any) -> NotificationConfig:
    """Notification config with SNS encryption on unless explicitly disabled."""
    if options.get("enable_encryption") is None:
        options["enable_encryption"] = CLOUDWATCH_DEFAULTS.enable_sns_encryption
    return NotificationConfig(**options)


def _widget_position(position: Mapping[str, int] | None) -> dict[str, int]:
    position = position or {}
    return {
        "x": position.get("x", 0),
        "y": position.get("y", 0),
        "width": position.get("width", DEFAULT_WIDGET_WIDTH),
        "height": position.get("height", DEFAULT_WIDGET_HEIGHT),
    }


def create_metric_widget(
    title: str,
    metrics: Sequence[Mapping[str, Any]],
    position: Mapping[str, int] | None = None,
    region: str = DEFAULT_WIDGET_REGION,
) -> DashboardWidgetConfig:
    """
    Time series widget for one or more metrics.

    Each metric is a mapping with `namespace`, `metric_name` and optionally
    `dimensions` and `statistic` (Average when omitted).
    """
    formatted_metrics = []
    for metric in metrics:
        dimensions = metric.get("dimensions") or {}
        formatted_metrics.append(
            [
                metric["namespace"],
                metric["metric_name"],
                *[part for item in dimensions.items() for part in item],
                {"stat": metric.get("statistic") or STATISTICS["AVERAGE"]},
            ]
        )

    return DashboardWidgetConfig(
        type=WIDGET_TYPES["METRIC"],
        properties={
            "metrics": formatted_metrics,
            "view": "timeSeries",
            "stacked": False,
            "region": region,
            "title": title,
            "period": CLOUDWATCH_DEFAULTS.period,
            "yAxis": {"left": {"min": 0}},
        },
        **_widget_position(position),
    )


def create_log_widget(
    title: str,
    log_groups: Sequence[str],
    query: str,
    position: Mapping[str, int] | None = None,
    region: str = DEFAULT_WIDGET_REGION,
) -> DashboardWidgetConfig:
    """Logs Insights widget running `query` over the given log groups."""
    sources = "', '".join(log_groups)
    return DashboardWidgetConfig(
        type=WIDGET_TYPES["LOG"],
        properties={
            "query": f"SOURCE '{sources}'\n{query}",
            "region": region,
            "title": title,
        },
        **_widget_position(position),
    )


def create_metric_filter(
    name: str,
    log_group_name: str,
    filter_pattern: str,
    metric_name: str,
    metric_namespace: str,
    metric_value: str = "1",
    *,
    default_value: float = 0,
    unit: str | None = None,
) -> MetricFilterConfig:
    """Metric filter that publishes `metric_value` for every matching log event."""
    return MetricFilterConfig(
        name=name,
        log_group_name=log_group_name,
        filter_pattern=filter_pattern,
        metric_transformation=MetricTransformationConfig(
            metric_name=metric_name,
            metric_namespace=metric_namespace,
            metric_value=metric_value,
            default_value=default_value,
            unit=unit,
        ),
    )


# =============================================================================
# Alarm presets
# =============================================================================


def create_alarm_templates(templates: AlarmTemplates) -> list[MetricAlarmConfig]:
    """
    Standard alarms for EC2 instances, RDS instances, Lambda functions and ALBs.

    Only the alarms enabled on each template are returned. Alarm names are
    derived from the resource identifier, e.g. "i-0abc-high-cpu".
    """
    alarms: list[MetricAlarmConfig] = []
    gt = COMPARISON_OPERATORS["GREATER_THAN_THRESHOLD"]

    ec2 = templates.ec2
    if ec2:
        dimensions = {"InstanceId": ec2.instance_id}
        if ec2.enable_cpu_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{ec2.instance_id}-high-cpu",
                    COMMON_METRICS["EC2"]["CPU_UTILIZATION"],
                    METRIC_NAMESPACES["EC2"],
                    ec2.cpu_threshold,
                    gt,
                    description=f"High CPU utilization for EC2 instance {ec2.instance_id}",
                    dimensions=dimensions,
                    evaluation_periods=3,
                )
            )
        if ec2.enable_disk_space_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{ec2.instance_id}-low-disk-space",
                    "DiskSpaceUtilization",
                    "System/Linux",
                    ec2.disk_space_threshold,
                    gt,
                    description=f"Low disk space for EC2 instance {ec2.instance_id}",
                    dimensions=dimensions,
                    evaluation_periods=2,
                )
            )
        if ec2.enable_memory_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{ec2.instance_id}-high-memory",
                    "MemoryUtilization",
                    "System/Linux",
                    ec2.memory_threshold,
                    gt,
                    description=f"High memory utilization for EC2 instance {ec2.instance_id}",
                    dimensions=dimensions,
                    evaluation_periods=3,
                )
            )

    rds = templates.rds
    if rds:
        dimensions = {"DBInstanceIdentifier": rds.db_instance_id}
        if rds.enable_cpu_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{rds.db_instance_id}-high-cpu",
                    COMMON_METRICS["RDS"]["CPU_UTILIZATION"],
                    METRIC_NAMESPACES["RDS"],
                    rds.cpu_threshold,
                    gt,
                    description=f"High CPU utilization for RDS instance {rds.db_instance_id}",
                    dimensions=dimensions,
                    evaluation_periods=3,
                )
            )
        if rds.enable_connection_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{rds.db_instance_id}-high-connections",
                    COMMON_METRICS["RDS"]["DATABASE_CONNECTIONS"],
                    METRIC_NAMESPACES["RDS"],
                    rds.connection_threshold,
                    gt,
                    description=(
                        f"High database connections for RDS instance {rds.db_instance_id}"
                    ),
                    dimensions=dimensions,
                    evaluation_periods=2,
                )
            )
        if rds.enable_free_storage_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{rds.db_instance_id}-low-free-storage",
                    COMMON_METRICS["RDS"]["FREE_STORAGE_SPACE"],
                    METRIC_NAMESPACES["RDS"],
                    rds.free_storage_threshold,
                    COMPARISON_OPERATORS["LESS_THAN_THRESHOLD"],
                    description=f"Low free storage space for RDS instance {rds.db_instance_id}",
                    dimensions=dimensions,
                    evaluation_periods=2,
                )
            )

    function = templates.lambda_
    if function:
        dimensions = {"FunctionName": function.function_name}
        if function.enable_error_rate_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{function.function_name}-high-error-rate",
                    COMMON_METRICS["LAMBDA"]["ERRORS"],
                    METRIC_NAMESPACES["LAMBDA"],
                    function.error_rate_threshold,
                    gt,
                    description=f"High error rate for Lambda function {function.function_name}",
                    dimensions=dimensions,
                    evaluation_periods=2,
                    statistic=STATISTICS["SUM"],
                )
            )
        if function.enable_duration_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{function.function_name}-high-duration",
                    COMMON_METRICS["LAMBDA"]["DURATION"],
                    METRIC_NAMESPACES["LAMBDA"],
                    function.duration_threshold,
                    gt,
                    description=f"High duration for Lambda function {function.function_name}",
                    dimensions=dimensions,
                    evaluation_periods=3,
                    statistic=STATISTICS["AVERAGE"],
                )
            )
        if function.enable_throttle_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{function.function_name}-throttles",
                    COMMON_METRICS["LAMBDA"]["THROTTLES"],
                    METRIC_NAMESPACES["LAMBDA"],
                    function.throttle_threshold,
                    COMPARISON_OPERATORS["GREATER_THAN_OR_EQUAL_TO_THRESHOLD"],
                    description=(
                        f"Throttles detected for Lambda function {function.function_name}"
                    ),
                    dimensions=dimensions,
                    evaluation_periods=1,
                    statistic=STATISTICS["SUM"],
                )
            )

    alb = templates.alb
    if alb:
        dimensions = {"LoadBalancer": alb.load_balancer_name}
        if alb.enable_response_time_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{alb.load_balancer_name}-high-response-time",
                    COMMON_METRICS["ALB"]["TARGET_RESPONSE_TIME"],
                    METRIC_NAMESPACES["ALB"],
                    alb.response_time_threshold,
                    gt,
                    description=f"High response time for ALB {alb.load_balancer_name}",
                    dimensions=dimensions,
                    evaluation_periods=3,
                    statistic=STATISTICS["AVERAGE"],
                )
            )
        if alb.enable_4xx_error_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{alb.load_balancer_name}-high-4xx-errors",
                    COMMON_METRICS["ALB"]["HTTP_CODE_TARGET_4XX"],
                    METRIC_NAMESPACES["ALB"],
                    alb.error_threshold_4xx,
                    gt,
                    description=f"High 4xx error rate for ALB {alb.load_balancer_name}",
                    dimensions=dimensions,
                    evaluation_periods=2,
                    statistic=STATISTICS["SUM"],
                )
            )
        if alb.enable_5xx_error_alarm:
            alarms.append(
                create_metric_alarm_config(
                    f"{alb.load_balancer_name}-high-5xx-errors",
                    COMMON_METRICS["ALB"]["HTTP_CODE_TARGET_5XX"],
                    METRIC_NAMESPACES["ALB"],
                    alb.error_threshold_5xx,
                    gt,
                    description=f"High 5xx error rate for ALB {alb.load_balancer_name}",
                    dimensions=dimensions,
                    evaluation_periods=2,
                    statistic=STATISTICS["SUM"],
                )
            )

    return alarms


# =============================================================================
# Validation and rendering
# =============================================================================


def validate_alarm_config(config: MetricAlarmConfig) -> list[str]:
    """Return the problems with an alarm definition; empty when valid."""
    errors = []

    if not config.name:
        errors.append("Alarm name is required")

    if not config.metric_name:
        errors.append("Metric name is required")

    if not config.namespace:
        errors.append("Namespace is required")

    if config.threshold is None:
        errors.append("Threshold is required")

    if not config.comparison_operator:
        errors.append("Comparison operator is required")
    elif config.comparison_operator not in COMPARISON_OPERATORS.values():
        errors.append(f"Unknown comparison operator {config.comparison_operator}")

    if not config.statistic and not config.extended_statistic:
        errors.append("Either statistic or extended statistic is required")

    if config.period < 60:
        errors.append("Period must be at least 60 seconds")
    elif config.period % 60:
        errors.append("Period must be a multiple of 60 seconds")

    if config.evaluation_periods < 1:
        errors.append("Evaluation periods must be at least 1")

    if config.datapoints_to_alarm and config.datapoints_to_alarm > config.evaluation_periods:
        errors.append("Datapoints to alarm cannot exceed evaluation periods")

    return errors


def generate_dashboard_json(widgets: Sequence[DashboardWidgetConfig]) -> str:
    """Render widgets as a CloudWatch dashboard body."""
    return json.dumps(
        {
            "widgets": [
                {
                    "type": widget.type,
                    "x": widget.x,
                    "y": widget.y,
                    "width": widget.width,
                    "height": widget.height,
                    "properties": widget.properties,
                }
                for widget in widgets
            ]
        }
    )
