from modinfra.cloudwatch.cloudwatch import ArnAlarmAction, CloudWatchComponent
from modinfra.cloudwatch.defaults import (
    CLOUDWATCH_DEFAULTS,
    LOG_PATTERNS,
    create_alarm_templates,
    create_log_group_config,
    create_log_widget,
    create_metric_alarm_config,
    create_metric_filter,
    create_metric_widget,
    create_notification_config,
    generate_dashboard_json,
    validate_alarm_config,
)
from modinfra.cloudwatch.types import (
    ALARM_STATES,
    COMMON_METRICS,
    COMPARISON_OPERATORS,
    LOG_RETENTION_DAYS,
    METRIC_NAMESPACES,
    STATISTICS,
    WIDGET_TYPES,
    AlarmTemplates,
    AlbAlarmTemplate,
    CloudWatchArgs,
    CompositeAlarmConfig,
    DashboardConfig,
    DashboardWidgetConfig,
    Ec2AlarmTemplate,
    LambdaAlarmTemplate,
    LogGroupConfig,
    LogStreamConfig,
    MetricAlarmConfig,
    MetricFilterConfig,
    MetricTransformationConfig,
    NotificationConfig,
    RdsAlarmTemplate,
)

__all__ = [
    "ALARM_STATES",
    "CLOUDWATCH_DEFAULTS",
    "COMMON_METRICS",
    "COMPARISON_OPERATORS",
    "LOG_PATTERNS",
    "LOG_RETENTION_DAYS",
    "METRIC_NAMESPACES",
    "STATISTICS",
    "WIDGET_TYPES",
    "AlarmTemplates",
    "AlbAlarmTemplate",
    "ArnAlarmAction",
    "CloudWatchArgs",
    "CloudWatchComponent",
    "CompositeAlarmConfig",
    "DashboardConfig",
    "DashboardWidgetConfig",
    "Ec2AlarmTemplate",
    "LambdaAlarmTemplate",
    "LogGroupConfig",
    "LogStreamConfig",
    "MetricAlarmConfig",
    "MetricFilterConfig",
    "MetricTransformationConfig",
    "NotificationConfig",
    "RdsAlarmTemplate",
    "create_alarm_templates",
    "create_log_group_config",
    "create_log_widget",
    "create_metric_alarm_config",
    "create_metric_filter",
    "create_metric_widget",
    "create_notification_config",
    "generate_dashboard_json",
    "validate_alarm_config",
]
