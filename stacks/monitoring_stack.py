"""
Monitoring stack - application log group, error alarms and dashboard.

Application errors are counted by a metric filter on the log group and
alarm through an encrypted SNS topic.
"""

from aws_cdk import CfnOutput, Stack
from constructs import Construct

from modinfra.cloudwatch import (
    LOG_PATTERNS,
    CloudWatchArgs,
    CloudWatchComponent,
    DashboardConfig,
    create_log_group_config,
    create_log_widget,
    create_metric_alarm_config,
    create_metric_filter,
    create_metric_widget,
    create_notification_config,
)


class MonitoringStack(Stack):
    """CloudWatch logging and alarms for the application."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        alarm_email: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        resource_prefix = self.node.try_get_context("resource_prefix") or "modinfra"
        log_group_name = f"/{resource_prefix}/application"
        metric_namespace = f"{resource_prefix.title()}/Application"

        self.monitoring = CloudWatchComponent(
            self,
            "Monitoring",
            CloudWatchArgs(
                name=resource_prefix,
                notifications=create_notification_config(
                    topic_name=f"{resource_prefix}-alarms",
                    email_endpoints=(alarm_email,) if alarm_email else (),
                ),
                log_groups=(create_log_group_config(log_group_name),),
                metric_filters=(
                    create_metric_filter(
                        f"{resource_prefix}-application-errors",
                        log_group_name,
                        LOG_PATTERNS["JSON_ERROR"],
                        "ApplicationErrors",
                        metric_namespace,
                    ),
                ),
                metric_alarms=(
                    create_metric_alarm_config(
                        f"{resource_prefix}-application-errors",
                        "ApplicationErrors",
                        metric_namespace,
                        10,
                        description="Application logged more than 10 errors in 5 minutes",
                        statistic="Sum",
                    ),
                ),
                dashboards=(
                    DashboardConfig(
                        name=f"{resource_prefix}-application",
                        widgets=(
                            create_metric_widget(
                                "Application errors",
                                [
                                    {
                                        "namespace": metric_namespace,
                                        "metric_name": "ApplicationErrors",
                                        "statistic": "Sum",
                                    }
                                ],
                                region=self.region,
                            ),
                            create_log_widget(
                                "Recent errors",
                                [log_group_name],
                                "fields @timestamp, @message "
                                "| filter level = 'ERROR' "
                                "| sort @timestamp desc | limit 50",
                                position={"x": 12, "y": 0},
                                region=self.region,
                            ),
                        ),
                    ),
                ),
            ),
        )

        self.log_group_arn = self.monitoring.log_groups[log_group_name].attr_arn

        CfnOutput(
            self,
            "AlarmTopicArn",
            value=self.monitoring.notification_topic_arn,
            description="SNS topic receiving application alarms",
        )
