"""
CloudWatch component - logging, metrics, alarms and dashboards.

Provides:
- Log groups with bounded retention, optional KMS encryption and streams
- Metric alarms and composite alarms notifying an encrypted SNS topic
- Metric filters turning log patterns into metrics
- Dashboards from raw JSON or widget definitions
"""

import re
from typing import Any

import jsii
from aws_cdk import Duration, RemovalPolicy, Tags
from aws_cdk import aws_cloudwatch as cloudwatch
from aws_cdk import aws_cloudwatch_actions as cw_actions
from aws_cdk import aws_logs as logs
from aws_cdk import aws_sns as sns
from aws_cdk import aws_sns_subscriptions as sns_subscriptions
from constructs import Construct

from modinfra.cloudwatch.defaults import (
    CLOUDWATCH_DEFAULTS,
    create_metric_alarm_config,
    generate_dashboard_json,
    validate_alarm_config,
)
from modinfra.cloudwatch.types import (
    LOG_RETENTION_DAYS,
    CloudWatchArgs,
    CompositeAlarmConfig,
    DashboardConfig,
    LogGroupConfig,
    LogStreamConfig,
    MetricAlarmConfig,
    MetricFilterConfig,
    NotificationConfig,
)
from modinfra.exceptions import AlarmConfigurationError, DashboardConfigurationError
from modinfra.logging import get_logger
from modinfra.merge import merge_tags
from modinfra.naming import logical_id

logger = get_logger(__name__)


def _enum_member(value: str) -> str:
    # "GreaterThanThreshold" -> "GREATER_THAN_THRESHOLD", "notBreaching" -> "NOT_BREACHING"
    return re.sub(r"(?<!^)(?=[A-Z])", "_", value).upper()


@jsii.implements(cloudwatch.IAlarmAction)
class ArnAlarmAction:
    """Alarm action targeting an existing ARN (SNS topic, Auto Scaling policy, ...)."""

    def __init__(self, arn: str) -> None:
        self.arn = arn

    def bind(self, scope: Construct, alarm: cloudwatch.IAlarm) -> cloudwatch.AlarmActionConfig:
        return cloudwatch.AlarmActionConfig(alarm_action_arn=self.arn)


class CloudWatchComponent(Construct):
    """
    Monitoring resources for one application or environment.

    Attributes:
        topic: Notification topic (owned or imported), or None
        log_groups / log_streams / metric_alarms / composite_alarms /
        metric_filters / dashboards: Resources keyed by their configured name
    """

    def __init__(self, scope: Construct, construct_id: str, args: CloudWatchArgs) -> None:
        super().__init__(scope, construct_id)

        self.component_name = args.name
        self.default_retention_days = args.default_retention_days
        self.default_kms_key_id = args.default_kms_key_id
        self.topic: sns.ITopic | None = None
        self.log_groups: dict[str, logs.CfnLogGroup] = {}
        self.log_streams: dict[str, logs.CfnLogStream] = {}
        self.metric_alarms: dict[str, cloudwatch.Alarm] = {}
        self.composite_alarms: dict[str, cloudwatch.CompositeAlarm] = {}
        self.metric_filters: dict[str, logs.CfnMetricFilter] = {}
        self.dashboards: dict[str, cloudwatch.CfnDashboard] = {}

        for key, value in merge_tags(CLOUDWATCH_DEFAULTS.tags, args.tags).items():
            Tags.of(self).add(key, value)

        if args.notifications:
            self._create_topic(args.notifications)

        for log_group_config in args.log_groups:
            self._create_log_group(log_group_config)

        for stream_config in args.log_streams:
            self._create_log_stream(stream_config)

        for alarm_config in args.metric_alarms:
            self._create_metric_alarm(alarm_config)

        for composite_config in args.composite_alarms:
            self._create_composite_alarm(composite_config)

        for filter_config in args.metric_filters:
            self._create_metric_filter(filter_config)

        for dashboard_config in args.dashboards:
            self._create_dashboard(dashboard_config)

        logger.info(
            "cloudwatch_component_created",
            construct=self,
            log_groups=sorted(self.log_groups),
            metric_alarms=sorted(self.metric_alarms),
            composite_alarms=sorted(self.composite_alarms),
            dashboards=sorted(self.dashboards),
            notification_topic=self.topic is not None,
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    def _create_topic(self, config: NotificationConfig) -> None:
        if config.topic_arn:
            self.topic = sns.Topic.from_topic_arn(self, "NotificationTopic", config.topic_arn)
        elif config.topic_name:
            topic = sns.Topic(
                self,
                "NotificationTopic",
                topic_name=config.topic_name,
                display_name=f"CloudWatch Alerts for {self.component_name}",
            )
            enable_encryption = (
                CLOUDWATCH_DEFAULTS.enable_sns_encryption
                if config.enable_encryption is None
                else config.enable_encryption
            )
            if enable_encryption:
                # Alias names are passed through as-is; CDK key objects only render ARNs
                cfn_topic: sns.CfnTopic = topic.node.default_child
                cfn_topic.kms_master_key_id = (
                    config.kms_key_id or CLOUDWATCH_DEFAULTS.sns_kms_key_id
                )
            self.topic = topic
        else:
            return

        for email in config.email_endpoints:
            self.topic.add_subscription(sns_subscriptions.EmailSubscription(email))
        for phone_number in config.sms_endpoints:
            self.topic.add_subscription(sns_subscriptions.SmsSubscription(phone_number))
        for url in config.https_endpoints:
            self.topic.add_subscription(sns_subscriptions.UrlSubscription(url))

        for index, function_arn in enumerate(config.lambda_endpoints):
            sns.Subscription(
                self,
                f"LambdaSubscription{index}",
                topic=self.topic,
                endpoint=function_arn,
                protocol=sns.SubscriptionProtocol.LAMBDA,
            )
        for index, queue_arn in enumerate(config.sqs_endpoints):
            sns.Subscription(
                self,
                f"SqsSubscription{index}",
                topic=self.topic,
                endpoint=queue_arn,
                protocol=sns.SubscriptionProtocol.SQS,
            )

    @property
    def notification_topic_arn(self) -> str | None:
        return self.topic.topic_arn if self.topic else None

    def _actions(self, arns: tuple[str, ...] | None) -> list[cloudwatch.IAlarmAction]:
        if arns is not None:
            return [ArnAlarmAction(arn) for arn in arns]
        if self.topic:
            return [cw_actions.SnsAction(self.topic)]
        return []

    # =========================================================================
    # Logs
    # =========================================================================

    def _create_log_group(self, config: LogGroupConfig) -> logs.CfnLogGroup:
        retention_days = config.retention_in_days
        if retention_days is None:
            retention_days = self.default_retention_days
        if retention_days is None:
            retention_days = CLOUDWATCH_DEFAULTS.retention_days

        skip_destroy = (
            CLOUDWATCH_DEFAULTS.skip_destroy if config.skip_destroy is None else config.skip_destroy
        )

        log_group = logs.CfnLogGroup(
            self,
            logical_id("LogGroup", config.name),
            log_group_name=config.name,
            retention_in_days=(
                None if retention_days == LOG_RETENTION_DAYS["NEVER_EXPIRE"] else retention_days
            ),
            kms_key_id=config.kms_key_id or self.default_kms_key_id,
        )
        log_group.apply_removal_policy(
            RemovalPolicy.RETAIN if skip_destroy else RemovalPolicy.DESTROY
        )
        for key, value in (config.tags or {}).items():
            Tags.of(log_group).add(key, value)

        self.log_groups[config.name] = log_group
        logger.debug(
            "log_group_created",
            construct=self,
            log_group_name=config.name,
            retention_days=retention_days,
            encrypted=bool(config.kms_key_id or self.default_kms_key_id),
        )
        return log_group

    def add_log_group(self, name: str, **options: Any) -> logs.CfnLogGroup:
        """Declare another log group; keyword arguments are LogGroupConfig fields."""
        return self._create_log_group(LogGroupConfig(name=name, **options))

    def _log_group_name(self, name: str) -> str:
        # Referencing a log group declared here orders creation correctly
        if name in self.log_groups:
            return self.log_groups[name].ref
        return name

    def _create_log_stream(self, config: LogStreamConfig) -> logs.CfnLogStream:
        stream = logs.CfnLogStream(
            self,
            logical_id("LogStream", config.name),
            log_group_name=self._log_group_name(config.log_group_name),
            log_stream_name=config.name,
        )
        self.log_streams[config.name] = stream
        return stream

    def _create_metric_filter(self, config: MetricFilterConfig) -> logs.CfnMetricFilter:
        transformation = config.metric_transformation
        metric_filter = logs.CfnMetricFilter(
            self,
            logical_id("MetricFilter", config.name),
            filter_name=config.name,
            filter_pattern=config.filter_pattern,
            log_group_name=self._log_group_name(config.log_group_name),
            metric_transformations=[
                logs.CfnMetricFilter.MetricTransformationProperty(
                    metric_name=transformation.metric_name,
                    metric_namespace=transformation.metric_namespace,
                    metric_value=transformation.metric_value,
                    default_value=transformation.default_value,
                    unit=transformation.unit,
                )
            ],
        )
        self.metric_filters[config.name] = metric_filter
        return metric_filter

    # =========================================================================
    # Alarms
    # =========================================================================

    def _create_metric_alarm(self, config: MetricAlarmConfig) -> cloudwatch.Alarm:
        errors = validate_alarm_config(config)
        if errors:
            raise AlarmConfigurationError(
                f"Invalid alarm configuration for {config.name}: {', '.join(errors)}", errors
            )

        metric = cloudwatch.Metric(
            namespace=config.namespace,
            metric_name=config.metric_name,
            dimensions_map=dict(config.dimensions) if config.dimensions else None,
            statistic=config.extended_statistic or config.statistic,
            period=Duration.seconds(config.period),
        )

        alarm = cloudwatch.Alarm(
            self,
            logical_id("Alarm", config.name),
            alarm_name=config.name,
            alarm_description=config.description,
            metric=metric,
            threshold=config.threshold,
            evaluation_periods=config.evaluation_periods,
            datapoints_to_alarm=config.datapoints_to_alarm,
            comparison_operator=cloudwatch.ComparisonOperator[
                _enum_member(config.comparison_operator)
            ],
            treat_missing_data=cloudwatch.TreatMissingData[
                _enum_member(config.treat_missing_data or CLOUDWATCH_DEFAULTS.treat_missing_data)
            ],
            evaluate_low_sample_count_percentile=config.evaluate_low_sample_count_percentile,
            actions_enabled=(
                CLOUDWATCH_DEFAULTS.actions_enabled
                if config.actions_enabled is None
                else config.actions_enabled
            ),
        )
        self._attach_actions(alarm, config)
        for key, value in (config.tags or {}).items():
            Tags.of(alarm).add(key, value)

        self.metric_alarms[config.name] = alarm
        logger.info(
            "alarm_created",
            construct=self,
            alarm_name=config.name,
            metric=f"{config.namespace}/{config.metric_name}",
            threshold=config.threshold,
            comparison_operator=config.comparison_operator,
        )
        return alarm

    def _attach_actions(
        self,
        alarm: cloudwatch.AlarmBase,
        config: MetricAlarmConfig | CompositeAlarmConfig,
    ) -> None:
        for action in self._actions(config.alarm_actions):
            alarm.add_alarm_action(action)
        for arn in config.ok_actions or ():
            alarm.add_ok_action(ArnAlarmAction(arn))
        for arn in config.insufficient_data_actions or ():
            alarm.add_insufficient_data_action(ArnAlarmAction(arn))

    def add_metric_alarm(
        self,
        name: str,
        metric_name: str,
        namespace: str,
        threshold: float,
        comparison_operator: str,
        **options: Any,
    ) -> cloudwatch.Alarm:
        """
        Declare another metric alarm with the default statistic, period and evaluation.

        Keyword arguments are MetricAlarmConfig fields. Without `alarm_actions`
        the alarm notifies the component topic.
        """
        config = create_metric_alarm_config(
            name, metric_name, namespace, threshold, comparison_operator, **options
        )
        return self._create_metric_alarm(config)

    def _create_composite_alarm(self, config: CompositeAlarmConfig) -> cloudwatch.CompositeAlarm:
        alarm = cloudwatch.CompositeAlarm(
            self,
            logical_id("CompositeAlarm", config.name),
            composite_alarm_name=config.name,
            alarm_description=config.description,
            alarm_rule=cloudwatch.AlarmRule.from_string(config.alarm_rule),
            actions_enabled=(
                CLOUDWATCH_DEFAULTS.actions_enabled
                if config.actions_enabled is None
                else config.actions_enabled
            ),
        )
        # Rules reference alarms by name, so those alarms must exist first
        for child in self.metric_alarms.values():
            alarm.node.add_dependency(child)
        self._attach_actions(alarm, config)
        for key, value in (config.tags or {}).items():
            Tags.of(alarm).add(key, value)

        self.composite_alarms[config.name] = alarm
        logger.info(
            "alarm_created", construct=self, alarm_name=config.name, alarm_rule=config.alarm_rule
        )
        return alarm

    # =========================================================================
    # Dashboards
    # =========================================================================

    def _create_dashboard(self, config: DashboardConfig) -> cloudwatch.CfnDashboard:
        if config.dashboard_body:
            body = config.dashboard_body
        elif config.widgets:
            body = generate_dashboard_json(config.widgets)
        else:
            raise DashboardConfigurationError(
                f"Dashboard {config.name} must have either dashboard_body or widgets"
            )

        dashboard = cloudwatch.CfnDashboard(
            self,
            logical_id("Dashboard", config.name),
            dashboard_name=config.name,
            dashboard_body=body,
        )
        self.dashboards[config.name] = dashboard
        return dashboard
