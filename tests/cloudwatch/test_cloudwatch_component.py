"""
Tests for the CloudWatch component.
"""

import json

import pytest
from aws_cdk import Stack
from aws_cdk.assertions import Match, Template

from modinfra.cloudwatch import (
    LOG_PATTERNS,
    CloudWatchArgs,
    CloudWatchComponent,
    CompositeAlarmConfig,
    DashboardConfig,
    LogGroupConfig,
    LogStreamConfig,
    NotificationConfig,
    create_metric_alarm_config,
    create_metric_filter,
    create_metric_widget,
)
from modinfra.exceptions import AlarmConfigurationError, DashboardConfigurationError

OPS_TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:ops"

CPU_ALARM = create_metric_alarm_config(
    "acme-high-cpu",
    "CPUUtilization",
    "AWS/EC2",
    80,
    dimensions={"InstanceId": "i-0abc"},
)


class TestNotifications:
    """Tests for the notification topic."""

    def test_encrypted_topic(self, stack: Stack):
        """Test that an owned topic is encrypted with the SNS managed key."""
        component = CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(name="acme", notifications=NotificationConfig(topic_name="acme-alarms")),
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::SNS::Topic",
            {
                "TopicName": "acme-alarms",
                "DisplayName": "CloudWatch Alerts for acme",
                "KmsMasterKeyId": "alias/aws/sns",
            },
        )
        assert component.notification_topic_arn is not None

    def test_custom_key_and_unencrypted(self, stack):
        """Test a caller key and disabled encryption."""
        CloudWatchComponent(
            stack,
            "Keyed",
            CloudWatchArgs(
                name="keyed",
                notifications=NotificationConfig(topic_name="keyed", kms_key_id="alias/ops"),
            ),
        )
        CloudWatchComponent(
            stack,
            "Plain",
            CloudWatchArgs(
                name="plain",
                notifications=NotificationConfig(topic_name="plain", enable_encryption=False),
            ),
        )

        template = Template.from_stack(stack)
        template.has_resource_properties(
            "AWS::SNS::Topic", {"TopicName": "keyed", "KmsMasterKeyId": "alias/ops"}
        )
        template.has_resource_properties(
            "AWS::SNS::Topic", {"TopicName": "plain", "KmsMasterKeyId": Match.absent()}
        )

    def test_subscriptions(self, stack):
        """Test one subscription per endpoint and protocol."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                notifications=NotificationConfig(
                    topic_name="acme-alarms",
                    email_endpoints=("ops@example.com",),
                    sms_endpoints=("+15555550100",),
                    https_endpoints=("https://hooks.example.com/alarms",),
                    lambda_endpoints=("arn:aws:lambda:us-east-1:123456789012:function:page",),
                    sqs_endpoints=("arn:aws:sqs:us-east-1:123456789012:alarms",),
                ),
            ),
        )

        template = Template.from_stack(stack)
        template.resource_count_is("AWS::SNS::Subscription", 5)
        for protocol, endpoint in [
            ("email", "ops@example.com"),
            ("sms", "+15555550100"),
            ("https", "https://hooks.example.com/alarms"),
            ("lambda", "arn:aws:lambda:us-east-1:123456789012:function:page"),
            ("sqs", "arn:aws:sqs:us-east-1:123456789012:alarms"),
        ]:
            template.has_resource_properties(
                "AWS::SNS::Subscription", {"Protocol": protocol, "Endpoint": endpoint}
            )

    def test_existing_topic(self, stack):
        """Test that an imported topic is used without declaring one."""
        component = CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                notifications=NotificationConfig(topic_arn=OPS_TOPIC_ARN),
                metric_alarms=(CPU_ALARM,),
            ),
        )

        template = Template.from_stack(stack)
        template.resource_count_is("AWS::SNS::Topic", 0)
        template.has_resource_properties(
            "AWS::CloudWatch::Alarm", {"AlarmActions": [OPS_TOPIC_ARN]}
        )
        assert component.notification_topic_arn == OPS_TOPIC_ARN

    def test_no_topic(self, stack):
        """Test that alarms have no actions without a topic."""
        component = CloudWatchComponent(
            stack, "Monitoring", CloudWatchArgs(name="acme", metric_alarms=(CPU_ALARM,))
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Alarm", {"AlarmActions": Match.absent()}
        )
        assert component.notification_topic_arn is None


class TestLogGroups:
    """Tests for log groups, streams and metric filters."""

    def test_default_retention(self, stack):
        """Test the default retention and deletion policy."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(name="acme", log_groups=(LogGroupConfig("/acme/app"),)),
        )

        Template.from_stack(stack).has_resource(
            "AWS::Logs::LogGroup",
            {
                "Properties": Match.object_like(
                    {"LogGroupName": "/acme/app", "RetentionInDays": 90}
                ),
                "DeletionPolicy": "Delete",
            },
        )

    def test_similar_group_names(self, stack):
        """Test that group names differing only in separators declare separate groups."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                log_groups=(LogGroupConfig("/acme/app"), LogGroupConfig("/acme-app")),
            ),
        )

        template = Template.from_stack(stack)
        template.resource_count_is("AWS::Logs::LogGroup", 2)
        template.has_resource_properties("AWS::Logs::LogGroup", {"LogGroupName": "/acme-app"})

    def test_retention_precedence(self, stack):
        """Test that group retention beats the component default."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                default_retention_days=30,
                log_groups=(
                    LogGroupConfig("/acme/app"),
                    LogGroupConfig("/acme/audit", retention_in_days=365, skip_destroy=True),
                ),
            ),
        )

        template = Template.from_stack(stack)
        template.has_resource_properties(
            "AWS::Logs::LogGroup", {"LogGroupName": "/acme/app", "RetentionInDays": 30}
        )
        template.has_resource(
            "AWS::Logs::LogGroup",
            {
                "Properties": Match.object_like(
                    {"LogGroupName": "/acme/audit", "RetentionInDays": 365}
                ),
                "DeletionPolicy": "Retain",
            },
        )

    def test_never_expire(self, stack):
        """Test that zero retention keeps events forever."""
        component = CloudWatchComponent(stack, "Monitoring", CloudWatchArgs(name="acme"))
        component.add_log_group("/acme/archive", retention_in_days=0)

        Template.from_stack(stack).has_resource_properties(
            "AWS::Logs::LogGroup",
            {"LogGroupName": "/acme/archive", "RetentionInDays": Match.absent()},
        )

    def test_kms_key(self, stack):
        """Test the component default key and a per-group key."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                default_kms_key_id="arn:aws:kms:us-east-1:123456789012:key/default",
                log_groups=(
                    LogGroupConfig("/acme/app"),
                    LogGroupConfig(
                        "/acme/secure", kms_key_id="arn:aws:kms:us-east-1:123456789012:key/own"
                    ),
                ),
            ),
        )

        template = Template.from_stack(stack)
        template.has_resource_properties(
            "AWS::Logs::LogGroup",
            {
                "LogGroupName": "/acme/app",
                "KmsKeyId": "arn:aws:kms:us-east-1:123456789012:key/default",
            },
        )
        template.has_resource_properties(
            "AWS::Logs::LogGroup",
            {
                "LogGroupName": "/acme/secure",
                "KmsKeyId": "arn:aws:kms:us-east-1:123456789012:key/own",
            },
        )

    def test_tags(self, stack):
        """Test that default and group tags are applied."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme", log_groups=(LogGroupConfig("/acme/app", tags={"Team": "web"}),)
            ),
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::Logs::LogGroup",
            {
                "Tags": Match.array_with(
                    [
                        {"Key": "Component", "Value": "CloudWatch"},
                        {"Key": "Monitoring", "Value": "enabled"},
                        {"Key": "Team", "Value": "web"},
                    ]
                )
            },
        )

    def test_stream_and_filter_reference_local_group(self, stack):
        """Test that streams and filters reference log groups declared alongside them."""
        component = CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                log_groups=(LogGroupConfig("/acme/app"),),
                log_streams=(LogStreamConfig("web-1", "/acme/app"),),
                metric_filters=(
                    create_metric_filter(
                        "app-errors", "/acme/app", LOG_PATTERNS["ERROR"], "Errors", "Acme/App"
                    ),
                ),
            ),
        )

        group_ref = stack.resolve(component.log_groups["/acme/app"].ref)
        template = Template.from_stack(stack)
        template.has_resource_properties(
            "AWS::Logs::LogStream", {"LogStreamName": "web-1", "LogGroupName": group_ref}
        )
        template.has_resource_properties(
            "AWS::Logs::MetricFilter",
            {
                "FilterName": "app-errors",
                "FilterPattern": "[ERROR]",
                "LogGroupName": group_ref,
                "MetricTransformations": [
                    {
                        "MetricName": "Errors",
                        "MetricNamespace": "Acme/App",
                        "MetricValue": "1",
                        "DefaultValue": 0,
                    }
                ],
            },
        )

    def test_filter_on_external_group(self, stack):
        """Test that other log groups are referenced by name."""
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                metric_filters=(
                    create_metric_filter("timeouts", "/other/app", "timeout", "Timeouts", "Acme"),
                ),
            ),
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::Logs::MetricFilter", {"LogGroupName": "/other/app"}
        )


class TestMetricAlarms:
    """Tests for metric alarms."""

    @pytest.fixture
    def component(self, stack) -> CloudWatchComponent:
        return CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                notifications=NotificationConfig(topic_name="acme-alarms"),
                metric_alarms=(CPU_ALARM,),
            ),
        )

    def test_alarm_properties(self, stack, component):
        """Test the metric, evaluation and notification settings."""
        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Alarm",
            {
                "AlarmName": "acme-high-cpu",
                "AlarmDescription": "Alarm for CPUUtilization in AWS/EC2",
                "MetricName": "CPUUtilization",
                "Namespace": "AWS/EC2",
                "Dimensions": [{"Name": "InstanceId", "Value": "i-0abc"}],
                "Statistic": "Average",
                "Period": 300,
                "Threshold": 80,
                "EvaluationPeriods": 2,
                "DatapointsToAlarm": 2,
                "ComparisonOperator": "GreaterThanThreshold",
                "TreatMissingData": "notBreaching",
                "ActionsEnabled": True,
                "AlarmActions": [stack.resolve(component.topic.topic_arn)],
            },
        )

    def test_add_metric_alarm(self, stack, component):
        """Test alarms added after construction, with explicit actions."""
        component.add_metric_alarm(
            "acme-p99-latency",
            "Latency",
            "Acme/Api",
            1.5,
            "GreaterThanOrEqualToThreshold",
            statistic=None,
            extended_statistic="p99",
            period=60,
            treat_missing_data="missing",
            alarm_actions=(OPS_TOPIC_ARN,),
            ok_actions=(OPS_TOPIC_ARN,),
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Alarm",
            {
                "AlarmName": "acme-p99-latency",
                "ExtendedStatistic": "p99",
                "Statistic": Match.absent(),
                "Period": 60,
                "ComparisonOperator": "GreaterThanOrEqualToThreshold",
                "TreatMissingData": "missing",
                "AlarmActions": [OPS_TOPIC_ARN],
                "OKActions": [OPS_TOPIC_ARN],
            },
        )
        assert "acme-p99-latency" in component.metric_alarms

    def test_disabled_actions(self, stack, component):
        """Test that an empty action tuple silences an alarm."""
        component.add_metric_alarm(
            "acme-quiet", "Errors", "Acme/Api", 1, "GreaterThanThreshold", alarm_actions=()
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Alarm", {"AlarmName": "acme-quiet", "AlarmActions": Match.absent()}
        )

    def test_invalid_alarm(self, stack):
        """Test that invalid alarms are rejected with every problem listed."""
        bad = create_metric_alarm_config(
            "acme-bad",
            "CPUUtilization",
            "AWS/EC2",
            80,
            period=45,
            evaluation_periods=1,
            datapoints_to_alarm=3,
        )

        with pytest.raises(AlarmConfigurationError, match="acme-bad") as exc_info:
            CloudWatchComponent(
                stack, "Monitoring", CloudWatchArgs(name="acme", metric_alarms=(bad,))
            )

        assert exc_info.value.errors == [
            "Period must be at least 60 seconds",
            "Datapoints to alarm cannot exceed evaluation periods",
        ]

    def test_composite_alarm(self, stack):
        """Test the rule, actions and ordering after the metric alarms."""
        component = CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                notifications=NotificationConfig(topic_name="acme-alarms"),
                metric_alarms=(CPU_ALARM,),
                composite_alarms=(
                    CompositeAlarmConfig(
                        name="acme-degraded",
                        alarm_rule='ALARM("acme-high-cpu")',
                        description="CPU and latency both high",
                    ),
                ),
            ),
        )

        cpu_alarm = component.metric_alarms["acme-high-cpu"]
        alarm_id = stack.get_logical_id(cpu_alarm.node.default_child)
        Template.from_stack(stack).has_resource(
            "AWS::CloudWatch::CompositeAlarm",
            {
                "Properties": Match.object_like(
                    {
                        "AlarmName": "acme-degraded",
                        "AlarmRule": 'ALARM("acme-high-cpu")',
                        "AlarmDescription": "CPU and latency both high",
                        "AlarmActions": [stack.resolve(component.topic.topic_arn)],
                    }
                ),
                "DependsOn": [alarm_id],
            },
        )


class TestDashboards:
    """Tests for dashboards."""

    def test_widget_dashboard(self, stack):
        """Test that widgets are rendered into the dashboard body."""
        widget = create_metric_widget(
            "CPU", [{"namespace": "AWS/EC2", "metric_name": "CPUUtilization"}]
        )
        component = CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme", dashboards=(DashboardConfig(name="acme-ops", widgets=(widget,)),)
            ),
        )

        body = json.loads(component.dashboards["acme-ops"].dashboard_body)
        assert body["widgets"][0]["properties"]["title"] == "CPU"
        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Dashboard", {"DashboardName": "acme-ops"}
        )

    def test_raw_body(self, stack):
        """Test that a supplied body is used verbatim."""
        body = json.dumps({"widgets": []})
        CloudWatchComponent(
            stack,
            "Monitoring",
            CloudWatchArgs(
                name="acme",
                dashboards=(DashboardConfig(name="acme-raw", dashboard_body=body),),
            ),
        )

        Template.from_stack(stack).has_resource_properties(
            "AWS::CloudWatch::Dashboard", {"DashboardName": "acme-raw", "DashboardBody": body}
        )

    def test_empty_dashboard(self, stack):
        """Test that a dashboard needs a body or widgets."""
        with pytest.raises(
            DashboardConfigurationError, match="Dashboard acme-empty must have either"
        ):
            CloudWatchComponent(
                stack,
                "Monitoring",
                CloudWatchArgs(name="acme", dashboards=(DashboardConfig(name="acme-empty"),)),
            )
