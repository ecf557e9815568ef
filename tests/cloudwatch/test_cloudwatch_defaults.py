"""
Tests for CloudWatch defaults, config builders and alarm presets.
"""

import json

import pytest

from modinfra.cloudwatch import (
    CLOUDWATCH_DEFAULTS,
    LOG_PATTERNS,
    AlarmTemplates,
    AlbAlarmTemplate,
    DashboardWidgetConfig,
    Ec2AlarmTemplate,
    LambdaAlarmTemplate,
    MetricAlarmConfig,
    RdsAlarmTemplate,
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


def _alarm(**overrides) -> MetricAlarmConfig:
    values = {
        "name": "cpu",
        "metric_name": "CPUUtilization",
        "namespace": "AWS/EC2",
        "threshold": 80,
        "comparison_operator": "GreaterThanThreshold",
        "statistic": "Average",
    }
    values.update(overrides)
    return MetricAlarmConfig(**values)


class TestCloudWatchDefaults:
    """Tests for the default values."""

    def test_values(self):
        """Test retention, evaluation and notification defaults."""
        assert CLOUDWATCH_DEFAULTS.retention_days == 90
        assert CLOUDWATCH_DEFAULTS.evaluation_periods == 2
        assert CLOUDWATCH_DEFAULTS.period == 300
        assert CLOUDWATCH_DEFAULTS.statistic == "Average"
        assert CLOUDWATCH_DEFAULTS.treat_missing_data == "notBreaching"
        assert CLOUDWATCH_DEFAULTS.sns_kms_key_id == "alias/aws/sns"
        assert CLOUDWATCH_DEFAULTS.tags["Monitoring"] == "enabled"

    def test_log_patterns(self):
        """Test a few of the filter patterns."""
        assert LOG_PATTERNS["ERROR"] == "[ERROR]"
        assert LOG_PATTERNS["JSON_ERROR"] == '{ $.level = "ERROR" }'


class TestConfigBuilders:
    """Tests for the config builder functions."""

    def test_log_group_config(self):
        """Test that defaults are filled in and tags merged."""
        config = create_log_group_config("/app/web", tags={"Team": "web"})

        assert config.retention_in_days == 90
        assert config.skip_destroy is False
        assert config.kms_key_id is None
        assert config.tags["Component"] == "CloudWatch"
        assert config.tags["Team"] == "web"

    def test_log_group_never_expire(self):
        """Test that zero retention is kept rather than replaced by the default."""
        assert create_log_group_config("/app/audit", retention_in_days=0).retention_in_days == 0

    def test_metric_alarm_config(self):
        """Test the generated description and defaults."""
        config = create_metric_alarm_config("cpu", "CPUUtilization", "AWS/EC2", 80)

        assert config.comparison_operator == "GreaterThanThreshold"
        assert config.description == "Alarm for CPUUtilization in AWS/EC2"
        assert config.statistic == "Average"
        assert config.period == 300
        assert config.evaluation_periods == 2
        assert config.datapoints_to_alarm == 2
        assert config.treat_missing_data == "notBreaching"
        assert config.actions_enabled is True
        assert validate_alarm_config(config) == []

    def test_metric_alarm_config_options(self):
        """Test that keyword options override the defaults."""
        config = create_metric_alarm_config(
            "errors",
            "Errors",
            "AWS/Lambda",
            5,
            "GreaterThanOrEqualToThreshold",
            statistic="Sum",
            period=60,
            dimensions={"FunctionName": "ingest"},
            alarm_actions=("arn:aws:sns:us-east-1:123456789012:ops",),
        )

        assert (config.statistic, config.period) == ("Sum", 60)
        assert config.dimensions == {"FunctionName": "ingest"}
        assert config.alarm_actions == ("arn:aws:sns:us-east-1:123456789012:ops",)

    def test_datapoints_capped_at_evaluation_periods(self):
        """Test that a single evaluation period gives a valid alarm."""
        config = create_metric_alarm_config("t", "Throttles", "AWS/Lambda", 1, evaluation_periods=1)
        assert config.datapoints_to_alarm == 1
        assert validate_alarm_config(config) == []

    def test_notification_config(self):
        """Test that encryption is on unless disabled."""
        assert create_notification_config(topic_name="alerts").enable_encryption is True
        assert (
            create_notification_config(topic_name="alerts", enable_encryption=False)
            .enable_encryption
            is False
        )

    def test_metric_filter(self):
        """Test the metric transformation defaults."""
        config = create_metric_filter(
            "errors", "/app/web", LOG_PATTERNS["ERROR"], "ErrorCount", "App"
        )

        transformation = config.metric_transformation
        assert (transformation.metric_value, transformation.default_value) == ("1", 0)
        assert transformation.unit is None


class TestWidgets:
    """Tests for dashboard widget builders."""

    def test_metric_widget(self):
        """Test metric rendering with dimensions and the default position."""
        widget = create_metric_widget(
            "CPU",
            [
                {
                    "namespace": "AWS/EC2",
                    "metric_name": "CPUUtilization",
                    "dimensions": {"InstanceId": "i-123"},
                },
                {"namespace": "AWS/Lambda", "metric_name": "Errors", "statistic": "Sum"},
            ],
        )

        assert widget.type == "metric"
        assert (widget.x, widget.y, widget.width, widget.height) == (0, 0, 12, 6)
        assert widget.properties["metrics"] == [
            ["AWS/EC2", "CPUUtilization", "InstanceId", "i-123", {"stat": "Average"}],
            ["AWS/Lambda", "Errors", {"stat": "Sum"}],
        ]
        assert widget.properties["region"] == "us-east-1"
        assert widget.properties["view"] == "timeSeries"
        assert widget.properties["period"] == 300

    def test_log_widget(self):
        """Test the Logs Insights query and a custom position."""
        widget = create_log_widget(
            "Errors",
            ["/app/web", "/app/worker"],
            "fields @timestamp, @message | limit 20",
            position={"x": 12, "y": 6, "width": 24},
            region="eu-west-1",
        )

        assert widget.type == "log"
        assert (widget.x, widget.y, widget.width, widget.height) == (12, 6, 24, 6)
        assert widget.properties["query"] == (
            "SOURCE '/app/web', '/app/worker'\nfields @timestamp, @message | limit 20"
        )
        assert widget.properties["region"] == "eu-west-1"

    def test_dashboard_json(self):
        """Test that widgets render into a dashboard body."""
        widget = DashboardWidgetConfig(
            type="text", properties={"markdown": "# Hello"}, x=0, y=0, width=24, height=2
        )

        assert json.loads(generate_dashboard_json([widget])) == {
            "widgets": [
                {
                    "type": "text",
                    "x": 0,
                    "y": 0,
                    "width": 24,
                    "height": 2,
                    "properties": {"markdown": "# Hello"},
                }
            ]
        }


class TestAlarmTemplates:
    """Tests for the alarm presets."""

    def test_empty(self):
        """Test that no templates give no alarms."""
        assert create_alarm_templates(AlarmTemplates()) == []

    def test_ec2_defaults(self):
        """Test that only the CPU alarm is enabled by default."""
        (alarm,) = create_alarm_templates(AlarmTemplates(ec2=Ec2AlarmTemplate("i-0abc")))

        assert alarm.name == "i-0abc-high-cpu"
        assert alarm.dimensions == {"InstanceId": "i-0abc"}
        assert alarm.threshold == 80
        assert alarm.evaluation_periods == 3

    def test_ec2_agent_alarms(self):
        """Test the disk and memory alarms from the CloudWatch agent."""
        alarms = create_alarm_templates(
            AlarmTemplates(
                ec2=Ec2AlarmTemplate(
                    "i-0abc", enable_disk_space_alarm=True, enable_memory_alarm=True
                )
            )
        )

        assert [alarm.name for alarm in alarms] == [
            "i-0abc-high-cpu",
            "i-0abc-low-disk-space",
            "i-0abc-high-memory",
        ]
        assert {alarm.namespace for alarm in alarms[1:]} == {"System/Linux"}

    def test_rds_free_storage(self):
        """Test that low storage alarms compare downwards."""
        alarms = create_alarm_templates(
            AlarmTemplates(
                rds=RdsAlarmTemplate(
                    "db-1", enable_connection_alarm=True, enable_free_storage_alarm=True
                )
            )
        )

        assert [alarm.name for alarm in alarms] == [
            "db-1-high-cpu",
            "db-1-high-connections",
            "db-1-low-free-storage",
        ]
        assert alarms[2].comparison_operator == "LessThanThreshold"
        assert alarms[2].threshold == 2_000_000_000

    def test_lambda_alarms(self):
        """Test statistics and evaluation of the Lambda alarms."""
        alarms = create_alarm_templates(
            AlarmTemplates(
                lambda_=LambdaAlarmTemplate(
                    "ingest", enable_duration_alarm=True, enable_throttle_alarm=True
                )
            )
        )

        errors, duration, throttles = alarms
        assert (errors.name, errors.statistic) == ("ingest-high-error-rate", "Sum")
        assert (duration.name, duration.evaluation_periods) == ("ingest-high-duration", 3)
        assert throttles.name == "ingest-throttles"
        assert throttles.comparison_operator == "GreaterThanOrEqualToThreshold"
        assert throttles.evaluation_periods == 1
        assert all(validate_alarm_config(alarm) == [] for alarm in alarms)

    def test_alb_disabled_by_default(self):
        """Test that ALB alarms are opt-in."""
        assert create_alarm_templates(AlarmTemplates(alb=AlbAlarmTemplate("app/web/123"))) == []

    def test_alb_alarms(self):
        """Test the ALB response time and error alarms."""
        alarms = create_alarm_templates(
            AlarmTemplates(
                alb=AlbAlarmTemplate(
                    "app/web/123",
                    enable_response_time_alarm=True,
                    enable_4xx_error_alarm=True,
                    enable_5xx_error_alarm=True,
                )
            )
        )

        assert [alarm.metric_name for alarm in alarms] == [
            "TargetResponseTime",
            "HTTPCode_Target_4XX_Count",
            "HTTPCode_Target_5XX_Count",
        ]
        assert {alarm.namespace for alarm in alarms} == {"AWS/ApplicationELB"}
        assert alarms[0].dimensions == {"LoadBalancer": "app/web/123"}


class TestValidateAlarmConfig:
    """Tests for validate_alarm_config."""

    def test_valid(self):
        """Test a complete alarm definition."""
        assert validate_alarm_config(_alarm()) == []

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"name": ""}, "Alarm name is required"),
            ({"metric_name": ""}, "Metric name is required"),
            ({"namespace": ""}, "Namespace is required"),
            ({"threshold": None}, "Threshold is required"),
            ({"comparison_operator": ""}, "Comparison operator is required"),
            ({"comparison_operator": "Bigger"}, "Unknown comparison operator Bigger"),
            ({"statistic": None}, "Either statistic or extended statistic is required"),
            ({"period": 30}, "Period must be at least 60 seconds"),
            ({"period": 90}, "Period must be a multiple of 60 seconds"),
            ({"evaluation_periods": 0}, "Evaluation periods must be at least 1"),
            ({"datapoints_to_alarm": 3}, "Datapoints to alarm cannot exceed evaluation periods"),
        ],
    )
    def test_invalid(self, overrides, message):
        """Test that each problem is reported."""
        assert message in validate_alarm_config(_alarm(**overrides))

    def test_extended_statistic_replaces_statistic(self):
        """Test that a percentile is accepted in place of a statistic."""
        assert validate_alarm_config(_alarm(statistic=None, extended_statistic="p99")) == []
