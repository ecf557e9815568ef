#!/usr/bin/env python3
"""
AWS CDK app entry point for the modinfra example deployment.

Configuration comes from CDK context (cdk.json or --context key=value):
    resource_prefix, account, region, vpc_cidr, availability_zone_count,
    multi_az_nat_gateway, alarm_email, bucket_name, enable_validation,
    log_format ("json" or "console"), log_level
"""

import aws_cdk as cdk

from modinfra.logging import bind_contextvars, configure_logging, get_logger
from modinfra.validation import add_validation_aspects
from stacks import IdentityStack, MonitoringStack, NetworkStack, StorageStack

logger = get_logger(__name__)


def _context_bool(app: cdk.App, key: str, default: bool) -> bool:
    # --context values arrive as strings, cdk.json values keep their JSON type
    value = app.node.try_get_context(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


def _context_int(app: cdk.App, key: str) -> int | None:
    value = app.node.try_get_context(key)
    return int(value) if value is not None else None


app = cdk.App()

configure_logging(
    json_format=app.node.try_get_context("log_format") != "console",
    log_level=app.node.try_get_context("log_level") or "INFO",
)

resource_prefix = app.node.try_get_context("resource_prefix") or "modinfra"
bind_contextvars(resource_prefix=resource_prefix)

# Environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or "us-east-1",
)
prefix = resource_prefix.title()

network = NetworkStack(
    app,
    f"{prefix}Network",
    vpc_cidr=app.node.try_get_context("vpc_cidr"),
    availability_zone_count=_context_int(app, "availability_zone_count"),
    multi_az_nat_gateway=_context_bool(app, "multi_az_nat_gateway", False),
    env=env,
)

storage = StorageStack(app, f"{prefix}Storage", env=env)

monitoring = MonitoringStack(
    app,
    f"{prefix}Monitoring",
    alarm_email=app.node.try_get_context("alarm_email"),
    env=env,
)

identity = IdentityStack(
    app,
    f"{prefix}Identity",
    bucket_arn=storage.bucket_arn,
    log_group_arn=monitoring.log_group_arn,
    env=env,
)
identity.add_dependency(storage)
identity.add_dependency(monitoring)

if _context_bool(app, "enable_validation", True):
    add_validation_aspects(app)

logger.info(
    "app_configured",
    stacks=[stack.stack_name for stack in (network, storage, monitoring, identity)],
    region=env.region,
)

app.synth()
