"""
Structured logging configuration using structlog.

Components log one event per provisioning step so that a `cdk synth` run
leaves an audit trail of what was declared and with which settings.

Usage:
    from modinfra.logging import get_logger

    logger = get_logger(__name__)
    logger.info("bucket_configured", bucket_name="my-bucket", versioned=True)

Field conventions:
    - component: Component construct id (e.g. "Network", "Assets")
    - construct_path: Full construct path inside the app tree
    - resource_prefix: Naming prefix bound by the app entry point
"""

import logging
import sys
from typing import Any

import structlog
from constructs import Construct
from structlog.types import EventDict, Processor


def _render_construct_paths(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Replace a `construct` value with its id and path in the construct tree.

    Construct objects are jsii proxies and do not serialize to JSON.
    """
    construct = event_dict.pop("construct", None)
    if isinstance(construct, Construct):
        event_dict["component"] = construct.node.id
        event_dict["construct_path"] = construct.node.path
    elif construct is not None:
        event_dict["construct_path"] = str(construct)
    return event_dict


def configure_logging(json_format: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog for a synth run.

    Events are written to stderr because the CDK CLI reads templates and
    manifest output from stdout. JSON suits CI logs; the console renderer
    suits local `cdk synth`, with colours only on a terminal.
    """
    # Applied to structlog events and to records from plain stdlib loggers
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _render_construct_paths,
    ]

    renderer: Processor
    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.
    """
    return structlog.get_logger(name)


def bind_contextvars(**kwargs: Any) -> None:
    """
    Bind key-value pairs to the current context.

    These values are included in every subsequent log event of the synth run.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_contextvars() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
