"""Tracing and structured logging for the WeCom agent SDK.

Every client owns one :class:`Telemetry` built from its
:class:`~wecom_agent_sdk.config.TelemetryConfig`. The HTTP executors, the
token cache and the response processing of that client share it, so all of
its spans and log lines carry the same service name and application
identity. The secret never enters the logging context.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Self

import structlog
from opentelemetry import trace

from .errors import AgentClientError, PlatformError

if TYPE_CHECKING:
    from collections.abc import Generator

    from .config import AgentClientConfig, TelemetryConfig

SDK_NAME = "wecom-agent-sdk"
SDK_VERSION = "0.1.0"

SPAN_PREFIX = "wecom."


def get_logger(**context: Any) -> structlog.BoundLogger:
    """Logger for code that runs outside any client, e.g. config loading."""
    return structlog.get_logger(SDK_NAME, **context)


class Telemetry:
    """Tracer and logger of one client.

    Attributes:
        config: The telemetry configuration in effect.
        tracer: OpenTelemetry tracer; a no-op tracer when tracing is disabled.
        logger: structlog logger bound to the client's identity.
    """

    def __init__(self, config: TelemetryConfig | None = None, **context: Any) -> None:
        """Initialize telemetry.

        Args:
            config: Telemetry configuration; defaults apply when omitted.
            **context: Values bound to every log line.
        """
        if config is None:
            from .config import TelemetryConfig

            config = TelemetryConfig()
        self.config = config
        if config.enabled:
            self.tracer: trace.Tracer = trace.get_tracer(config.service_name, SDK_VERSION)
        else:
            self.tracer = trace.NoOpTracer()
        # Lazy proxy; binding happens per call so later structlog config applies.
        self.logger: structlog.BoundLogger = structlog.get_logger(
            config.service_name, **context
        )

    @classmethod
    def for_client(cls, config: AgentClientConfig) -> Self:
        """Telemetry tagged with the client's corp and agent ids."""
        credentials = config.credentials
        return cls(
            config.telemetry,
            corp_id=credentials.corp_id,
            agent_id=credentials.agent_id,
        )

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Generator[trace.Span, None, None]:
        """Run the block inside a ``wecom.<name>`` span.

        SDK errors leaving the block tag the span with their error code, and
        platform errors also with the ``errcode`` returned by WeCom.
        """
        with self.tracer.start_as_current_span(
            SPAN_PREFIX + name,
            attributes=attributes or None,
        ) as span:
            try:
                yield span
            except AgentClientError as e:
                span.set_attribute("wecom.error.code", e.code)
                if isinstance(e, PlatformError):
                    span.set_attribute("wecom.errcode", e.errcode)
                raise


def configure_telemetry(config: TelemetryConfig) -> None:
    """Render SDK logs as JSON lines at ``config.log_level``.

    This configures structlog for the whole process; tracing is set up
    per client by :class:`Telemetry`.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _log_level_to_int(config.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _log_level_to_int(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
