"""
city_info.observability.logging

Environment-aware diagnostics assembly.

Responsibilities:
- Decide the sink configuration (console vs console + Application Insights) from settings.
- Build a `Diagnostics` handle with structlog JSON rendering over a dedicated stdlib logger tree.
- Hand out bound loggers from that handle; components receive the handle explicitly.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import IO, Any

import structlog
from structlog.tracebacks import ExceptionDictTransformer
from azure.monitor.opentelemetry.exporter import AzureMonitorLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource

from city_info.errors import ConfigurationError
from city_info.settings import Settings

ROOT_LOGGER = "city_info"

SINK_CONSOLE = "console"
SINK_APPLICATION_INSIGHTS = "application_insights"


@dataclass(frozen=True, slots=True)
class DiagnosticsConfig:
    service_name: str
    min_level: int
    sinks: tuple[str, ...]
    instrumentation_key: str | None = field(default=None, repr=False)

    @property
    def remote(self) -> bool:
        return SINK_APPLICATION_INSIGHTS in self.sinks


def build_diagnostics_config(settings: Settings) -> DiagnosticsConfig:
    """
    Development: console only at DEBUG.
    Anything else: console + Application Insights; the instrumentation key is mandatory.
    """

    if settings.is_development:
        return DiagnosticsConfig(
            service_name=settings.service_name,
            min_level=logging.DEBUG,
            sinks=(SINK_CONSOLE,),
        )

    key = settings.application_insights_instrumentation_key
    if not key:
        raise ConfigurationError(
            f"application_insights_instrumentation_key is required when env={settings.env!r}"
        )
    return DiagnosticsConfig(
        service_name=settings.service_name,
        min_level=getattr(logging, settings.log_level.upper(), logging.INFO),
        sinks=(SINK_CONSOLE, SINK_APPLICATION_INSIGHTS),
        instrumentation_key=key,
    )


class Diagnostics:
    """
    Logging handle owning its own logger tree. Read-only after construction.

    The tree is not registered with `logging.getLogger`, so two handles never share sinks.
    """

    def __init__(
        self,
        *,
        config: DiagnosticsConfig,
        root: logging.Logger,
        processors: list[Any],
        on_shutdown: list[Callable[[], None]] | None = None,
    ) -> None:
        self.config = config
        self._root = root
        self._processors = processors
        self._on_shutdown = on_shutdown or []
        self._loggers: dict[str, logging.Logger] = {root.name: root}

    @property
    def handlers(self) -> list[logging.Handler]:
        return list(self._root.handlers)

    def get_logger(self, name: str) -> structlog.stdlib.BoundLogger:
        if name != self._root.name and not name.startswith(self._root.name + "."):
            name = f"{self._root.name}.{name}"
        return structlog.wrap_logger(
            self._stdlib_logger(name),
            processors=self._processors,
            wrapper_class=structlog.stdlib.BoundLogger,
        )

    def _stdlib_logger(self, name: str) -> logging.Logger:
        logger = self._loggers.get(name)
        if logger is None:
            # Level stays NOTSET: the effective level and handlers come from the handle's root.
            logger = logging.Logger(name)
            logger.parent = self._root
            self._loggers[name] = logger
        return logger

    def shutdown(self) -> None:
        for handler in self._root.handlers:
            handler.flush()
        for hook in self._on_shutdown:
            hook()


def install_diagnostics(config: DiagnosticsConfig, *, stream: IO[str] | None = None) -> Diagnostics:
    root = logging.Logger(ROOT_LOGGER, level=config.min_level)
    root.propagate = False

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console)

    on_shutdown: list[Callable[[], None]] = []
    if config.remote:
        handler, provider = _application_insights_handler(config)
        root.addHandler(handler)
        on_shutdown.append(provider.shutdown)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service_name(config.service_name),
        # Frames only; local variables may hold bearer tokens or request headers.
        structlog.processors.ExceptionRenderer(ExceptionDictTransformer(show_locals=False)),
        structlog.processors.JSONRenderer(sort_keys=True),
    ]
    return Diagnostics(config=config, root=root, processors=processors, on_shutdown=on_shutdown)


def _application_insights_handler(
    config: DiagnosticsConfig,
) -> tuple[logging.Handler, LoggerProvider]:
    provider = LoggerProvider(resource=Resource.create({"service.name": config.service_name}))
    exporter = AzureMonitorLogExporter(
        connection_string=f"InstrumentationKey={config.instrumentation_key}"
    )
    # Batching keeps remote writes off the request path.
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    return LoggingHandler(level=config.min_level, logger_provider=provider), provider


def _add_service_name(service_name: str):
    # Adds a stable "service" field for log routing/aggregation across environments.
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


# --- Module Notes -----------------------------------------------------------
# Request-scoped metadata is bound via contextvars in `observability.middleware`.
# Nothing here touches the `logging` registry, so uvicorn and library logging stay independent.
