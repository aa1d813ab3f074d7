"""
OpenTelemetry tracing for the booking service.

Spans come from three places: FastAPI request instrumentation, SQLAlchemy and
Redis client instrumentation, and manual spans opened by use cases through
``trace.get_tracer(__name__)``. Nothing is exported unless an OTLP endpoint or
console export is configured, so tests run against a silent provider.
"""

import os
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from src.platform.logging.loguru_io import Logger


class TracingConfig:
    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: Optional[str] = None,
        enable_console: bool = False,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        self.enable_console = (
            enable_console or os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        )
        self._provider: Optional[TracerProvider] = None

    def setup(self) -> None:
        # Sample everything here; volume control belongs to a tail-sampling collector
        self._provider = TracerProvider(
            resource=Resource(attributes={SERVICE_NAME: self.service_name}), sampler=ALWAYS_ON
        )
        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)
        Logger.base.info(
            f'🔭 [TRACING] {self.service_name} tracing enabled '
            f'(otlp={self.otlp_endpoint or "off"}, console={self.enable_console})'
        )

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = 'health,metrics') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        # AsyncEngine wraps a sync engine; the instrumentor hooks the latter
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def instrument_redis(self) -> None:
        RedisInstrumentor().instrument()

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()
