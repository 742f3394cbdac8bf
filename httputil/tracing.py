# httputil/tracing.py

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context

from httputil.core.logger import get_logger

logger = get_logger(__name__)

TRACER_NAME = "httputil"
READ_DURATION_ATTRIBUTE = "http.response.read_ms"


@dataclass(frozen=True)
class RequestContext:
    """
    Contexte d'un appel : contexte OpenTelemetry (span parent) et timeout.

    trace_context=None : contexte OpenTelemetry courant au moment de l'appel.
    timeout=None : timeout du transport httpx.
    """
    trace_context: Optional[Context] = None
    timeout: Optional[float] = None

    @classmethod
    def current(cls, timeout: Optional[float] = None) -> "RequestContext":
        """Capture le contexte OpenTelemetry courant."""
        return cls(trace_context=otel_context.get_current(), timeout=timeout)

    def get_trace_context(self) -> Context:
        if self.trace_context is not None:
            return self.trace_context
        return otel_context.get_current()

    def has_active_span(self) -> bool:
        return trace.get_current_span(self.get_trace_context()).get_span_context().is_valid


@contextmanager
def child_span(ctx: RequestContext, op_name: str,
               tracer_provider: Optional[trace.TracerProvider] = None) -> Iterator[Optional[trace.Span]]:
    """
    Ouvre un span enfant op_name si le contexte porte déjà un span actif.

    Sans span parent : aucun span n'est créé, on cède None.
    Une exception levée dans le bloc est enregistrée sur le span puis propagée.
    """
    if not ctx.has_active_span():
        yield None
        return

    tracer = trace.get_tracer(TRACER_NAME, tracer_provider=tracer_provider)
    with tracer.start_as_current_span(op_name, context=ctx.get_trace_context()) as span:
        yield span


class ReadTimer:
    """
    Mesure le temps entre la réception des headers (premier octet) et la fin
    de la lecture du corps, via l'extension 'trace' de httpx/httpcore.
    """

    def __init__(self, op_name: str):
        self.op_name = op_name
        self.first_byte_at: Optional[float] = None

    def hook(self, event_name: str, info: dict) -> None:
        if self.first_byte_at is None and event_name.endswith("receive_response_headers.complete"):
            self.first_byte_at = time.monotonic()

    async def ahook(self, event_name: str, info: dict) -> None:
        self.hook(event_name, info)

    def log_time_spent(self, span: trace.Span) -> None:
        if self.first_byte_at is None:
            return
        elapsed_ms = (time.monotonic() - self.first_byte_at) * 1000
        logger.debug(f"Read {self.op_name}: {elapsed_ms:.2f} ms")
        span.set_attribute(READ_DURATION_ATTRIBUTE, elapsed_ms)
