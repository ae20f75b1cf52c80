"""
OpenTelemetry + Prometheus + structlog 的 Observer 实现

指标名为 {namespace}_request_total{method,status} 与
{namespace}_request_duration_seconds{method}；同名指标在进程内只注册一次。
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import Counter, Histogram

from core.config import settings
from core.logging_config import get_logger
from domain.common.observer import REQUEST_DURATION, REQUEST_TOTAL, Observer


logger = get_logger("transaction.observer")

_METRICS: Dict[str, Any] = {}
_METRICS_LOCK = threading.Lock()

_LABELS: Dict[str, Tuple[str, ...]] = {
    REQUEST_TOTAL: ("method", "status"),
    REQUEST_DURATION: ("method",),
}


def _metric(namespace: str, name: str):
    full_name = f"{namespace}_{name}"
    with _METRICS_LOCK:
        metric = _METRICS.get(full_name)
        if metric is None:
            labels = _LABELS.get(name, ("method",))
            if name == REQUEST_DURATION:
                metric = Histogram(full_name, "Command duration in seconds", labels)
            else:
                metric = Counter(full_name, "Command requests", labels)
            _METRICS[full_name] = metric
        return metric


class TelemetryObserver(Observer):
    """未配置 OpenTelemetry SDK 时 tracer 为 no-op，span 操作开销很小"""

    def __init__(
        self,
        service_name: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self.tracer = trace.get_tracer(service_name or settings.tracing.service_name)
        self.namespace = namespace or settings.metrics.namespace

    def start_span(self, name: str, attributes: Optional[dict] = None) -> Any:
        span = self.tracer.start_span(name)
        if attributes:
            self.set_attributes(span, **attributes)
        return span

    def end_span(self, span: Any, *, error: Optional[BaseException] = None) -> None:
        if span is None:
            return
        if error is not None:
            span.record_exception(error)
            span.set_status(Status(StatusCode.ERROR, str(error)))
        else:
            span.set_status(Status(StatusCode.OK))
        span.end()

    def set_attributes(self, span: Any, **attributes: Any) -> None:
        if span is None:
            return
        for key, value in attributes.items():
            if value is None:
                continue
            span.set_attribute(key, value if isinstance(value, (bool, int, float, str)) else str(value))

    def increment(self, name: str, **labels: str) -> None:
        _metric(self.namespace, name).labels(**labels).inc()

    def observe_duration(self, name: str, seconds: float, **labels: str) -> None:
        _metric(self.namespace, name).labels(**labels).observe(seconds)

    def log_event(self, event: str, **fields: Any) -> None:
        if event == "operation_failed":
            logger.warning(event, **fields)
        elif event == "transaction_pipeline_stage":
            logger.debug(event, **fields)
        else:
            logger.info(event, **fields)
