"""
可观测性端口 - 链路追踪 / 指标 / 日志的统一抽象

业务代码只依赖该接口；基础设施层提供 OpenTelemetry + Prometheus + structlog
实现，测试中注入 NoopObserver。
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Optional


REQUEST_TOTAL = "request_total"
REQUEST_DURATION = "request_duration_seconds"


def status_label(exc: Optional[BaseException]) -> str:
    """指标状态标签：success / error_<kind> / cancelled"""
    if exc is None:
        return "success"
    if isinstance(exc, asyncio.CancelledError):
        return "cancelled"
    kind = getattr(exc, "kind", None)
    if kind is not None:
        return f"error_{getattr(kind, 'value', kind)}"
    if hasattr(exc, "code") and hasattr(exc, "error_type"):
        return "error_business"
    return "error_system"


class Observer(ABC):
    """可观测性能力：开始/结束 span、计数、记录事件"""

    @abstractmethod
    def start_span(self, name: str, attributes: Optional[dict] = None) -> Any:
        ...

    @abstractmethod
    def end_span(self, span: Any, *, error: Optional[BaseException] = None) -> None:
        ...

    @abstractmethod
    def set_attributes(self, span: Any, **attributes: Any) -> None:
        ...

    @abstractmethod
    def increment(self, name: str, **labels: str) -> None:
        ...

    @abstractmethod
    def observe_duration(self, name: str, seconds: float, **labels: str) -> None:
        ...

    @abstractmethod
    def log_event(self, event: str, **fields: Any) -> None:
        ...

    @contextmanager
    def operation(self, method: str, **attributes: Any) -> Iterator[Any]:
        """包裹一次对外操作：span + 请求计数 + 耗时 + 开始/结束日志"""
        start = time.perf_counter()
        span = self.start_span(method, attributes)
        self.log_event("operation_started", method=method, **attributes)
        error: Optional[BaseException] = None
        try:
            yield span
        except BaseException as exc:
            error = exc
            raise
        finally:
            status = status_label(error)
            self.end_span(span, error=error)
            self.increment(REQUEST_TOTAL, method=method, status=status)
            self.observe_duration(REQUEST_DURATION, time.perf_counter() - start, method=method)
            if error is None:
                self.log_event("operation_succeeded", method=method)
            else:
                self.log_event(
                    "operation_failed",
                    method=method,
                    status=status,
                    error_type=getattr(error, "error_type", type(error).__name__),
                    error=str(error),
                )


class NoopObserver(Observer):
    """什么都不做的实现（测试/脚本使用）"""

    def start_span(self, name: str, attributes: Optional[dict] = None) -> Any:
        return None

    def end_span(self, span: Any, *, error: Optional[BaseException] = None) -> None:
        return None

    def set_attributes(self, span: Any, **attributes: Any) -> None:
        return None

    def increment(self, name: str, **labels: str) -> None:
        return None

    def observe_duration(self, name: str, seconds: float, **labels: str) -> None:
        return None

    def log_event(self, event: str, **fields: Any) -> None:
        return None
