from __future__ import annotations

import asyncio
import time
from typing import Callable, Awaitable

import grpc

from core.logging_config import get_logger
from grpc_app.interceptors.exceptions import is_mapped_error


logger = get_logger(__name__)


class LoggingInterceptor(grpc.aio.ServerInterceptor):
    """每个 RPC 一条开始日志与一条结束日志（含结果与耗时）"""

    async def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Awaitable[grpc.RpcMethodHandler]],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler:
        handler = await continuation(handler_call_details)
        if handler is None or not handler.unary_unary:
            return handler

        method = handler_call_details.method
        rpc = method.rsplit("/", 1)[-1]

        async def _unary_unary(request, context: grpc.aio.ServicerContext):
            start = time.perf_counter()
            outcome = "ok"
            logger.info("grpc_request", method=method, rpc=rpc, peer=context.peer())
            try:
                return await handler.unary_unary(request, context)
            except asyncio.CancelledError:
                outcome = "cancelled"
                raise
            except Exception as exc:
                # 已由异常映射拦截器记录，不重复打印堆栈
                outcome = "mapped_error" if is_mapped_error() else "error"
                if outcome == "error":
                    logger.error("grpc_unhandled_error", method=method, error=str(exc), exc_info=True)
                raise
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.info(
                    "grpc_request_done",
                    method=method,
                    rpc=rpc,
                    outcome=outcome,
                    elapsed_ms=round(elapsed_ms, 2),
                )

        return grpc.unary_unary_rpc_method_handler(
            _unary_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )
