from __future__ import annotations

import uuid
import contextvars
from typing import Callable, Awaitable

import grpc
import structlog


REQUEST_ID_META_KEY = "x-request-id"
_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("grpc_request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


def _incoming_request_id(handler_call_details: grpc.HandlerCallDetails) -> str:
    for key, value in handler_call_details.invocation_metadata or ():
        if key == REQUEST_ID_META_KEY and value:
            return value if isinstance(value, str) else value.decode("utf-8")
    return str(uuid.uuid4())


class RequestIdInterceptor(grpc.aio.ServerInterceptor):
    """透传或生成 x-request-id，并绑定到 structlog 上下文，流水线内的日志都带上它"""

    async def intercept_service(
        self,
        continuation: Callable[[grpc.HandlerCallDetails], Awaitable[grpc.RpcMethodHandler]],
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler:
        handler = await continuation(handler_call_details)
        if handler is None or not handler.unary_unary:
            return handler

        async def _unary_unary(request, context: grpc.aio.ServicerContext):
            request_id = _incoming_request_id(handler_call_details)
            # 错误映射时会整体覆盖 trailing metadata，这里先回传给客户端用于关联
            await context.send_initial_metadata(((REQUEST_ID_META_KEY, request_id),))
            token = _request_id_var.set(request_id)
            structlog.contextvars.bind_contextvars(request_id=request_id)
            try:
                return await handler.unary_unary(request, context)
            finally:
                structlog.contextvars.unbind_contextvars("request_id")
                _request_id_var.reset(token)

        return grpc.unary_unary_rpc_method_handler(
            _unary_unary,
            request_deserializer=handler.request_deserializer,
            response_serializer=handler.response_serializer,
        )
