from __future__ import annotations

from typing import Optional, Sequence
import grpc
from grpc_health.v1 import health, health_pb2_grpc, health_pb2

from core.config import settings
from core.logging_config import get_logger
from grpc_app.interceptors.request_id import RequestIdInterceptor
from grpc_app.interceptors.logging import LoggingInterceptor
from grpc_app.interceptors.exceptions import ExceptionMappingInterceptor
from grpc_app.services.transaction_service import (
    SERVICE_NAME,
    TransactionService,
    add_TransactionServiceServicer_to_server,
)
from infrastructure.cache import TransactionCache, init_redis_cache


logger = get_logger(__name__)


async def _default_servicer() -> TransactionService:
    redis_cache = await init_redis_cache()
    cache = TransactionCache(redis_cache, ttl=settings.redis.default_ttl) if redis_cache else None
    logger.info("transaction_cache_configured", enabled=cache is not None)
    return TransactionService(cache=cache)


async def create_server(
    servicer: Optional[TransactionService] = None,
    address: Optional[str] = None,
) -> grpc.aio.Server:
    """address 为空时按配置绑定；测试传入 127.0.0.1:0 并通过 server.bound_port 取端口"""
    interceptors: Sequence[grpc.aio.ServerInterceptor] = (
        RequestIdInterceptor(),
        LoggingInterceptor(),
        ExceptionMappingInterceptor(),  # maps business exceptions
    )

    options = [
        ("grpc.max_concurrent_streams", max(1, settings.grpc.max_concurrent_streams)),
    ]
    server = grpc.aio.server(interceptors=interceptors, options=options)

    # Register services
    add_TransactionServiceServicer_to_server(servicer or await _default_servicer(), server)

    # Health service；拦截器会 await 处理函数，必须使用 asyncio 版本
    health_svc = health.aio.HealthServicer()
    health_pb2_grpc.add_HealthServicer_to_server(health_svc, server)
    await health_svc.set("", health_pb2.HealthCheckResponse.SERVING)
    await health_svc.set(SERVICE_NAME, health_pb2.HealthCheckResponse.SERVING)

    # Bind address
    address = address or f"{settings.grpc.host}:{settings.grpc.port}"

    if settings.grpc.tls.enabled:
        if not (settings.grpc.tls.cert and settings.grpc.tls.key):
            raise RuntimeError("GRPC TLS enabled but cert/key not provided")
        with open(settings.grpc.tls.cert, "rb") as f:
            cert_chain = f.read()
        with open(settings.grpc.tls.key, "rb") as f:
            private_key = f.read()
        root_certificates = None
        if settings.grpc.tls.ca:
            with open(settings.grpc.tls.ca, "rb") as f:
                root_certificates = f.read()
        creds = grpc.ssl_server_credentials(
            [(private_key, cert_chain)],
            root_certificates=root_certificates,
            require_client_auth=bool(root_certificates),
        )
        bound_port = server.add_secure_port(address, creds)
    else:
        bound_port = server.add_insecure_port(address)

    server.bound_port = bound_port  # type: ignore[attr-defined]
    return server
