import asyncio

from prometheus_client import start_http_server

from core.config import settings
from core.logging_config import get_logger
from grpc_app.server import create_server
from infrastructure.cache import shutdown_redis_cache
from infrastructure.database import dispose_engine


logger = get_logger(__name__)


async def main() -> None:
    if not settings.grpc.enabled:
        logger.warning("grpc_disabled", message="gRPC disabled by config (GRPC__ENABLED=false)")
        return

    if settings.metrics.enabled:
        start_http_server(settings.metrics.port)
        logger.info("metrics_started", port=settings.metrics.port)

    server = await create_server()
    address = f"{settings.grpc.host}:{settings.grpc.port}"
    logger.info("grpc_starting", address=address)
    await server.start()
    logger.info("grpc_started", address=address)
    try:
        await server.wait_for_termination()
    finally:
        logger.info("grpc_stopping")
        await server.stop(grace=5)
        await shutdown_redis_cache()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
