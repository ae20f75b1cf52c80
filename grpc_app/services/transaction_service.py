from __future__ import annotations

from typing import Optional

import grpc

from application.dto import (
    CreateTransactionDTO,
    UpdateTransactionDTO,
    TransactionIdDTO,
    parse_dto,
)
from application.ports.transaction_cache import TransactionCachePort
from application.services.transaction_service import TransactionCommandService
from infrastructure.observability import TelemetryObserver
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from grpc_app.mappers.transaction import (
    Struct,
    dto_to_struct,
    status_reply,
    struct_to_payload,
)


SERVICE_NAME = "pos.v1.TransactionService"


class TransactionService:
    """交易命令 gRPC 适配层：请求/响应均为 google.protobuf.Struct"""

    def __init__(
        self,
        app_service: Optional[TransactionCommandService] = None,
        cache: Optional[TransactionCachePort] = None,
    ) -> None:
        self._svc = app_service or TransactionCommandService(
            uow_factory=SQLAlchemyUnitOfWork,
            observer=TelemetryObserver(),
            cache=cache,
        )

    async def CreateTransaction(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        dto = parse_dto(CreateTransactionDTO, struct_to_payload(request))
        transaction = await self._svc.create_transaction(dto)
        return dto_to_struct(transaction)

    async def UpdateTransaction(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        dto = parse_dto(UpdateTransactionDTO, struct_to_payload(request))
        transaction = await self._svc.update_transaction(dto)
        return dto_to_struct(transaction)

    async def FindTransactionById(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        req = parse_dto(TransactionIdDTO, struct_to_payload(request))
        transaction = await self._svc.get_transaction(req.id)
        return dto_to_struct(transaction)

    async def TrashedTransaction(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        req = parse_dto(TransactionIdDTO, struct_to_payload(request))
        transaction = await self._svc.trashed_transaction(req.id)
        return dto_to_struct(transaction)

    async def RestoreTransaction(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        req = parse_dto(TransactionIdDTO, struct_to_payload(request))
        transaction = await self._svc.restore_transaction(req.id)
        return dto_to_struct(transaction)

    async def DeleteTransactionPermanent(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        req = parse_dto(TransactionIdDTO, struct_to_payload(request))
        ok = await self._svc.delete_transaction_permanent(req.id)
        return status_reply(ok, "交易已永久删除")

    async def RestoreAllTransactions(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        ok = await self._svc.restore_all_transactions()
        return status_reply(ok, "回收站交易已全部恢复")

    async def DeleteAllTransactionPermanent(self, request: Struct, context: grpc.aio.ServicerContext) -> Struct:
        ok = await self._svc.delete_all_transaction_permanent()
        return status_reply(ok, "回收站交易已全部永久删除")


RPC_METHODS = (
    "CreateTransaction",
    "UpdateTransaction",
    "FindTransactionById",
    "TrashedTransaction",
    "RestoreTransaction",
    "DeleteTransactionPermanent",
    "RestoreAllTransactions",
    "DeleteAllTransactionPermanent",
)


def add_TransactionServiceServicer_to_server(servicer: TransactionService, server: grpc.aio.Server) -> None:
    """不依赖代码生成，按方法名注册 Struct 编解码的 unary-unary 处理器"""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=Struct.FromString,
            response_serializer=Struct.SerializeToString,
        )
        for name in RPC_METHODS
    }
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))
