"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field, field_validator, model_serializer, ConfigDict, ValidationError
from typing import Optional, Type, TypeVar, Any
from datetime import datetime, timezone

from domain.common.exceptions import DomainValidationException


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class CreateTransactionDTO(DTOBase):
    """创建交易请求；amount 为顾客实付金额（最小货币单位）"""
    order_id: int = Field(..., gt=0, description="订单ID")
    cashier_id: int = Field(..., gt=0, description="收银员ID")
    payment_method: str = Field(..., min_length=1, max_length=50, description="支付方式")
    amount: int = Field(..., ge=0, description="实付金额")

    @field_validator("payment_method")
    def validate_payment_method(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("支付方式不能为空")
        return v


class UpdateTransactionDTO(CreateTransactionDTO):
    """更新交易请求"""
    transaction_id: int = Field(..., gt=0, description="交易ID")


class TransactionResponseDTO(DTOBase):
    """交易响应DTO"""
    id: int
    order_id: int
    cashier_id: int
    merchant_id: int
    payment_method: str
    amount: int
    payment_status: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class TransactionDeleteAtResponseDTO(TransactionResponseDTO):
    """带软删除时间的交易响应DTO（回收站相关操作使用）"""
    deleted_at: Optional[datetime]


T = TypeVar("T", bound=BaseModel)


def parse_dto(dto_cls: Type[T], payload: Any) -> T:
    """校验请求载荷，失败时转换为领域校验异常（列出所有错误字段）"""
    try:
        return dto_cls.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        first = errors[0] if errors else {"field": None, "message": "参数校验失败"}
        raise DomainValidationException(
            f"参数校验失败: {first['field']} {first['message']}",
            field=first["field"],
            details={"errors": errors},
        ) from exc


class TransactionIdDTO(DTOBase):
    """按ID操作交易的请求（回收站/恢复/永久删除/查询）"""
    id: int = Field(..., gt=0, description="交易ID")
