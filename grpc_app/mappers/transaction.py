from __future__ import annotations

from typing import Any, Dict

from google.protobuf import json_format, struct_pb2

from application.dto import DTOBase
from domain.common.exceptions import DomainValidationException


# Struct 只有 double 数值类型，超过 2**53 - 1 的整数无法区分相邻值
MAX_SAFE_INTEGER = 2 ** 53 - 1


def _normalize(value: Any, key: str | None = None) -> Any:
    if isinstance(value, float) and value.is_integer():
        if abs(value) > MAX_SAFE_INTEGER:
            raise DomainValidationException(
                f"整数超出 Struct 可精确表示的范围 (±(2**53 - 1)): {key}",
                field=key,
                details={"max": MAX_SAFE_INTEGER},
            )
        return int(value)
    if isinstance(value, dict):
        return {k: _normalize(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v, key) for v in value]
    return value


def struct_to_payload(message: struct_pb2.Struct) -> Dict[str, Any]:
    return _normalize(json_format.MessageToDict(message))


def payload_to_struct(payload: Dict[str, Any]) -> struct_pb2.Struct:
    msg = struct_pb2.Struct()
    json_format.ParseDict(payload, msg)
    return msg


def dto_to_struct(dto: DTOBase) -> struct_pb2.Struct:
    return payload_to_struct(dto.model_dump())


def status_reply(success: bool = True, message: str = "") -> struct_pb2.Struct:
    payload: Dict[str, Any] = {"success": bool(success)}
    if message:
        payload["message"] = message
    return payload_to_struct(payload)


Struct = struct_pb2.Struct  # alias
