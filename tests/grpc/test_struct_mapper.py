import pytest
from google.protobuf import struct_pb2

from domain.common.exceptions import DomainValidationException
from grpc_app.mappers.transaction import MAX_SAFE_INTEGER, payload_to_struct, struct_to_payload


def test_whole_numbers_come_back_as_int():
    payload = struct_to_payload(payload_to_struct({"id": 42, "amount": 27750, "payment_method": "cash"}))

    assert payload == {"id": 42, "amount": 27750, "payment_method": "cash"}
    assert isinstance(payload["id"], int)


def test_largest_safe_integer_is_accepted():
    assert struct_to_payload(payload_to_struct({"id": MAX_SAFE_INTEGER})) == {"id": MAX_SAFE_INTEGER}


def test_integer_beyond_double_precision_is_rejected():
    msg = struct_pb2.Struct()
    msg["id"] = float(2 ** 53 + 2)

    with pytest.raises(DomainValidationException) as exc_info:
        struct_to_payload(msg)

    assert exc_info.value.field == "id"
