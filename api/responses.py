"""
Route helpers: unwrap ``Result`` values into HTTP responses.
"""
from typing import Sequence, TypeVar

from fastapi import Response
from pydantic import BaseModel, TypeAdapter

from application.services.idempotency_service import StoredResponse
from domain.common.exceptions import ResultErrorException
from domain.common.result import Result


T = TypeVar("T")

REPLAYED_HEADER = "Idempotent-Replayed"


def unwrap(result: Result[T]) -> T:
    """成功返回值；失败则抛出业务异常，交由全局处理器渲染"""
    if result.is_failure:
        raise ResultErrorException(result.error)
    return result.value


def json_response(model: BaseModel, status_code: int = 200) -> Response:
    return Response(content=model.model_dump_json(), status_code=status_code, media_type="application/json")


def json_list_response(models: Sequence[BaseModel], status_code: int = 200) -> Response:
    body = TypeAdapter(list).dump_json([m.model_dump(mode="json") for m in models])
    return Response(content=body, status_code=status_code, media_type="application/json")


def stored_response(stored: StoredResponse) -> Response:
    """Body and status exactly as first produced."""
    response = Response(content=stored.body, status_code=stored.status_code, media_type="application/json")
    if stored.replayed:
        response.headers[REPLAYED_HEADER] = "true"
    return response
