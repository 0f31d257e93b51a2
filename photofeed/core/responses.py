from typing import Any, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    status: str = "success"
    data: T


def success(data: Any) -> dict:
    return {"status": "success", "data": data}
