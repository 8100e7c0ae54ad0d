# rpcnaming/schemas.py
from typing import Any, List
from pydantic import BaseModel, Field


class InvokeRequest(BaseModel):
    method: str = Field(..., min_length=1)
    args: List[Any] = Field(default_factory=list)


class InvokeResponse(BaseModel):
    result: Any = None


class Ack(BaseModel):
    ok: bool = True
