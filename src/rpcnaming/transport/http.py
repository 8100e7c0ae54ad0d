# rpcnaming/transport/http.py
import json
from typing import Any, TYPE_CHECKING

import pydantic
from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from rpcnaming.errors import InvocationError, NamingRPCError, ValidationError
from rpcnaming.schemas import InvokeRequest, InvokeResponse

if TYPE_CHECKING:
    from rpcnaming.server.dispatcher import InvocationDispatcher


async def read_json_body(request: Request) -> dict:
    """Parse a request body into a JSON object, raising ValidationError otherwise."""
    raw = await request.body()
    if not raw:
        raise ValidationError("empty body")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("body is not valid JSON", {"reason": str(e)})
    if not isinstance(payload, dict):
        raise ValidationError("body must be a JSON object")
    return payload


def parse_model(model: type[pydantic.BaseModel], payload: dict) -> Any:
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ValidationError(
            f"invalid or missing fields: {', '.join(fields)}",
            {"fields": fields},
        )


def error_response(error: NamingRPCError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def encode_result(method: str, result: Any) -> bytes:
    """Serialize an invocation result, refusing values JSON cannot carry exactly."""
    try:
        content = jsonable_encoder(InvokeResponse(result=result).model_dump(mode="python"))
        return json.dumps(content, allow_nan=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise InvocationError(
            "result is not JSON-serializable",
            {"method": method, "reason": str(e)},
        )


class HTTPTransport:
    """Serves `POST /invoke` for one dispatcher."""

    def __init__(self, dispatcher: "InvocationDispatcher"):
        self.dispatcher = dispatcher

    async def handle(self, request: Request) -> Response:
        try:
            payload = await read_json_body(request)
            req = parse_model(InvokeRequest, payload)
            result = await self.dispatcher.invoke(req.method, req.args)
            body = encode_result(req.method, result)
        except NamingRPCError as e:
            return error_response(e)

        return Response(content=body, media_type="application/json")
