# rpcnaming/client/proxy.py
from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from rpcnaming.config.default import INVOKE_TIMEOUT
from rpcnaming.errors import InvocationError
from rpcnaming.naming.models import Entry
from rpcnaming.schemas import InvokeRequest


class InvocationTransport:
    """Posts `{method, args}` to a service's /invoke endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = INVOKE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = f"{base_url.rstrip('/')}/invoke"
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logging.getLogger("rpcnaming.client.proxy")

    async def call_method(self, method: str, args: Sequence[Any] = ()) -> Any:
        req = InvokeRequest(method=method, args=list(args))
        try:
            resp = await self.client.post(self.url, json=req.model_dump())
        except httpx.HTTPError as e:
            self.logger.error(f"Invocation of {method} at {self.url} failed: {e}")
            raise InvocationError(f"service at {self.url} unreachable: {e}", {"method": method}) from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_success and isinstance(data, dict) and "result" in data:
            return data["result"]

        error = data.get("error") if isinstance(data, dict) else None
        raise InvocationError(
            error if isinstance(error, str) and error else "invoke error",
            {
                "method": method,
                "status": resp.status_code,
                "code": data.get("code") if isinstance(data, dict) else None,
            },
        )

    async def close(self):
        await self.client.aclose()


class RemoteProxy:
    """
    Stand-in for a resolved service: any attribute becomes a remote method.

        calc = RemoteProxy(entry)
        await calc.add(2, 3)            # POST /invoke {"method": "add", "args": [2, 3]}
        await calc.call("add", [2, 3])  # same, for names that clash with this class

    Which names are valid is decided by the remote dispatcher at call time.
    Names starting with an underscore are never forwarded.
    """

    def __init__(
        self,
        entry: Entry,
        timeout: float = INVOKE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._entry = entry
        self._transport = InvocationTransport(
            f"http://{entry.host}:{entry.port}", timeout=timeout, transport=transport
        )

    async def call(self, method: str, args: Sequence[Any] = ()) -> Any:
        return await self._transport.call_method(method, args)

    def __getattr__(self, method: str):
        if method.startswith("_"):
            raise AttributeError(method)

        async def remote_method(*args: Any) -> Any:
            return await self.call(method, args)

        remote_method.__name__ = method
        return remote_method

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self._entry.iface or ()))

    def __repr__(self) -> str:
        return f"<RemoteProxy {self._entry.name} @ {self._entry.address}>"

    async def aclose(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "RemoteProxy":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def build_proxy(entry: Entry, **kwargs: Any) -> RemoteProxy:
    return RemoteProxy(entry, **kwargs)
