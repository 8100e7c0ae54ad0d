from __future__ import annotations

from typing import Any, Callable, List

import httpx

from rpcnaming.client.naming_client import NamingClient
from rpcnaming.client.proxy import RemoteProxy
from rpcnaming.config.default import NAMING_URLS
from rpcnaming.errors import NotFoundError
from rpcnaming.naming.models import Entry

Chooser = Callable[[List[Entry]], Entry]


def first_entry(entries: List[Entry]) -> Entry:
    return entries[0]


class RPCClient:
    """
    Resolve a name through a naming node, then call it through a proxy.

    The naming node returns every live replica; `chooser` picks one
    (the first, unless told otherwise).
    """

    def __init__(
        self,
        naming_url: str | None = None,
        *,
        chooser: Chooser = first_entry,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        naming_url = naming_url or (NAMING_URLS[0] if NAMING_URLS else "http://127.0.0.1:5000")
        self.naming = NamingClient(naming_url, transport=transport)
        self.chooser = chooser
        self.transport = transport

    async def find(self, name: str, exact: bool = False) -> List[Entry]:
        entries = await (self.naming.lookup(name) if exact else self.naming.resolve(name))
        if not entries:
            raise NotFoundError(f"no binding for '{name}'", {"name": name})
        return entries

    async def connect(self, name: str, exact: bool = False, **proxy_kwargs: Any) -> RemoteProxy:
        entries = await self.find(name, exact=exact)
        entry = self.chooser(entries)
        return RemoteProxy(entry, transport=self.transport, **proxy_kwargs)

    async def call(self, name: str, method: str, *args: Any) -> Any:
        """One-shot: resolve `name` and invoke `method` on it."""
        entry = self.chooser(await self.find(name))
        async with RemoteProxy(entry, transport=self.transport) as proxy:
            return await proxy.call(method, args)

    async def aclose(self) -> None:
        await self.naming.aclose()

    async def __aenter__(self) -> "RPCClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
