from __future__ import annotations

import logging
from typing import Any, List
from urllib.parse import quote

import httpx
import pydantic

from rpcnaming.errors import NamingUnavailableError
from rpcnaming.naming.models import Entry, LookupResponse, ResolveResult


class NamingClient:
    """
    Client for one naming node.
    Handles registration of service instances and name queries.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logging.getLogger("rpcnaming.client.naming")

    async def __aenter__(self) -> "NamingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = await self.client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"{method} {url} -> {e.response.status_code}")
            raise NamingUnavailableError(
                f"{method} {path} failed: {e.response.status_code}",
                {"status": e.response.status_code, "url": url},
            ) from e
        except httpx.RequestError as e:
            self.logger.error(f"Network error calling {url}: {e}")
            raise NamingUnavailableError(
                f"naming node {self.base_url} unreachable: {e}", {"url": url}
            ) from e
        except ValueError as e:
            raise NamingUnavailableError(
                f"{method} {path} returned a non-JSON body", {"url": url}
            ) from e

    # ───── Registration ─────
    async def register(self, entry: Entry) -> None:
        self.logger.debug(f"Registering {entry.name} at {self.base_url}")
        await self._request("POST", "/register", json=entry.to_wire())
        self.logger.info(f"Registered {entry.name} -> {entry.address} at {self.base_url}")

    async def unregister(self, name: str, host: str, port: int) -> None:
        await self._request(
            "POST", "/unregister", json={"name": name, "host": host, "port": port}
        )

    async def renew(self, entry: Entry) -> None:
        """Refresh a lease without piling up duplicate entries."""
        await self.unregister(entry.name, entry.host, entry.port)
        await self.register(entry)

    # ───── Queries ─────
    async def lookup(self, name: str) -> List[Entry]:
        """Exact registry membership on this node, no fallback or delegation."""
        data = await self._request("GET", f"/lookup/{quote(name, safe='')}")
        try:
            return LookupResponse.model_validate(data).entries
        except pydantic.ValidationError as e:
            raise NamingUnavailableError(f"malformed lookup answer for {name}") from e

    async def resolve_result(self, name: str) -> ResolveResult:
        data = await self._request("GET", "/resolve", params={"name": name})
        try:
            return ResolveResult.model_validate(data)
        except pydantic.ValidationError as e:
            raise NamingUnavailableError(f"malformed resolve answer for {name}") from e

    async def resolve(self, name: str) -> List[Entry]:
        """Entries bound to `name` after prefix fallback and delegation; [] if none."""
        return (await self.resolve_result(name)).entries

    async def info(self) -> dict:
        return await self._request("GET", "/info")

    async def list_all(self) -> dict:
        return await self._request("GET", "/list")
