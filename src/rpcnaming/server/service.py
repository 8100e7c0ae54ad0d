# rpcnaming/server/service.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

import anyio
import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from rpcnaming.client.naming_client import NamingClient
from rpcnaming.config import default
from rpcnaming.errors import NamingUnavailableError
from rpcnaming.log import configure_logging
from rpcnaming.naming.models import Entry, EntryKind
from rpcnaming.server.dispatcher import InvocationDispatcher
from rpcnaming.transport.http import HTTPTransport


# ──────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ServiceSettings:
    log_level: str | int = default.LOG_LEVEL
    host: str = default.SERVICE_HOST
    port: int = default.SERVICE_PORT
    advertise_host: str | None = None
    naming_urls: tuple[str, ...] = field(default_factory=lambda: default.NAMING_URLS)
    kind: EntryKind | str = EntryKind.RPC
    lease_seconds: float | None = None
    meta: dict | None = None
    auto_register: bool = True

    def __post_init__(self):
        object.__setattr__(self, "naming_urls", tuple(self.naming_urls))


# ──────────────────────────────────────────────────────────────
# ServiceHost
# ──────────────────────────────────────────────────────────────
class ServiceHost:
    """
    A service process: an invocation dispatcher behind `POST /invoke`, which
    announces itself to every configured naming node on startup.

    Announcing is fire-and-forget: a naming node that cannot be reached is
    logged and skipped, and the service keeps serving invocations.
    """

    def __init__(
        self,
        name: str,
        settings: ServiceSettings | dict | None = None,
        *,
        dispatcher: InvocationDispatcher | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # normalize settings: accept dataclass or dict or None
        if settings is None:
            self._settings: ServiceSettings = ServiceSettings()
        elif isinstance(settings, ServiceSettings):
            self._settings = settings
        elif isinstance(settings, dict):
            self._settings = ServiceSettings(**settings)
        else:
            raise TypeError("settings must be ServiceSettings | dict | None")

        self._name = name
        self._dispatcher = dispatcher or InvocationDispatcher(name)
        self._transport = transport
        self._app: FastAPI | None = None
        self._renew_task: asyncio.Task | None = None
        self._logger = logging.getLogger("rpcnaming.server.service")

        configure_logging(self._settings.log_level)
        self._logger.info(f"Initialized service {self._name}")

    # ───── Properties ─────
    @property
    def name(self) -> str:
        return self._name

    @property
    def settings(self) -> ServiceSettings:
        return self._settings

    @property
    def dispatcher(self) -> InvocationDispatcher:
        return self._dispatcher

    @property
    def methods(self) -> Dict[str, Callable]:
        return self._dispatcher.methods

    @property
    def app(self) -> FastAPI:
        self._setup_fastapi_app()
        return self._app

    # ───── Register Decorator ─────
    def register(self, name: str | None = None, description: str | None = None):
        return self._dispatcher.register(name, description)

    # ───── Naming handshake ─────
    def entry(self) -> Entry:
        return Entry(
            name=self._name,
            host=self._settings.advertise_host or self._settings.host,
            port=self._settings.port,
            kind=self._settings.kind,
            iface=self._dispatcher.method_names,
            meta=self._settings.meta,
            lease_seconds=self._settings.lease_seconds,
        )

    async def _each_naming_node(self, action: str, op: Callable[[NamingClient, Entry], Any]) -> List[str]:
        entry = self.entry()
        done: List[str] = []
        for url in self._settings.naming_urls:
            try:
                async with NamingClient(url, transport=self._transport) as client:
                    await op(client, entry)
                done.append(url)
            except NamingUnavailableError as e:
                # log but do not fail
                self._logger.warning(f"{action} with {url} failed (non-fatal): {e}")
        return done

    async def announce(self) -> List[str]:
        """Register with every naming node; returns the URLs that accepted."""
        done = await self._each_naming_node("Registration", lambda c, e: c.register(e))
        self._logger.info(f"{self._name} registered with {len(done)}/{len(self._settings.naming_urls)} naming nodes")
        return done

    async def renew(self) -> List[str]:
        return await self._each_naming_node("Lease renewal", lambda c, e: c.renew(e))

    async def withdraw(self) -> List[str]:
        return await self._each_naming_node(
            "Unregistration", lambda c, e: c.unregister(e.name, e.host, e.port)
        )

    async def _renew_forever(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            await self.renew()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        if self._settings.auto_register:
            await self.announce()
            lease = self._settings.lease_seconds
            if lease:
                self._renew_task = asyncio.create_task(self._renew_forever(max(lease / 2, 0.5)))
        else:
            self._logger.debug("auto_register disabled, skipping naming registration")
        try:
            yield
        finally:
            if self._renew_task is not None:
                self._renew_task.cancel()
                with suppress(asyncio.CancelledError):
                    await self._renew_task
                self._renew_task = None
            if self._settings.auto_register:
                await self.withdraw()

    # ───── RUN ─────
    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Run the service over HTTP."""
        anyio.run(self.serve, host, port)

    async def serve(self, host: str | None = None, port: int | None = None):
        host = host or self._settings.host
        port = port or self._settings.port
        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level=self._settings.log_level.lower() if isinstance(self._settings.log_level, str) else "info",
        )
        server = uvicorn.Server(config)
        self._logger.info(f"Service {self._name} listening on http://{host}:{port}")
        await server.serve()

    # ───── FastAPI App Setup ─────
    def _setup_fastapi_app(self):
        if self._app is not None:
            return

        transport = HTTPTransport(self._dispatcher)

        app = FastAPI(title=self._name, lifespan=self._lifespan)

        # Invocation endpoint
        app.post("/invoke")(transport.handle)

        # Introspection endpoint
        async def methods_endpoint():
            return JSONResponse(content={"result": self._dispatcher.list_methods()})

        async def health_check():
            return {"status": "healthy"}

        app.get("/methods")(methods_endpoint)
        app.get("/health")(health_check)

        self._app = app
