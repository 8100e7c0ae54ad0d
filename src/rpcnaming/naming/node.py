# rpcnaming/naming/node.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import anyio
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rpcnaming.config import default
from rpcnaming.errors import NamingRPCError, ValidationError
from rpcnaming.log import configure_logging
from rpcnaming.naming.models import Entry, NodeInfo, UnregisterRequest
from rpcnaming.naming.registry import Clock, NameRegistry
from rpcnaming.naming.resolver import HTTPRemoteResolver, RemoteResolver, ResolutionEngine
from rpcnaming.schemas import Ack
from rpcnaming.transport.http import error_response, parse_model, read_json_body


def parse_depth(raw: str | None) -> int:
    """Delegation depth from a query string; absent means a fresh query."""
    if raw is None or raw == "":
        return 0
    try:
        depth = int(raw)
    except ValueError:
        raise ValidationError("depth must be a non-negative integer", {"depth": raw})
    if depth < 0:
        raise ValidationError("depth must be a non-negative integer", {"depth": raw})
    return depth


# ──────────────────────────────────────────────────────────────
# Settings
# ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class NodeSettings:
    node_id: str = default.NODE_ID
    host: str = default.NODE_HOST
    port: int = default.NODE_PORT
    delegates: tuple[str, ...] = field(default_factory=lambda: default.DELEGATES)
    delegation_timeout: float = default.DELEGATION_TIMEOUT
    delimiter: str = default.DELIMITER
    max_depth: int = default.MAX_DEPTH
    log_level: str | int = default.LOG_LEVEL

    def __post_init__(self):
        object.__setattr__(
            self, "delegates", tuple(u.rstrip("/") for u in self.delegates)
        )
        if not self.delimiter:
            raise ValueError("delimiter must not be empty")


# ──────────────────────────────────────────────────────────────
# Naming Node
# ──────────────────────────────────────────────────────────────
class NamingNode:
    """
    One deployable naming node: a node-local registry, a resolution engine
    and the HTTP surface in front of them.

    Delegation targets are fixed at construction. `remote` replaces the HTTP
    delegation client (tests inject an in-process transport through
    `transport` instead).
    """

    def __init__(
        self,
        settings: NodeSettings | dict | None = None,
        *,
        remote: Optional[RemoteResolver] = None,
        transport: Any = None,
        clock: Optional[Clock] = None,
    ):
        # normalize settings: accept dataclass or dict or None
        if settings is None:
            self._settings: NodeSettings = NodeSettings()
        elif isinstance(settings, NodeSettings):
            self._settings = settings
        elif isinstance(settings, dict):
            self._settings = NodeSettings(**settings)
        else:
            raise TypeError("settings must be NodeSettings | dict | None")

        self._registry = NameRegistry(clock=clock)
        self._engine = ResolutionEngine(
            registry=self._registry,
            node_id=self._settings.node_id,
            delegates=self._settings.delegates,
            remote=remote or HTTPRemoteResolver(
                timeout=self._settings.delegation_timeout, transport=transport
            ),
            delimiter=self._settings.delimiter,
            max_depth=self._settings.max_depth,
        )
        self._app: FastAPI | None = None
        self._logger = logging.getLogger("rpcnaming.naming.node")

        configure_logging(self._settings.log_level)
        self._logger.info(
            f"Initialized naming node {self.id} (delegates: {list(self.delegates) or 'none'})"
        )

    # ───── Properties ─────
    @property
    def id(self) -> str:
        return self._settings.node_id

    @property
    def delegates(self) -> tuple[str, ...]:
        return self._engine.delegates

    @property
    def settings(self) -> NodeSettings:
        return self._settings

    @property
    def registry(self) -> NameRegistry:
        return self._registry

    @property
    def engine(self) -> ResolutionEngine:
        return self._engine

    @property
    def app(self) -> FastAPI:
        self._setup_fastapi_app()
        return self._app

    def info(self) -> NodeInfo:
        """Node identity; `own_names` lists only names with a live entry."""
        return NodeInfo(
            id=self.id,
            port=self._settings.port,
            delegation_targets=list(self.delegates),
            own_names=self._registry.live_names(),
        )

    # ───── Run ─────
    def run(self, host: str | None = None, port: int | None = None) -> None:
        host = host or self._settings.host
        port = port or self._settings.port
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
        self._logger.info(f"[{self.id}] Naming node listening on http://{host}:{port}")
        await server.serve()

    # ───── FastAPI App Setup ─────
    def _setup_fastapi_app(self):
        if self._app is not None:
            return

        app = FastAPI(title=f"Naming node {self.id}")

        async def naming_error_handler(request: Request, exc: NamingRPCError):
            return error_response(exc)

        app.add_exception_handler(NamingRPCError, naming_error_handler)

        async def register(request: Request):
            payload = await read_json_body(request)
            entry = parse_model(Entry, payload)
            self._registry.register(entry)
            return Ack().model_dump()

        async def unregister(request: Request):
            payload = await read_json_body(request)
            req = parse_model(UnregisterRequest, payload)
            self._registry.unregister(req.name, req.host, req.port)
            return Ack().model_dump()

        async def lookup(name: str):
            result = self._engine.lookup(name)
            return {"name": name, "entries": [e.to_wire() for e in result.entries]}

        async def resolve_path(name: str, depth: str | None = None):
            result = await self._engine.resolve(name, depth=parse_depth(depth))
            return JSONResponse(result.to_wire())

        async def resolve_query(name: str | None = None, depth: str | None = None):
            if not name:
                raise ValidationError("name query required")
            result = await self._engine.resolve(name, depth=parse_depth(depth))
            return JSONResponse(result.to_wire())

        async def list_all():
            return {
                name: [e.to_wire() for e in entries]
                for name, entries in self._registry.list_all().items()
            }

        async def info():
            return self.info().model_dump(by_alias=True)

        async def health_check():
            return {"status": "healthy"}

        app.post("/register")(register)
        app.post("/unregister")(unregister)
        app.get("/lookup/{name:path}")(lookup)
        app.get("/resolve")(resolve_query)
        app.get("/resolve/{name:path}")(resolve_path)
        app.get("/list")(list_all)
        app.get("/info")(info)
        app.get("/health")(health_check)

        self._app = app
