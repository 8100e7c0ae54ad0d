# rpcnaming/naming/resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Sequence

import anyio
import httpx
import pydantic

from rpcnaming.config.default import DELEGATION_TIMEOUT
from rpcnaming.errors import UpstreamUnavailableError
from rpcnaming.naming.models import ResolveResult
from rpcnaming.naming.registry import NameRegistry


def proper_prefixes(name: str, delimiter: str = ".") -> Iterator[str]:
    """
    Yield the proper prefixes of `name`, longest first.

    >>> list(proper_prefixes("a.b.c.d"))
    ['a.b.c', 'a.b', 'a']
    >>> list(proper_prefixes("/org/service/db", "/"))
    ['/org/service', '/org']
    """
    parts = name.split(delimiter)
    for i in range(len(parts) - 1, 0, -1):
        candidate = delimiter.join(parts[:i])
        if parts[i - 1] and candidate.strip(delimiter):
            yield candidate


class RemoteResolver(Protocol):
    async def __call__(self, target: str, name: str, depth: int) -> ResolveResult: ...


class HTTPRemoteResolver:
    """
    Asks another naming node to resolve a name over HTTP.

    The whole attempt (connect, request, body) is bounded by `timeout`;
    every failure is raised as UpstreamUnavailableError.
    """

    def __init__(
        self,
        timeout: float = DELEGATION_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, target: str, name: str, depth: int) -> ResolveResult:
        url = f"{target.rstrip('/')}/resolve"
        try:
            with anyio.fail_after(self.timeout):
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self.transport
                ) as client:
                    resp = await client.get(url, params={"name": name, "depth": depth})
                    resp.raise_for_status()
                    return ResolveResult.model_validate(resp.json())
        except TimeoutError as e:
            raise UpstreamUnavailableError(
                f"{target} timed out after {self.timeout}s", {"target": target}
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(
                f"{target} failed: {e}", {"target": target}
            ) from e
        except (ValueError, pydantic.ValidationError) as e:
            raise UpstreamUnavailableError(
                f"{target} sent an invalid answer: {e}", {"target": target}
            ) from e


@dataclass(frozen=True)
class DelegationOutcome:
    """Result of one delegation attempt: either a result or an error, never both."""

    target: str
    result: Optional[ResolveResult] = None
    error: Optional[UpstreamUnavailableError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.result.found and bool(self.result.entries)


class ResolutionEngine:
    """
    Exact match, then hierarchical prefix fallback, then delegation.

    Delegation targets are asked one at a time in the configured order; the
    first non-empty answer wins and is returned with the target's own `via`.
    """

    def __init__(
        self,
        registry: NameRegistry,
        node_id: str,
        delegates: Sequence[str] = (),
        remote: Optional[RemoteResolver] = None,
        delimiter: str = ".",
        max_depth: int = 8,
    ):
        self.registry = registry
        self.node_id = node_id
        self.delegates: tuple[str, ...] = tuple(delegates)
        self.remote: RemoteResolver = remote or HTTPRemoteResolver()
        self.delimiter = delimiter
        self.max_depth = max_depth
        self._logger = logging.getLogger("rpcnaming.naming.resolver")

    def lookup(self, name: str) -> ResolveResult:
        entries = self.registry.lookup_local(name)
        return ResolveResult(
            found=bool(entries), name=name, entries=entries,
            via=self.node_id, path=[self.node_id],
        )

    async def resolve(self, name: str, depth: int = 0) -> ResolveResult:
        # 1. exact
        exact = self.lookup(name)
        if exact.found:
            return exact

        # 2. proper prefixes, longest first
        for candidate in proper_prefixes(name, self.delimiter):
            entries = self.registry.lookup_local(candidate)
            if entries:
                self._logger.debug(f"{name} resolved by prefix {candidate}")
                return ResolveResult(
                    found=True, name=candidate, entries=entries,
                    via=self.node_id, path=[self.node_id],
                )

        # 3. delegation
        if depth >= self.max_depth:
            self._logger.warning(f"Not delegating {name}: depth {depth} >= {self.max_depth}")
        else:
            for target in self.delegates:
                outcome = await self._delegate(target, name, depth + 1)
                if outcome.ok:
                    result = outcome.result
                    return result.model_copy(update={"path": [*result.path, self.node_id]})
                if outcome.error is not None:
                    self._logger.warning(f"Delegation to {target} failed: {outcome.error}")
                else:
                    self._logger.info(f"Delegate {target} does not know {name}")

        # 4. nothing
        return ResolveResult(found=False, name=name, entries=[], via=self.node_id, path=[self.node_id])

    async def _delegate(self, target: str, name: str, depth: int) -> DelegationOutcome:
        try:
            result = await self.remote(target, name, depth)
        except UpstreamUnavailableError as e:
            return DelegationOutcome(target=target, error=e)
        return DelegationOutcome(target=target, result=result)

