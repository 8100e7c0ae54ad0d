# rpcnaming/server/dispatcher.py
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Type, get_type_hints

from rpcnaming.errors import InvocationError, UnknownMethodError, ValidationError


async def _call_fn(fn: Callable, args: Sequence[Any]):
    """
    Call `fn` (sync or async) with `args` spread positionally.
    Always return concrete result (never a coroutine).
    """
    result = fn(*args)
    # If the function (sync) returned an awaitable, await it.
    if inspect.isawaitable(result):
        return await result
    return result


# ──────────────────────────────────────────────────────────────
# _MethodWrapper – Holds function + metadata
# ──────────────────────────────────────────────────────────────
@dataclass
class _MethodWrapper:
    """
    Wraps an invocable method with metadata for introspection and dispatch.

    This class is callable (behaves like the original function) and stores:
    - Original function
    - Name, description
    - Parameter types (from type hints)
    - Return type
    """

    fn: Callable[..., Any]
    """Original function to be called."""

    name: str
    """Method name (as registered)."""

    description: str | None = None
    """Human-readable description of the method."""

    param_types: Dict[str, Type] = field(default_factory=dict)
    """Mapping of parameter name → type (from type hints)."""

    return_type: Optional[Type] = None
    """Return type of the function (from type hints)."""

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.fn(*args, **kwargs)

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.fn)

    @property
    def signature(self) -> inspect.Signature:
        return inspect.signature(self.fn)

    def check_args(self, args: Sequence[Any]) -> None:
        """Raise ValidationError if `args` cannot be bound positionally."""
        try:
            signature = self.signature
        except (TypeError, ValueError):
            # no introspectable signature (some builtins); the call decides
            return
        try:
            signature.bind(*args)
        except TypeError as e:
            raise ValidationError(
                f"bad arguments for '{self.name}': {e}",
                {"method": self.name, "reason": str(e)},
            )

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "param_types": {k: str(v) for k, v in self.param_types.items()},
            "return_type": str(self.return_type) if self.return_type else None,
            "is_async": self.is_async,
        }


# ──────────────────────────────────────────────────────────────
# InvocationDispatcher
# ──────────────────────────────────────────────────────────────
class InvocationDispatcher:
    """
    Method table plus generic call-by-name execution.

    Register methods with the decorator, then invoke them by name:

        dispatcher = InvocationDispatcher()

        @dispatcher.register("add")
        def add(a, b):
            return a + b

        await dispatcher.invoke("add", [2, 3])   # -> 5

    Failures inside a method never escape as anything but InvocationError.
    """

    def __init__(self, name: str | None = None):
        self._name = name or "InvocationDispatcher"
        self._methods: Dict[str, _MethodWrapper] = {}
        self._logger = logging.getLogger("rpcnaming.server.dispatcher")

    # ───── Properties ─────
    @property
    def name(self) -> str:
        return self._name

    @property
    def methods(self) -> Dict[str, Callable]:
        return {name: wrapper.fn for name, wrapper in self._methods.items()}

    @property
    def method_names(self) -> list[str]:
        return list(self._methods.keys())

    # ───── Register Decorator ─────
    def register(self, name: str | None = None, description: str | None = None):
        def decorator(fn: Callable) -> Callable:
            method_name = name or fn.__name__

            if method_name in self._methods:
                self._logger.warning(f"Method '{method_name}' re-registered, replacing previous")

            try:
                hints = get_type_hints(fn)
            except (NameError, TypeError):
                hints = {}
            return_hint = hints.pop("return", None)
            self._methods[method_name] = _MethodWrapper(
                fn=fn,
                name=method_name,
                description=description or inspect.getdoc(fn),
                param_types=hints,
                return_type=return_hint,
            )
            self._logger.debug(f"Registered: {method_name}")
            return fn
        return decorator

    # ───── Get Method ─────
    def get(self, method_name: str) -> _MethodWrapper:
        try:
            return self._methods[method_name]
        except KeyError:
            self._logger.warning(f"Method not found: {method_name}")
            raise UnknownMethodError(f"method '{method_name}' does not exist", {"method": method_name})

    # ───── Introspection ─────
    def list_methods(self) -> Dict[str, dict]:
        return {name: w.to_json() for name, w in self._methods.items()}

    # ───── Invoke ─────
    async def invoke(self, method: str, args: Sequence[Any] = ()) -> Any:
        wrapper = self.get(method)

        if not isinstance(args, (list, tuple)):
            raise ValidationError("args must be a list of positional arguments", {"method": method})
        wrapper.check_args(args)

        try:
            return await _call_fn(wrapper.fn, args)
        except Exception as e:
            # Wrap ANY python error into InvocationError
            self._logger.warning(f"Method '{method}' raised {type(e).__name__}: {e}")
            raise InvocationError(
                str(e) or type(e).__name__,
                {"method": method, "exception": type(e).__name__},
            ) from e
