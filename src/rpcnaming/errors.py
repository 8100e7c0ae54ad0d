# rpcnaming/errors.py
from typing import Any, ClassVar
from dataclasses import dataclass


@dataclass(eq=False)
class NamingRPCError(Exception):
    message: str
    data: Any = None

    code: ClassVar[str] = "error"
    status_code: ClassVar[int] = 500

    def __str__(self) -> str:
        return self.message

    def to_dict(self):
        base = {"error": self.message, "code": self.code}
        if self.data is not None:
            base["data"] = self.data
        return base


class ValidationError(NamingRPCError):
    """Missing or malformed required fields."""
    code = "validation_error"
    status_code = 400


class NotFoundError(NamingRPCError):
    """A name has no binding anywhere reachable."""
    code = "not_found"
    status_code = 404


class UnknownMethodError(NamingRPCError):
    code = "unknown_method"
    status_code = 400


class InvocationError(NamingRPCError):
    """A remote method raised, or its answer was not a success response."""
    code = "invocation_error"
    status_code = 500


class UpstreamUnavailableError(NamingRPCError):
    """A delegation target timed out, errored or answered garbage."""
    code = "upstream_unavailable"
    status_code = 502


class NamingUnavailableError(NamingRPCError):
    code = "naming_unavailable"
    status_code = 503
