from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EntryKind(str, Enum):
    """Invocation convention or resource class of a binding. Descriptive only."""

    RPC = "rpc"
    RMI = "rmi"
    FILE = "file"
    PROCESS = "process"
    SERVICE = "service"
    MEMORY = "memory"
    OTHER = "other"

    def __str__(self):
        return self.value


class Entry(BaseModel):
    """
    Entry Model
    One registered service instance: a (name -> host:port) binding, possibly
    one of several replicas under the same name. Never mutated in place.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Hierarchical name, e.g. org.example.calc")
    host: str = Field(..., description="Host of the registered instance")
    port: int = Field(..., description="Port of the registered instance")
    kind: EntryKind = Field(
        EntryKind.RPC,
        validation_alias=AliasChoices("kind", "type"),
        description="Invocation convention or resource class",
    )
    iface: Optional[List[str]] = Field(None, description="Method names exposed by the instance")
    meta: Optional[dict] = Field(None, description="Free-form attributes, opaque to the registry")
    lease_seconds: Optional[float] = Field(
        None,
        alias="leaseSeconds",
        validation_alias=AliasChoices("leaseSeconds", "lease_seconds", "ttl"),
        description="Lease in seconds; absent means the entry never expires",
    )
    registered_at: Optional[datetime] = Field(
        None,
        alias="registeredAt",
        validation_alias=AliasChoices("registeredAt", "registered_at"),
        description="Stamped by the registry at registration time",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ResolveResult(BaseModel):
    """Answer to a resolution query."""

    found: bool
    name: Optional[str] = None
    entries: List[Entry] = Field(default_factory=list)
    via: Optional[str] = None
    path: List[str] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UnregisterRequest(BaseModel):
    name: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None


class LookupResponse(BaseModel):
    name: str
    entries: List[Entry] = Field(default_factory=list)


class NodeInfo(BaseModel):
    id: str
    port: Optional[int] = None
    delegation_targets: List[str] = Field(default_factory=list, alias="delegationTargets")
    own_names: List[str] = Field(default_factory=list, alias="ownNames")

    model_config = ConfigDict(populate_by_name=True)


EntryTable = Dict[str, List[Entry]]
