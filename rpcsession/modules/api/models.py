"""
rpcsession shared data models.

These models define the structure of all data passed between
the session core, the dispatcher and the transport.
"""

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Push channel


class PushMessage(BaseModel):
    """Unsolicited, topic-tagged message written to a session's connection."""

    model_config = ConfigDict(populate_by_name=True)

    push_message: Literal[True] = Field(default=True, alias="pushMessage")
    subject: str = Field(..., description="Topic the message was published on")
    message: Any = Field(None, description="Arbitrary serializable payload")

    def to_text(self) -> str:
        """Serialize to the wire format accepted by ``connection.send``."""
        return self.model_dump_json(by_alias=True)


# Session views


class SessionSummary(BaseModel):
    """Read-only administrative view of a session (never exposes the connection)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user: Any = None
    created_at: int = Field(..., alias="createdAt")
    last_used_at: int = Field(..., alias="lastUsedAt")
    subscriptions: List[str] = Field(default_factory=list)


class SessionState(BaseModel):
    """Result of the ``state`` operation."""

    user: Any = None
    permissions: List[str] = Field(default_factory=list)


# RPC envelopes


class RpcRequest(BaseModel):
    """Request envelope handled by the reference dispatcher."""

    id: Optional[Union[int, str]] = Field(None, description="Caller-chosen correlation id")
    method: str = Field(..., min_length=1, description="Namespaced method name")
    params: Any = Field(None, description="Method parameters")
    token: Optional[str] = Field(None, description="Session identifier presented by the caller")


class RpcErrorBody(BaseModel):
    code: int
    message: str


class RpcResponse(BaseModel):
    """Response envelope; exactly one of ``result`` or ``error`` is meaningful."""

    id: Optional[Union[int, str]] = None
    result: Any = None
    error: Optional[RpcErrorBody] = None

    def to_dict(self) -> dict:
        data = {"id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump()
        else:
            data["result"] = self.result
        return data
