"""
Reference RPC dispatcher.

Routes request envelopes to registered handlers, resolving the calling
session from the presented token. Parameter shapes are declared as plain
descriptors and checked with pydantic before a handler runs.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from pydantic import TypeAdapter, ValidationError

from ..api.models import RpcErrorBody, RpcRequest, RpcResponse
from ..session.errors import (
    Forbidden,
    InvalidParams,
    MethodNotFound,
    SessionError,
    Unauthenticated,
)

logger = logging.getLogger(__name__)

INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603

Handler = Callable[[Any, Any], Awaitable[Any]]

_SCALAR_TYPES = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "object": dict,
    "any": Any,
}


def _adapter_for(descriptor: Dict[str, Any]) -> TypeAdapter:
    """Build a validator for one parameter-shape descriptor."""
    kind = descriptor.get("type", "any")
    if kind == "none":
        return TypeAdapter(type(None))
    if kind == "array":
        item = _SCALAR_TYPES.get(descriptor.get("contains", "any"), Any)
        return TypeAdapter(List[item])
    if kind not in _SCALAR_TYPES:
        raise ValueError(f"Unknown parameter type: {kind}")
    return TypeAdapter(_SCALAR_TYPES[kind])


@dataclass
class RegisteredMethod:
    name: str
    handler: Handler
    shapes: List[Dict[str, Any]] = field(default_factory=list)
    adapters: List[TypeAdapter] = field(default_factory=list)

    def validate(self, params: Any) -> Any:
        if not self.adapters:
            return params
        for shape, adapter in zip(self.shapes, self.adapters):
            value = params
            # JSON-RPC clients send [] or {} when a method takes no params
            if shape.get("type") == "none" and isinstance(params, (list, dict)) and not params:
                value = None
            try:
                return adapter.validate_python(value, strict=True)
            except ValidationError:
                continue
        raise InvalidParams(f"Invalid parameters for '{self.name}'")


class RpcDispatcher:
    """Dispatcher consuming a session resolver (``auth``) such as SessionManager."""

    def __init__(self, auth=None):
        """
        Initialize dispatcher.

        Args:
            auth: Object with resolve(token) returning a session or None
        """
        self.auth = auth
        self._methods: Dict[str, RegisteredMethod] = {}
        self._always_allow: Set[str] = set()
        self._permissions: Dict[str, str] = {}

    def add_method(self, name: str, handler: Handler, params: Optional[List[Dict[str, Any]]] = None) -> None:
        shapes = list(params or [])
        self._methods[name] = RegisteredMethod(
            name=name,
            handler=handler,
            shapes=shapes,
            adapters=[_adapter_for(shape) for shape in shapes],
        )

    def add_always_allow(self, name: str) -> None:
        """Allow a method to be called without a session."""
        self._always_allow.add(name)

    def require_permission(self, name: str, permission: str) -> None:
        self._permissions[name] = permission

    def list_methods(self) -> List[str]:
        return sorted(self._methods)

    async def handle(
        self,
        request: Union[RpcRequest, Dict[str, Any], str, bytes],
        connection: Any = None,
    ) -> Dict[str, Any]:
        """
        Handle one request envelope.

        Args:
            request: Envelope as model, dict or JSON text
            connection: Transport handle to attach to the resolved session

        Returns:
            Response envelope dict with either ``result`` or ``error``
        """
        try:
            if isinstance(request, RpcRequest):
                envelope = request
            elif isinstance(request, (str, bytes)):
                envelope = RpcRequest.model_validate_json(request)
            else:
                envelope = RpcRequest.model_validate(request)
        except ValidationError as e:
            logger.debug(f"Rejected malformed request: {e}")
            return self._error(None, INVALID_REQUEST, "Invalid request")

        try:
            result = await self._dispatch(envelope, connection)
        except SessionError as e:
            return self._error(envelope.id, e.code, e.message)
        except Exception:
            logger.exception(f"Unhandled error in RPC method '{envelope.method}'")
            return self._error(envelope.id, INTERNAL_ERROR, "Internal error")

        return RpcResponse(id=envelope.id, result=result).to_dict()

    async def handle_text(self, text: Union[str, bytes], connection: Any = None) -> str:
        return json.dumps(await self.handle(text, connection))

    async def _dispatch(self, envelope: RpcRequest, connection: Any) -> Any:
        method = self._methods.get(envelope.method)
        if method is None:
            raise MethodNotFound(f"Method '{envelope.method}' not found")

        session = self.auth.resolve(envelope.token) if self.auth is not None else None
        if session is not None:
            session.touch()
            if connection is not None:
                session.set_connection(connection)
        elif method.name not in self._always_allow:
            raise Unauthenticated()

        permission = self._permissions.get(method.name)
        if permission is not None and (session is None or permission not in session.get_permissions()):
            raise Forbidden(f"Permission '{permission}' required")

        params = method.validate(envelope.params)
        return await method.handler(session, params)

    @staticmethod
    def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
        return RpcResponse(id=request_id, error=RpcErrorBody(code=code, message=message)).to_dict()
