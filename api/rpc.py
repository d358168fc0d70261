"""
JSON-RPC 2.0 dispatcher.

Maps method names to async handlers that take positional params and turns
whatever they raise into the error codes the desktop client understands.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from config.constants import (
    RPC_PARSE_ERROR,
    RPC_INVALID_REQUEST,
    RPC_METHOD_NOT_FOUND,
    RPC_INVALID_PARAMS,
    RPC_SERVER_ERROR,
)
from config.logging_config import get_logger
from core.errors import SubtitleTranslatorError

from .rpc_models import RpcError, RpcRequest, RpcResponse

logger = get_logger(__name__)

Handler = Callable[..., Awaitable[Any]]


def error_response(code: int, message: str, request_id: Any = None) -> Dict[str, Any]:
    return RpcResponse(id=request_id, error=RpcError(code=code, message=message)).to_payload()


def parse_error() -> Dict[str, Any]:
    return error_response(RPC_PARSE_ERROR, "Parse error")


class RpcDispatcher:
    """
    Method registry plus envelope handling.

    Usage:
        dispatcher = RpcDispatcher()
        dispatcher.register("ping", ping)
        payload = await dispatcher.handle(json.loads(body))
    """

    def __init__(self, methods: Optional[Dict[str, Handler]] = None):
        self._methods: Dict[str, Handler] = {}
        for name, handler in (methods or {}).items():
            self.register(name, handler)

    def register(self, name: str, handler: Handler):
        self._methods[name] = handler

    @property
    def method_names(self) -> List[str]:
        return sorted(self._methods)

    async def handle(self, payload: Any) -> Optional[Any]:
        """
        Handle a decoded request body.

        Returns the response payload, a list of them for batch calls, or
        None when nothing should be sent back (notifications only).
        """
        if isinstance(payload, list):
            if not payload:
                return error_response(RPC_INVALID_REQUEST, "Invalid Request")
            responses = [await self.handle_one(item) for item in payload]
            responses = [r for r in responses if r is not None]
            return responses or None
        return await self.handle_one(payload)

    async def handle_one(self, raw: Any) -> Optional[Dict[str, Any]]:
        request_id = raw.get("id") if isinstance(raw, dict) else None
        try:
            request = RpcRequest.model_validate(raw)
        except PydanticValidationError:
            return error_response(RPC_INVALID_REQUEST, "Invalid Request", request_id)

        handler = self._methods.get(request.method)
        if handler is None:
            response = error_response(RPC_METHOD_NOT_FOUND, "Method not found", request.id)
        else:
            response = await self._call(handler, request)

        if request.is_notification:
            return None
        return response

    async def _call(self, handler: Handler, request: RpcRequest) -> Dict[str, Any]:
        params = request.positional_params()

        try:
            inspect.signature(handler).bind(*params)
        except TypeError:
            return error_response(RPC_INVALID_PARAMS, "Invalid params", request.id)

        try:
            result = await handler(*params)
        except SubtitleTranslatorError as e:
            if e.code == RPC_SERVER_ERROR:
                logger.error(f"RPC {request.method} failed: {e.message}")
            else:
                logger.info(f"RPC {request.method} rejected: {e.message}")
            return error_response(e.code, e.message, request.id)
        except Exception as e:
            logger.exception(f"RPC {request.method} raised an unexpected error")
            return error_response(RPC_SERVER_ERROR, str(e) or type(e).__name__, request.id)

        return RpcResponse(id=request.id, result=result).to_payload()
