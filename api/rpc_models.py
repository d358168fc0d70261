"""
Pydantic models for the JSON-RPC control surface.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.constants import DEFAULT_MODEL, DEFAULT_BATCH_SIZE


# ==================== ENVELOPE ====================

class RpcRequest(BaseModel):
    """One JSON-RPC 2.0 call"""
    jsonrpc: str = Field(..., pattern=r"^2\.0$")
    method: str = Field(..., min_length=1)
    params: Optional[Union[List[Any], Dict[str, Any]]] = None
    id: Optional[Union[int, str]] = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set

    def positional_params(self) -> List[Any]:
        if self.params is None:
            return []
        if isinstance(self.params, dict):
            return list(self.params.values())
        return list(self.params)


class RpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class RpcResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: Optional[Union[int, str]] = None
    result: Optional[Any] = None
    error: Optional[RpcError] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result
        return payload


# ==================== PARAMS ====================

class TranslationOptionsModel(BaseModel):
    """Options passed to translation.start"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: str = Field(..., alias="apiKey", min_length=1, description="Gemini API key")
    language: str = Field(..., min_length=1, description="Target language, free text")
    context: str = Field(default="", description="Hint about the material (title, plot)")
    model: str = Field(default=DEFAULT_MODEL, min_length=1, description="Oracle model identifier")
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, alias="batchSize", gt=0,
                            description="Replicas per oracle call")

    @field_validator("api_key", "language")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("context", mode="before")
    @classmethod
    def none_context(cls, value):
        return "" if value is None else value
