"""
External prompt data schemas.

Each supported wire format gets its own type so payloads are detected and
validated before any field is trusted.
"""

from typing import Any, Dict, List, Optional, TypedDict, Union
from enum import Enum

from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PromptFormat(str, Enum):
    """Structured formats the converter understands."""
    STANDARD = "standard"
    LANGFUSE = "langfuse"
    OPENAI = "openai"
    CONVERSATION = "conversation"
    UNKNOWN = "unknown"


class ExportFormat(str, Enum):
    """Formats prompt data can be exported as."""
    STANDARD = "standard"
    OPENAI = "openai"
    TEMPLATE = "template"


class OpenAIRequest(TypedDict, total=False):
    """Shape of an OpenAI chat completion request as produced by the converter."""
    messages: List[ChatCompletionMessageParam]
    model: str
    tools: List[Dict[str, Any]]
    temperature: float
    max_tokens: int
    top_p: float
    frequency_penalty: float
    presence_penalty: float
    stop: Union[str, List[str]]
    stream: bool


class LangFuseTrace(BaseModel):
    """
    A single LangFuse trace record.

    ``input`` is either an object holding ``messages`` or a bare message
    list, depending on how the trace was captured.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Trace identifier")
    timestamp: Optional[str] = Field(None, description="Trace timestamp")
    name: Optional[str] = Field(None, description="Trace name")
    input: Union[Dict[str, Any], List[Any]] = Field(..., description="Captured request input")
    output: Any = Field(None, description="Captured response output")
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict, description="Trace metadata")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept numeric trace ids."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Treat a null metadata block as empty."""
        return {} if v is None else v

    def raw_messages(self) -> List[Any]:
        """Get the captured messages regardless of input shape."""
        if isinstance(self.input, list):
            return self.input
        messages = self.input.get("messages")
        return messages if isinstance(messages, list) else []

    def usage(self) -> Optional[Dict[str, Any]]:
        """Get token usage from metadata or output."""
        usage = self.metadata.get("usage")
        if usage is None and isinstance(self.output, dict):
            usage = self.output.get("usage")
        return usage


class TemplateExportInfo(BaseModel):
    """Export envelope information for template exports."""

    format: str = ExportFormat.TEMPLATE.value
    exported_at: str
    variable_count: int
