"""
Data models for prompt data, messages, tools and variables.

Defines the standard internal schema every external format is normalized
into, plus the result envelope used by conversion operations.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class MessageRole(str, Enum):
    """Role of a message in the standard schema."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationRole(str, Enum):
    """Roles allowed in a plain conversation array."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class VariableKind(str, Enum):
    """Semantic type inferred for a template variable."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class FunctionCall(BaseModel):
    """Function invocation inside a tool call."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Name of the function to call")
    arguments: str = Field(default="", description="JSON-encoded arguments")


class ToolCall(BaseModel):
    """A tool call issued by an assistant message."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Tool call identifier")
    type: str = Field(default="function", description="Tool call type")
    function: FunctionCall


class FunctionDefinition(BaseModel):
    """Callable function exposed to the model."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Function name")
    description: Optional[str] = Field(None, description="What the function does")
    parameters: Optional[Dict[str, Any]] = Field(None, description="JSON schema of the parameters")


class ToolDefinition(BaseModel):
    """A tool made available to the model."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="function", description="Tool type")
    function: FunctionDefinition


class StandardMessage(BaseModel):
    """A message in the standard schema. Content is always a string."""

    model_config = ConfigDict(extra="allow", use_enum_values=True)

    role: MessageRole = Field(..., description="Message role")
    content: str = Field(..., description="Message text, may contain {{variables}}")
    name: Optional[str] = Field(None, description="Function or participant name")
    tool_calls: Optional[List[ToolCall]] = Field(None, description="Tool calls of an assistant message")
    tool_call_id: Optional[str] = Field(None, description="Tool call answered by a tool message")

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary format with only the fields that were set."""
        return self.model_dump(exclude_unset=True)


class ConversationMessage(BaseModel):
    """A plain role/content message."""

    model_config = ConfigDict(use_enum_values=True)

    role: ConversationRole
    content: str

    def to_dict(self) -> Dict[str, str]:
        """Convert message to dictionary format."""
        return {"role": self.role, "content": self.content}


class StandardPromptData(BaseModel):
    """
    Standard prompt data, the hub every external format converts through.

    Built per conversion call and never persisted by the engine.
    """

    messages: List[StandardMessage] = Field(default_factory=list)
    tools: Optional[List[ToolDefinition]] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Optional[Union[str, List[str]]] = None
    stream: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format with only the fields that were set."""
        return self.model_dump(exclude_unset=True)


class VariableDefinition(BaseModel):
    """Inferred definition of a template variable."""

    model_config = ConfigDict(use_enum_values=True)

    name: str
    type: VariableKind = VariableKind.STRING
    description: Optional[str] = None
    default_value: Any = None
    required: bool = False


@dataclass
class ConversionResult(Generic[T]):
    """
    Success/failure envelope returned by conversion operations.

    Successful results carry ``data`` and optional ``warnings``; failed
    results carry ``error``. Expected failures are never raised.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T, warnings: Optional[List[str]] = None) -> "ConversionResult[T]":
        """Create a successful result."""
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: str) -> "ConversionResult[T]":
        """Create a failed result."""
        return cls(success=False, error=error)
