"""
Multi-format prompt data converter.

Detects and converts between the standard schema, OpenAI chat requests,
LangFuse trace exports and plain role/content conversation arrays. Every
operation returns a ConversionResult instead of raising for bad input.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ..constants import CONVERSATION_ROLES, MESSAGE_ROLES
from ..templates.models import (
    ConversationMessage,
    ConversionResult,
    StandardMessage,
    StandardPromptData,
    ToolDefinition,
)
from ..templates.parser import PlaceholderParser
from .schemas import LangFuseTrace, OpenAIRequest, PromptFormat


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"

# Sampling parameters copied between the standard schema and OpenAI requests
OPTIONAL_REQUEST_FIELDS = (
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "stop",
    "stream",
)

MESSAGE_FIELDS = ("name", "tool_calls", "tool_call_id")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_if_present(target: Dict[str, Any], key: str, value: Any) -> None:
    """Set a key only when the value is defined, never emitting nulls."""
    if value is not None:
        target[key] = value


def _as_mapping(message: Any) -> Any:
    if isinstance(message, (StandardMessage, ConversationMessage)):
        return message.model_dump(exclude_none=True)
    return message


def _validate_messages(
    messages: Sequence[Any],
    allowed_roles: Tuple[str, ...],
    label: str = "message"
) -> Optional[str]:
    """Return the first violation in a message list, or None."""
    for index, message in enumerate(messages):
        message = _as_mapping(message)
        if not isinstance(message, Mapping) or message.get("role") not in allowed_roles:
            return f"Invalid role in {label} {index}"
        if not isinstance(message.get("content"), str):
            return f"Invalid content in {label} {index}"
    return None


def _error_text(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return f"{error.error_count()} validation error(s): " + "; ".join(
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors()
        )
    return str(error) or error.__class__.__name__


class DataConverter:
    """
    Stateless converter between prompt data formats.

    The standard schema is the hub: every import converts into
    StandardPromptData and every export converts out of it.
    """

    def __init__(self, parser: Optional[PlaceholderParser] = None, default_model: str = DEFAULT_MODEL):
        self.parser = parser or PlaceholderParser()
        self.default_model = default_model

    def detect_format(self, data: Any) -> PromptFormat:
        """
        Classify raw parsed JSON by structure.

        Returns:
            ``conversation`` for a list whose first item has ``role``,
            ``langfuse`` for a list whose first item has ``input`` or an object
            with ``input.messages``, ``openai`` for an object with a
            ``messages`` list and a ``model``, otherwise ``unknown``
        """
        if isinstance(data, list):
            first = data[0] if data else None
            if isinstance(first, Mapping):
                if first.get("role"):
                    return PromptFormat.CONVERSATION
                if first.get("input"):
                    return PromptFormat.LANGFUSE
            return PromptFormat.UNKNOWN

        if isinstance(data, Mapping):
            trace_input = data.get("input")
            if isinstance(trace_input, Mapping) and isinstance(trace_input.get("messages"), list):
                return PromptFormat.LANGFUSE
            if isinstance(data.get("messages"), list) and data.get("model"):
                return PromptFormat.OPENAI

        return PromptFormat.UNKNOWN

    def from_langfuse(self, langfuse_data: Any) -> ConversionResult[StandardPromptData]:
        """
        Convert LangFuse data into the standard schema.

        Accepts an exported list of trace records (first record is used), a
        single trace object, or a bare message list copied out of a trace.
        Tool messages carrying a function descriptor become tool definitions
        rather than conversation turns.
        """
        trace: Optional[LangFuseTrace] = None
        try:
            if isinstance(langfuse_data, list):
                first = langfuse_data[0] if langfuse_data else None
                if isinstance(first, Mapping) and first.get("role"):
                    raw_messages = langfuse_data
                elif isinstance(first, Mapping) and first.get("input"):
                    trace = LangFuseTrace.model_validate(first)
                    raw_messages = trace.raw_messages()
                else:
                    return ConversionResult.fail("Invalid LangFuse data: unrecognized array structure")
            elif isinstance(langfuse_data, Mapping) and langfuse_data.get("input"):
                trace = LangFuseTrace.model_validate(langfuse_data)
                raw_messages = trace.raw_messages()
            else:
                return ConversionResult.fail("Invalid LangFuse data: missing input or messages")

            messages, tools, warnings = self._split_langfuse_messages(raw_messages)

            error = _validate_messages(messages, MESSAGE_ROLES)
            if error:
                return ConversionResult.fail(f"Invalid LangFuse data: {error}")

            trace_metadata = trace.metadata if trace else {}
            metadata: Dict[str, Any] = {"source": "langfuse"}
            name = (trace.name if trace else None) or trace_metadata.get("name")
            if name:
                metadata["template_info"] = {"name": name}
            if trace:
                _set_if_present(metadata, "timestamp", trace.timestamp)
                _set_if_present(metadata, "langfuse_trace_id", trace.id)
                _set_if_present(metadata, "usage", trace.usage())
            metadata["extracted_tools_count"] = len(tools)

            fields: Dict[str, Any] = {"messages": messages}
            if tools:
                fields["tools"] = tools
            _set_if_present(fields, "model", trace_metadata.get("model"))
            _set_if_present(fields, "temperature", trace_metadata.get("temperature"))
            fields["metadata"] = metadata

            data = StandardPromptData.model_validate(fields)
        except (ValidationError, TypeError, ValueError) as e:
            return ConversionResult.fail(f"Failed to convert LangFuse data: {_error_text(e)}")

        logger.debug(
            "Converted LangFuse data: %d messages, %d tools", len(data.messages), len(tools)
        )
        return ConversionResult.ok(data, warnings)

    def from_openai(self, request: Any) -> ConversionResult[StandardPromptData]:
        """Convert an OpenAI chat completion request into the standard schema."""
        if not isinstance(request, Mapping) or not isinstance(request.get("messages"), list):
            return ConversionResult.fail("Invalid OpenAI request: missing or invalid messages array")

        error = _validate_messages(request["messages"], MESSAGE_ROLES)
        if error:
            return ConversionResult.fail(f"Invalid OpenAI request: {error}")

        fields: Dict[str, Any] = {"messages": request["messages"]}
        _set_if_present(fields, "tools", request.get("tools"))
        _set_if_present(fields, "model", request.get("model"))
        for key in OPTIONAL_REQUEST_FIELDS:
            _set_if_present(fields, key, request.get(key))
        fields["metadata"] = {"source": "openai", "timestamp": _now_iso()}

        try:
            data = StandardPromptData.model_validate(fields)
        except ValidationError as e:
            return ConversionResult.fail(f"Failed to convert OpenAI data: {_error_text(e)}")

        return ConversionResult.ok(data)

    def from_conversation_messages(
        self,
        messages: Any,
        metadata: Optional[Mapping[str, Any]] = None
    ) -> ConversionResult[StandardPromptData]:
        """Convert a plain role/content message list into the standard schema."""
        if not isinstance(messages, (list, tuple)):
            return ConversionResult.fail("Invalid conversation messages: must be an array")

        error = _validate_messages(messages, CONVERSATION_ROLES, label="conversation message")
        if error:
            return ConversionResult.fail(f"Invalid conversation messages: {error}")

        standard_messages = []
        for message in messages:
            message = _as_mapping(message)
            standard_messages.append({"role": message["role"], "content": message["content"]})

        data = StandardPromptData(
            messages=standard_messages,
            metadata={"source": "conversation", "timestamp": _now_iso(), **(metadata or {})},
        )
        return ConversionResult.ok(data)

    def to_openai(
        self,
        data: Union[StandardPromptData, Mapping[str, Any]],
        variables: Optional[Mapping[str, str]] = None
    ) -> ConversionResult[OpenAIRequest]:
        """
        Convert standard data into an OpenAI chat completion request.

        Args:
            data: Standard prompt data
            variables: If given, substituted into every message first

        Returns:
            Result with the request; optional sampling fields appear only
            when set on the source
        """
        try:
            if not isinstance(data, StandardPromptData):
                data = StandardPromptData.model_validate(data)
        except ValidationError as e:
            return ConversionResult.fail(f"Invalid standard data: {_error_text(e)}")

        messages = []
        for message in data.messages:
            payload = message.to_dict()
            if variables is not None:
                payload["content"] = self.parser.replace_variables(message.content, variables)
            messages.append(payload)

        request: Dict[str, Any] = {
            "messages": messages,
            "model": data.model or self.default_model,
        }
        if data.tools is not None:
            request["tools"] = [tool.model_dump(exclude_unset=True) for tool in data.tools]
        for key in OPTIONAL_REQUEST_FIELDS:
            _set_if_present(request, key, getattr(data, key))

        return ConversionResult.ok(request)

    def to_conversation_messages(
        self,
        data: Union[StandardPromptData, Mapping[str, Any]]
    ) -> ConversionResult[List[ConversationMessage]]:
        """Convert standard data into plain conversation messages."""
        try:
            if not isinstance(data, StandardPromptData):
                data = StandardPromptData.model_validate(data)
        except ValidationError as e:
            return ConversionResult.fail(f"Invalid standard data: {_error_text(e)}")

        conversation = [
            ConversationMessage(role=message.role, content=message.content)
            for message in data.messages
            if message.role in CONVERSATION_ROLES
        ]

        warnings = []
        dropped = len(data.messages) - len(conversation)
        if dropped:
            warnings.append(
                f"Filtered out {dropped} tool messages that are not supported in conversation format"
            )
            logger.info("Dropped %d tool messages converting to conversation format", dropped)

        return ConversionResult.ok(conversation, warnings)

    def validate(self, data: Any, format: Union[PromptFormat, str]) -> ConversionResult[bool]:
        """
        Validate raw data against one format.

        Returns:
            Result whose error names the first violation found
        """
        try:
            format = PromptFormat(format)
        except ValueError:
            return ConversionResult.fail(f"Unknown format: {format}")

        if format == PromptFormat.STANDARD:
            return self._validate_standard(data)
        if format == PromptFormat.LANGFUSE:
            return self._validate_langfuse(data)
        if format == PromptFormat.OPENAI:
            return self._validate_openai(data)
        if format == PromptFormat.CONVERSATION:
            return self._validate_conversation(data)
        return ConversionResult.fail(f"Unknown format: {format.value}")

    def _split_langfuse_messages(self, raw_messages: List[Any]):
        """Separate tool definitions from conversation turns."""
        messages: List[Dict[str, Any]] = []
        tools: List[ToolDefinition] = []
        warnings: List[str] = []

        for index, raw in enumerate(raw_messages):
            if not isinstance(raw, Mapping):
                messages.append({"role": None, "content": None})
                continue

            content = raw.get("content")
            if raw.get("role") == "tool" and isinstance(content, Mapping) and content.get("type") == "function":
                if content.get("function"):
                    tools.append(ToolDefinition(type="function", function=content["function"]))
                else:
                    warnings.append(f"Skipped tool message {index}: function descriptor has no function")
                continue

            if content is None:
                content = ""
                warnings.append(f"Message {index} had no content; using empty string")
            elif isinstance(content, list):
                parts = [
                    part.get("text", "") for part in content
                    if isinstance(part, Mapping) and part.get("type") == "text"
                ]
                if len(parts) != len(content):
                    warnings.append(f"Message {index}: dropped {len(content) - len(parts)} non-text content parts")
                content = "\n".join(parts)

            message: Dict[str, Any] = {"role": raw.get("role"), "content": content}
            for key in MESSAGE_FIELDS:
                _set_if_present(message, key, raw.get(key))
            messages.append(message)

        return messages, tools, warnings

    def _validate_standard(self, data: Any) -> ConversionResult[bool]:
        if not isinstance(data, Mapping):
            return ConversionResult.fail("Data must be an object")
        if not isinstance(data.get("messages"), list):
            return ConversionResult.fail("Messages must be an array")

        error = _validate_messages(data["messages"], MESSAGE_ROLES)
        if error:
            return ConversionResult.fail(error)
        return ConversionResult.ok(True)

    def _validate_langfuse(self, data: Any) -> ConversionResult[bool]:
        if not isinstance(data, Mapping):
            return ConversionResult.fail("LangFuse data must be an object")
        trace_input = data.get("input")
        if not isinstance(trace_input, Mapping) or "messages" not in trace_input:
            return ConversionResult.fail("LangFuse data must have input.messages")
        return self._validate_standard({"messages": trace_input["messages"]})

    def _validate_openai(self, data: Any) -> ConversionResult[bool]:
        if not isinstance(data, Mapping):
            return ConversionResult.fail("OpenAI data must be an object")
        if not isinstance(data.get("messages"), list):
            return ConversionResult.fail("OpenAI data must have messages array")
        if not data.get("model") or not isinstance(data.get("model"), str):
            return ConversionResult.fail("OpenAI data must have model string")
        return self._validate_standard(data)

    def _validate_conversation(self, data: Any) -> ConversionResult[bool]:
        if not isinstance(data, list):
            return ConversionResult.fail("Conversation data must be an array")

        error = _validate_messages(data, CONVERSATION_ROLES, label="conversation message")
        if error:
            return ConversionResult.fail(error)
        return ConversionResult.ok(True)
