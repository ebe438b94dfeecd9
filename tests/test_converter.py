"""Unit tests for formats/converter.py."""

import pytest
from prompt_workbench.formats.converter import DataConverter
from prompt_workbench.formats.schemas import PromptFormat
from prompt_workbench.templates.models import StandardMessage, StandardPromptData


@pytest.fixture
def converter():
    return DataConverter()


class TestDetectFormat:
    """Tests for structural format detection."""

    def test_detect_openai(self, converter, openai_request):
        assert converter.detect_format(openai_request) == PromptFormat.OPENAI

    def test_detect_langfuse_object(self, converter, langfuse_trace):
        assert converter.detect_format(langfuse_trace) == PromptFormat.LANGFUSE

    def test_detect_langfuse_list(self, converter, langfuse_trace):
        assert converter.detect_format([langfuse_trace]) == PromptFormat.LANGFUSE

    def test_detect_conversation(self, converter, conversation_messages):
        assert converter.detect_format(conversation_messages) == PromptFormat.CONVERSATION

    @pytest.mark.parametrize("data", [
        {"messages": [{"role": "user", "content": "hi"}]},
        [],
        [1, 2],
        "text",
        None,
        {"foo": "bar"},
    ])
    def test_detect_unknown(self, converter, data):
        """Test anything without a recognizable shape is unknown."""
        assert converter.detect_format(data) == PromptFormat.UNKNOWN


class TestFromOpenAI:
    """Tests for importing OpenAI requests."""

    def test_round_trip(self, converter, openai_request):
        """Test OpenAI -> standard -> OpenAI preserves the request."""
        imported = converter.from_openai(openai_request)
        assert imported.success

        exported = converter.to_openai(imported.data)
        assert exported.success
        assert exported.data == openai_request

    def test_round_trip_keeps_explicit_nulls(self, converter):
        """Test keys set to null on a message survive the round trip."""
        request = {
            "model": "gpt-4",
            "messages": [
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "x", "refusal": None},
            ],
        }
        exported = converter.to_openai(converter.from_openai(request).data)
        assert exported.data["messages"] == request["messages"]

    def test_round_trip_adds_no_defaults(self, converter):
        """Test tool calls without arguments are not given an empty default."""
        request = {
            "model": "gpt-4",
            "messages": [{
                "role": "assistant",
                "content": "",
                "tool_calls": [{"id": "call_1", "type": "function", "function": {"name": "f"}}],
            }],
            "tools": [{"type": "function", "function": {"name": "f"}}],
        }
        exported = converter.to_openai(converter.from_openai(request).data)

        assert exported.data["messages"] == request["messages"]
        assert exported.data["tools"] == request["tools"]

    def test_metadata_source(self, converter, openai_request):
        result = converter.from_openai(openai_request)
        assert result.data.metadata["source"] == "openai"
        assert "timestamp" in result.data.metadata

    def test_tool_fields_preserved(self, converter, openai_request):
        result = converter.from_openai(openai_request)
        messages = result.data.messages

        assert messages[2].tool_calls[0].function.name == "get_weather"
        assert messages[3].tool_call_id == "call_1"

    def test_missing_messages(self, converter):
        result = converter.from_openai({"model": "gpt-4"})
        assert not result.success
        assert "messages" in result.error

    def test_invalid_role(self, converter):
        result = converter.from_openai({
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "a"}, {"role": "robot", "content": "b"}],
        })
        assert not result.success
        assert "Invalid role in message 1" in result.error


class TestFromLangFuse:
    """Tests for importing LangFuse traces."""

    def test_tool_definitions_segregated(self, converter, langfuse_trace):
        """Test function descriptors become tools, not messages."""
        result = converter.from_langfuse(langfuse_trace)

        assert result.success
        assert [m.role for m in result.data.messages] == ["system", "user"]
        assert len(result.data.tools) == 1
        assert result.data.tools[0].function.name == "search_docs"
        assert result.data.metadata["extracted_tools_count"] == 1

    def test_trace_metadata(self, converter, langfuse_trace):
        result = converter.from_langfuse(langfuse_trace)
        metadata = result.data.metadata

        assert metadata["source"] == "langfuse"
        assert metadata["langfuse_trace_id"] == "trace-123"
        assert metadata["template_info"] == {"name": "support-bot"}
        assert metadata["usage"]["totalTokens"] == 15
        assert result.data.model == "gpt-4o"
        assert result.data.temperature == 0.5

    def test_exported_list_uses_first_trace(self, converter, langfuse_trace):
        other = dict(langfuse_trace, id="trace-999")
        result = converter.from_langfuse([langfuse_trace, other])
        assert result.data.metadata["langfuse_trace_id"] == "trace-123"

    def test_bare_message_list(self, converter):
        result = converter.from_langfuse([{"role": "user", "content": "hello"}])

        assert result.success
        assert result.data.messages[0].content == "hello"
        assert result.data.tools is None

    def test_null_content_warns(self, converter):
        result = converter.from_langfuse({
            "input": {"messages": [{"role": "assistant", "content": None}]},
        })

        assert result.success
        assert result.data.messages[0].content == ""
        assert result.warnings

    def test_text_parts_joined(self, converter):
        result = converter.from_langfuse({
            "input": {"messages": [{
                "role": "user",
                "content": [{"type": "text", "text": "a"}, {"type": "image_url"}, {"type": "text", "text": "b"}],
            }]},
        })

        assert result.data.messages[0].content == "a\nb"
        assert any("non-text" in w for w in result.warnings)

    def test_null_metadata_accepted(self, converter):
        """Test a trace exported with null metadata still converts."""
        result = converter.from_langfuse({
            "id": "t1",
            "metadata": None,
            "input": {"messages": [{"role": "user", "content": "hi"}]},
        })

        assert result.success
        assert result.data.model is None
        assert result.data.metadata["langfuse_trace_id"] == "t1"

    def test_numeric_id_accepted(self, converter):
        result = converter.from_langfuse({
            "id": 42,
            "input": {"messages": [{"role": "user", "content": "hi"}]},
        })

        assert result.success
        assert result.data.metadata["langfuse_trace_id"] == "42"

    def test_missing_model_not_exported_as_null(self, converter):
        result = converter.from_langfuse({"input": {"messages": [{"role": "user", "content": "hi"}]}})
        exported = result.data.to_dict()

        assert "model" not in exported
        assert "tools" not in exported
        assert "temperature" not in exported

    def test_string_output_accepted(self, converter, langfuse_trace):
        result = converter.from_langfuse(dict(langfuse_trace, output="done"))
        assert result.success

    def test_invalid_structure(self, converter):
        assert not converter.from_langfuse({"foo": 1}).success
        assert not converter.from_langfuse([1]).success

    def test_invalid_role(self, converter):
        result = converter.from_langfuse({"input": {"messages": [{"role": "narrator", "content": "x"}]}})
        assert not result.success
        assert "Invalid role in message 0" in result.error


class TestConversation:
    """Tests for plain conversation arrays."""

    def test_from_conversation(self, converter, conversation_messages):
        result = converter.from_conversation_messages(conversation_messages)

        assert result.success
        assert result.data.messages[1].content == conversation_messages[1]["content"]
        assert result.data.metadata["source"] == "conversation"

    def test_extra_metadata_merged(self, converter, conversation_messages):
        result = converter.from_conversation_messages(conversation_messages, {"imported_from": "file"})
        assert result.data.metadata["imported_from"] == "file"

    def test_tool_role_rejected(self, converter):
        result = converter.from_conversation_messages([{"role": "tool", "content": "x"}])
        assert not result.success
        assert "Invalid role in conversation message 0" in result.error

    def test_non_string_content_rejected(self, converter):
        result = converter.from_conversation_messages([{"role": "user", "content": 5}])
        assert not result.success
        assert "Invalid content in conversation message 0" in result.error

    def test_to_conversation_drops_tool_messages(self, converter, openai_request):
        data = converter.from_openai(openai_request).data
        result = converter.to_conversation_messages(data)

        assert result.success
        assert [m.role for m in result.data] == ["system", "user", "assistant"]
        assert result.warnings == [
            "Filtered out 1 tool messages that are not supported in conversation format"
        ]

    def test_to_conversation_no_warning_without_tools(self, converter, conversation_messages):
        data = converter.from_conversation_messages(conversation_messages).data
        assert converter.to_conversation_messages(data).warnings == []


class TestToOpenAI:
    """Tests for exporting OpenAI requests."""

    def test_default_model(self, converter):
        data = StandardPromptData(messages=[StandardMessage(role="user", content="hi")])
        result = converter.to_openai(data)
        assert result.data == {"messages": [{"role": "user", "content": "hi"}], "model": "gpt-3.5-turbo"}

    def test_configured_default_model(self):
        data = StandardPromptData(messages=[StandardMessage(role="user", content="hi")])
        assert DataConverter(default_model="gpt-4o").to_openai(data).data["model"] == "gpt-4o"

    def test_unset_fields_omitted(self, converter):
        data = StandardPromptData(messages=[StandardMessage(role="user", content="hi")], temperature=0)
        request = converter.to_openai(data).data

        assert request["temperature"] == 0
        assert "max_tokens" not in request
        assert "tools" not in request

    def test_variables_substituted(self, converter):
        data = StandardPromptData(messages=[StandardMessage(role="user", content="{{a}} and {{b}}")])
        request = converter.to_openai(data, {"a": "A"}).data
        assert request["messages"][0]["content"] == "A and {{b}}"

    def test_invalid_mapping(self, converter):
        result = converter.to_openai({"messages": [{"role": "alien", "content": "x"}]})
        assert not result.success


class TestValidate:
    """Tests for per-format validation."""

    def test_standard_first_violation(self, converter):
        data = {"messages": [
            {"role": "user", "content": "a"},
            {"role": "system", "content": "b"},
            {"role": "bogus", "content": "c"},
            {"role": "bogus", "content": "d"},
        ]}
        result = converter.validate(data, PromptFormat.STANDARD)

        assert not result.success
        assert result.error == "Invalid role in message 2"

    def test_invalid_content(self, converter):
        result = converter.validate({"messages": [{"role": "user", "content": None}]}, "standard")
        assert result.error == "Invalid content in message 0"

    def test_openai_requires_model(self, converter):
        result = converter.validate({"messages": []}, PromptFormat.OPENAI)
        assert result.error == "OpenAI data must have model string"

    def test_openai_valid(self, converter, openai_request):
        assert converter.validate(openai_request, PromptFormat.OPENAI).success

    def test_langfuse(self, converter, langfuse_trace):
        assert not converter.validate({"input": {}}, PromptFormat.LANGFUSE).success
        # the tool descriptor has non-string content
        assert converter.validate(langfuse_trace, PromptFormat.LANGFUSE).error == "Invalid content in message 2"

    def test_conversation(self, converter, conversation_messages):
        assert converter.validate(conversation_messages, PromptFormat.CONVERSATION).success
        assert not converter.validate({"role": "user"}, PromptFormat.CONVERSATION).success

    def test_unknown_format(self, converter):
        assert not converter.validate({}, "yaml").success
        assert not converter.validate({}, PromptFormat.UNKNOWN).success
