"""Pytest configuration and shared fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path

from prompt_workbench.config.settings import WorkbenchSettings
from prompt_workbench.variables.storage import MemoryPreferenceStore


@pytest.fixture
def temp_workspace():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def settings(temp_workspace):
    """Settings isolated from any .env file, storing under the temp directory."""
    return WorkbenchSettings(
        _env_file=None,
        storage_path=Path(temp_workspace) / "preferences.yaml",
        export_dir=Path(temp_workspace) / "exports",
    )


@pytest.fixture
def memory_store():
    """Empty in-memory preference store."""
    return MemoryPreferenceStore()


@pytest.fixture
def openai_request():
    """A valid OpenAI chat completion request with a tool round trip."""
    return {
        "model": "gpt-4",
        "temperature": 0.2,
        "max_tokens": 256,
        "messages": [
            {"role": "system", "content": "You are a {{persona}}."},
            {"role": "user", "content": "What is the weather in {{city}}?"},
            {
                "role": "assistant",
                "content": "",
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "get_weather", "arguments": "{\"city\": \"Paris\"}"},
                    }
                ],
            },
            {"role": "tool", "content": "Sunny, 21C", "tool_call_id": "call_1"},
        ],
        "tools": [
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Look up the weather",
                    "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
                },
            }
        ],
    }


@pytest.fixture
def langfuse_trace():
    """A single LangFuse trace with a tool definition message."""
    return {
        "id": "trace-123",
        "timestamp": "2024-05-01T12:00:00Z",
        "name": "support-bot",
        "input": {
            "messages": [
                {"role": "system", "content": "You answer questions about {{product}}."},
                {"role": "user", "content": "How do I reset it?"},
                {
                    "role": "tool",
                    "content": {
                        "type": "function",
                        "function": {"name": "search_docs", "parameters": {"type": "object"}},
                    },
                },
            ]
        },
        "metadata": {
            "model": "gpt-4o",
            "temperature": 0.5,
            "usage": {"promptTokens": 10, "completionTokens": 5, "totalTokens": 15},
        },
    }


@pytest.fixture
def conversation_messages():
    """A plain conversation array."""
    return [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Summarize {{document}} in {{word_count}} words."},
    ]
