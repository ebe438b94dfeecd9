"""Unit tests for variables/storage.py."""

import pytest
import yaml
from pathlib import Path
from prompt_workbench.variables.storage import MemoryPreferenceStore, YamlPreferenceStore


class TestMemoryPreferenceStore:
    """Tests for the in-memory store."""

    @pytest.mark.asyncio
    async def test_default_when_missing(self):
        store = MemoryPreferenceStore()
        assert await store.get("missing", {"x": 1}) == {"x": 1}

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = MemoryPreferenceStore()
        value = {"items": [1]}
        await store.set("key", value)
        value["items"].append(2)

        loaded = await store.get("key", None)
        loaded["items"].append(3)

        assert store.snapshot() == {"key": {"items": [1]}}


class TestYamlPreferenceStore:
    """Tests for the YAML file store."""

    @pytest.mark.asyncio
    async def test_missing_file_returns_default(self, temp_workspace):
        store = YamlPreferenceStore(Path(temp_workspace) / "prefs.yaml")
        assert await store.get("key", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_set_and_get(self, temp_workspace):
        path = Path(temp_workspace) / "nested" / "prefs.yaml"
        store = YamlPreferenceStore(path)

        await store.set("a", {"customVariables": {"tone": "formal"}})
        await store.set("b", True)

        assert await store.get("a", None) == {"customVariables": {"tone": "formal"}}
        with open(path) as f:
            assert yaml.safe_load(f) == {"a": {"customVariables": {"tone": "formal"}}, "b": True}
        assert not path.with_suffix(".yaml.tmp").exists()

    @pytest.mark.asyncio
    async def test_empty_file(self, temp_workspace):
        path = Path(temp_workspace) / "prefs.yaml"
        path.write_text("")
        assert await YamlPreferenceStore(path).get("key", 1) == 1

    @pytest.mark.asyncio
    async def test_non_mapping_file(self, temp_workspace):
        path = Path(temp_workspace) / "prefs.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            await YamlPreferenceStore(path).get("key", None)
