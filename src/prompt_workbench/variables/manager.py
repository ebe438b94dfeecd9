"""
Variable manager.

Owns the custom variable namespace, the advanced-mode flag and the last
conversation snapshot, persisting them through an injected preference store.
Predefined variables are resolved from a caller-supplied context and can
never be created, deleted or shadowed by custom variables.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config.settings import WorkbenchSettings
from ..constants import PREDEFINED_VARIABLES, is_predefined_variable, is_valid_variable_name
from ..templates.models import ConversationMessage
from ..templates.parser import PlaceholderParser
from .errors import (
    DeletePredefinedVariable,
    InvalidVariableName,
    PredefinedVariableOverride,
    ValueTooLong,
    VariableImportError,
)
from .storage import PreferenceStore


logger = logging.getLogger(__name__)


class VariableStorage(BaseModel):
    """Persisted variable state, stored as one blob under a single key."""

    model_config = ConfigDict(populate_by_name=True)

    custom_variables: Dict[str, str] = Field(default_factory=dict, alias="customVariables")
    advanced_mode_enabled: bool = Field(default=False, alias="advancedModeEnabled")
    last_conversation_messages: List[ConversationMessage] = Field(
        default_factory=list, alias="lastConversationMessages"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted dictionary format."""
        return self.model_dump(by_alias=True, mode="json")


@dataclass
class VariableImportSummary:
    """Names admitted and skipped by an import."""
    imported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class VariableManager:
    """
    Manages custom variables and resolves them alongside predefined ones.

    Construct with a preference store, then ``await manager.load()`` (or use
    ``await VariableManager.create(store)``). A mutation on an unloaded
    manager loads first; every successful mutation rewrites the whole
    storage blob.
    """

    def __init__(
        self,
        store: PreferenceStore,
        settings: Optional[WorkbenchSettings] = None,
        parser: Optional[PlaceholderParser] = None
    ):
        self.store = store
        self.settings = settings or WorkbenchSettings()
        self.parser = parser or PlaceholderParser()

        self._custom_variables: Dict[str, str] = {}
        self._advanced_mode_enabled = False
        self._last_conversation_messages: List[ConversationMessage] = []
        self.loaded = False

    @classmethod
    async def create(
        cls,
        store: PreferenceStore,
        settings: Optional[WorkbenchSettings] = None
    ) -> "VariableManager":
        """Create a manager and load its persisted state."""
        manager = cls(store, settings)
        await manager.load()
        return manager

    async def load(self) -> None:
        """
        Load variable state from the preference store.

        A stored blob that does not validate is logged and replaced by
        defaults; errors raised by the store itself propagate.
        """
        raw = await self.store.get(self.settings.storage_key, VariableStorage().to_dict())

        try:
            storage = VariableStorage.model_validate(raw or {})
        except ValidationError as e:
            logger.warning("Stored variables are malformed, using defaults: %s", e)
            storage = VariableStorage()

        self._custom_variables = dict(storage.custom_variables)
        self._advanced_mode_enabled = storage.advanced_mode_enabled
        self._last_conversation_messages = list(storage.last_conversation_messages)
        self.loaded = True
        logger.debug("Loaded %d custom variables", len(self._custom_variables))

    # Variable CRUD

    async def set_variable(self, name: str, value: str, interactive: bool = False) -> None:
        """
        Create or update a custom variable.

        Args:
            name: Variable name
            value: Variable value
            interactive: Apply the stricter interactive-editing length limit

        Raises:
            InvalidVariableName: If name breaks the naming rules
            PredefinedVariableOverride: If name is predefined
            ValueTooLong: If value exceeds the length limit
        """
        if not self.validate_variable_name(name):
            raise InvalidVariableName(name)

        if self.is_predefined_variable(name):
            raise PredefinedVariableOverride(name)

        limit = self.settings.value_limit(interactive)
        if not isinstance(value, str):
            raise TypeError(f"Variable value must be a string, got {type(value).__name__}")
        if len(value) > limit:
            raise ValueTooLong(name, len(value), limit)

        await self._ensure_loaded()
        self._custom_variables[name] = value
        await self._save()

    def get_variable(self, name: str) -> Optional[str]:
        """Get a custom variable value."""
        return self._custom_variables.get(name)

    async def delete_variable(self, name: str) -> None:
        """
        Delete a custom variable.

        Raises:
            DeletePredefinedVariable: If name is predefined
        """
        if self.is_predefined_variable(name):
            raise DeletePredefinedVariable(name)

        await self._ensure_loaded()
        self._custom_variables.pop(name, None)
        await self._save()

    def list_variables(self) -> Dict[str, str]:
        """Get a copy of all custom variables."""
        return dict(self._custom_variables)

    # Resolution

    def resolve_all_variables(self, context: Optional[Any] = None) -> Dict[str, str]:
        """
        Resolve predefined and custom variables into one mapping.

        Predefined names are looked up in ``context`` (a mapping or an object
        with attributes) and default to an empty string. Custom variables are
        overlaid afterwards.
        """
        resolved: Dict[str, str] = {}

        for name in PREDEFINED_VARIABLES:
            value = self._context_value(context, name)
            resolved[name] = "" if value is None else str(value)

        for name, value in self._custom_variables.items():
            if name in resolved:
                logger.warning("Custom variable %s collides with a predefined name, ignoring it", name)
                continue
            resolved[name] = value

        return resolved

    def validate_variable_name(self, name: str) -> bool:
        """Check a name against the naming rules."""
        return is_valid_variable_name(name, self.settings.max_name_length)

    def is_predefined_variable(self, name: str) -> bool:
        """Check if name is a predefined variable."""
        return is_predefined_variable(name)

    def get_variable_source(self, name: str) -> str:
        """Get ``predefined`` or ``custom`` for a variable name."""
        return "predefined" if self.is_predefined_variable(name) else "custom"

    def scan_variables_in_content(self, content: Any) -> List[str]:
        """
        Get unique variable names in content, in order of first appearance.

        Non-string input yields an empty list.
        """
        if not isinstance(content, str):
            logger.warning("scan_variables_in_content received non-string input: %s", type(content).__name__)
            return []
        return self.parser.extract_variables(content)

    def detect_missing_variables(
        self,
        content: Union[str, Sequence[Any]],
        available_variables: Optional[Mapping[str, str]] = None
    ) -> List[str]:
        """
        Find referenced variables that have no value.

        Args:
            content: A string or a sequence of messages
            available_variables: Values to check against (defaults to all resolved variables)

        Returns:
            Missing names in order of first appearance
        """
        variables = available_variables if available_variables is not None else self.resolve_all_variables()

        if isinstance(content, str):
            used = self.scan_variables_in_content(content)
        else:
            used = []
            for message in content:
                for name in self.scan_variables_in_content(self._message_content(message)):
                    if name not in used:
                        used.append(name)

        return [name for name in used if name not in variables]

    def replace_variables(self, content: str, variables: Optional[Mapping[str, str]] = None) -> str:
        """
        Substitute placeholders with resolved values.

        Placeholders whose variable is not resolved are left verbatim.
        """
        if not isinstance(content, str):
            logger.warning("replace_variables received non-string input: %s", type(content).__name__)
            return content

        final_variables = variables if variables is not None else self.resolve_all_variables()
        return self.parser.replace_variables(content, final_variables)

    # Advanced mode

    @property
    def advanced_mode_enabled(self) -> bool:
        """Whether advanced mode is enabled."""
        return self._advanced_mode_enabled

    async def set_advanced_mode_enabled(self, enabled: bool) -> None:
        """Enable or disable advanced mode."""
        await self._ensure_loaded()
        self._advanced_mode_enabled = bool(enabled)
        await self._save()

    # Conversation snapshot

    def get_last_conversation_messages(self) -> List[ConversationMessage]:
        """Get a copy of the last conversation messages."""
        return [message.model_copy() for message in self._last_conversation_messages]

    async def set_last_conversation_messages(self, messages: Sequence[Any]) -> None:
        """
        Remember the last conversation.

        Raises:
            pydantic.ValidationError: If a message is not a valid conversation message
        """
        validated = [
            ConversationMessage.model_validate(
                message.model_dump() if isinstance(message, BaseModel) else message
            )
            for message in messages
        ]
        await self._ensure_loaded()
        self._last_conversation_messages = validated
        await self._save()

    # Import / export

    def export_variables(self) -> str:
        """Export custom variables and the advanced-mode flag as JSON."""
        export_data = {
            "customVariables": dict(self._custom_variables),
            "advancedModeEnabled": self._advanced_mode_enabled,
            "exportTime": datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(export_data, indent=2, ensure_ascii=False)

    async def import_variables(self, json_data: str) -> VariableImportSummary:
        """
        Import variables exported by ``export_variables``.

        Entries with an invalid or predefined name, or a non-string or
        over-long value, are skipped rather than aborting the import.

        Returns:
            Summary of imported and skipped names

        Raises:
            VariableImportError: If the JSON cannot be parsed or is not an object
        """
        try:
            data = json.loads(json_data)
        except (TypeError, ValueError) as e:
            raise VariableImportError(f"Failed to import variables: {e}") from e

        if not isinstance(data, dict):
            raise VariableImportError("Failed to import variables: expected a JSON object")

        await self._ensure_loaded()
        summary = VariableImportSummary()
        custom = data.get("customVariables")
        if isinstance(custom, dict):
            limit = self.settings.max_value_length
            for name, value in custom.items():
                admissible = (
                    isinstance(value, str)
                    and len(value) <= limit
                    and self.validate_variable_name(name)
                    and not self.is_predefined_variable(name)
                )
                if admissible:
                    self._custom_variables[name] = value
                    summary.imported.append(name)
                else:
                    summary.skipped.append(name)

        if isinstance(data.get("advancedModeEnabled"), bool):
            self._advanced_mode_enabled = data["advancedModeEnabled"]

        if summary.skipped:
            logger.warning("Skipped %d invalid variables during import: %s",
                           len(summary.skipped), ", ".join(summary.skipped))

        await self._save()
        return summary

    def get_statistics(self) -> Dict[str, Any]:
        """Get variable counts and the advanced-mode flag."""
        custom_count = len(self._custom_variables)
        return {
            "custom_variable_count": custom_count,
            "predefined_variable_count": len(PREDEFINED_VARIABLES),
            "total_variable_count": custom_count + len(PREDEFINED_VARIABLES),
            "advanced_mode_enabled": self._advanced_mode_enabled,
        }

    async def _ensure_loaded(self) -> None:
        # Saving rewrites the whole blob, so stored state must be in memory first
        if not self.loaded:
            await self.load()

    async def _save(self) -> None:
        storage = VariableStorage(
            custom_variables=self._custom_variables,
            advanced_mode_enabled=self._advanced_mode_enabled,
            last_conversation_messages=self._last_conversation_messages,
        )
        await self.store.set(self.settings.storage_key, storage.to_dict())

    @staticmethod
    def _context_value(context: Any, name: str) -> Any:
        if context is None:
            return None
        if isinstance(context, Mapping):
            return context.get(name)
        return getattr(context, name, None)

    @staticmethod
    def _message_content(message: Any) -> Any:
        if isinstance(message, Mapping):
            return message.get("content")
        return getattr(message, "content", None)
