"""Shared constants for variable handling."""

import re
from typing import Tuple


# Engine-supplied variables. Closed set: never created, deleted or
# overridden by custom variables.
PREDEFINED_VARIABLES: Tuple[str, ...] = (
    "originalPrompt",
    "lastOptimizedPrompt",
    "iterateInput",
    "currentPrompt",
    "userQuestion",
    "conversationContext",
    "toolsContext",
)

VARIABLE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
MAX_NAME_LENGTH = 50
MAX_VALUE_LENGTH = 10000
INTERACTIVE_MAX_VALUE_LENGTH = 5000

# {{name}} with optional inner whitespace
PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

STORAGE_KEY = "variableManager.storage"

MESSAGE_ROLES = ("system", "user", "assistant", "tool")
CONVERSATION_ROLES = ("system", "user", "assistant")


def is_valid_variable_name(name: str, max_length: int = MAX_NAME_LENGTH) -> bool:
    """Check a variable name against the naming rules."""
    if not isinstance(name, str) or not name:
        return False
    if len(name) > max_length:
        return False
    return VARIABLE_NAME_PATTERN.match(name) is not None


def is_predefined_variable(name: str) -> bool:
    """Check if name belongs to the predefined variable set."""
    return name in PREDEFINED_VARIABLES
