"""Exceptions raised by variable management and extraction."""

from typing import Optional


class VariableError(Exception):
    """Base exception for variable errors."""

    code = "VARIABLE_ERROR"

    def __init__(self, message: str, variable_name: Optional[str] = None):
        super().__init__(message)
        self.variable_name = variable_name


class InvalidVariableName(VariableError):
    """Raised when a name breaks the naming rules."""

    code = "INVALID_VARIABLE_NAME"

    def __init__(self, variable_name: str):
        super().__init__(
            f"Invalid variable name: {variable_name}. Must start with a letter and "
            f"contain only letters, numbers, and underscores (max 50 characters).",
            variable_name,
        )


class PredefinedVariableOverride(VariableError):
    """Raised when a custom variable would shadow a predefined one."""

    code = "PREDEFINED_VARIABLE_OVERRIDE"

    def __init__(self, variable_name: str):
        super().__init__(f"Cannot override predefined variable: {variable_name}", variable_name)


class ValueTooLong(VariableError):
    """Raised when a variable value exceeds the length limit."""

    code = "VALUE_TOO_LONG"

    def __init__(self, variable_name: str, length: int, limit: int):
        super().__init__(f"Variable value too long: {length} > {limit}", variable_name)
        self.length = length
        self.limit = limit


class DeletePredefinedVariable(VariableError):
    """Raised when deleting a predefined variable."""

    code = "DELETE_PREDEFINED_VARIABLE"

    def __init__(self, variable_name: str):
        super().__init__(f"Cannot delete predefined variable: {variable_name}", variable_name)


class VariableImportError(VariableError):
    """Raised when an exported variable payload cannot be parsed."""

    code = "IMPORT_ERROR"


class InvalidSelectionRange(VariableError):
    """Raised when selection offsets fall outside the content."""

    code = "INVALID_SELECTION_RANGE"


class SelectionMismatch(VariableError):
    """Raised when the text at the selection offsets is not the selected text."""

    code = "SELECTION_MISMATCH"
