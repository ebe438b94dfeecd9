"""
Prompt Workbench - variable resolution and multi-format prompt data conversion.

This package manages prompt variables, scans and substitutes {{variable}}
placeholders, converts prompt data between the standard, OpenAI, LangFuse and
conversation formats, and derives reusable templates from concrete prompts.
"""

__version__ = "0.1.0"
__author__ = "Prompt Workbench Team"

from .config.settings import ConfigManager, WorkbenchSettings, load_settings
from .exchange.manager import ImportExportManager
from .formats.converter import DataConverter
from .formats.schemas import ExportFormat, PromptFormat
from .logging_setup import setup_logging
from .templates.extractor import VariableExtractor
from .templates.models import (
    ConversationMessage,
    ConversionResult,
    StandardMessage,
    StandardPromptData,
    ToolCall,
    ToolDefinition,
)
from .templates.processor import TemplateProcessor
from .variables.errors import (
    DeletePredefinedVariable,
    InvalidVariableName,
    PredefinedVariableOverride,
    ValueTooLong,
    VariableError,
    VariableImportError,
)
from .variables.manager import VariableManager
from .variables.storage import MemoryPreferenceStore, YamlPreferenceStore
