"""
Variable extraction from selected text.

Supports the "select text, turn it into a variable" workflow: splicing a
placeholder into a document and suggesting names for the selection.
"""

import json
import re
import logging
from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass

from ..constants import is_valid_variable_name
from ..variables.errors import InvalidVariableName, InvalidSelectionRange, SelectionMismatch
from .parser import PlaceholderParser, VariableOccurrences


logger = logging.getLogger(__name__)


# Candidate names per content category, most specific first
COMMON_VARIABLES: Dict[str, List[str]] = {
    "database": [
        "table_schema", "database_structure", "table_info", "sql_context",
        "schema_definition", "table_structure", "db_schema", "database_context",
    ],
    "examples": [
        "example_data", "sample_input", "demo_case", "reference_examples",
        "sample_data", "example_queries", "demo_input", "use_cases",
    ],
    "rules": [
        "business_rules", "constraints", "requirements", "guidelines",
        "validation_rules", "business_logic", "policy_rules", "restrictions",
    ],
    "context": [
        "background_info", "system_context", "domain_knowledge", "context_info",
        "background_context", "system_info", "domain_context", "additional_context",
    ],
    "input": [
        "user_question", "query_text", "user_input", "current_request",
        "user_query", "input_text", "question", "request_content",
    ],
    "output": [
        "expected_format", "output_template", "response_format", "result_format",
        "output_structure", "response_template", "expected_output", "format_specification",
    ],
}

KEYWORD_PATTERNS: Dict[str, "re.Pattern"] = {
    "database": re.compile(
        r"(?:table|schema|database|sql|create\s+table|alter\s+table|column|field|index|primary\s+key|foreign\s+key)",
        re.IGNORECASE,
    ),
    "examples": re.compile(
        r"(?:example|sample|demo|case|instance|illustration|for\s+example|such\s+as)",
        re.IGNORECASE,
    ),
    "rules": re.compile(
        r"(?:rule|constraint|requirement|must|should|policy|guideline|restriction|validation|business\s+logic)",
        re.IGNORECASE,
    ),
    "context": re.compile(
        r"(?:context|background|information|about|regarding|concerning|domain|system)",
        re.IGNORECASE,
    ),
    "input": re.compile(
        r"(?:input|question|query|request|ask|problem|task|what|how|when|where|why)",
        re.IGNORECASE,
    ),
    "output": re.compile(
        r"(?:output|result|response|format|structure|return|produce|generate)",
        re.IGNORECASE,
    ),
}

SUGGESTIONS_PER_CATEGORY = 3
MAX_SUGGESTIONS = 8


@dataclass
class ExtractedVariable:
    """Record of a variable extracted from a selection."""
    name: str
    value: str
    start: int
    end: int


@dataclass
class ExtractionResult:
    """Updated content plus the extracted variable."""
    updated_content: str
    extracted_variable: ExtractedVariable


@dataclass
class VariableSuggestion:
    """A candidate variable name for selected text."""
    name: str
    confidence: float
    category: str
    reason: str


class VariableExtractor:
    """Stateless helper for turning selected text into variables."""

    def __init__(self, parser: Optional[PlaceholderParser] = None):
        self.parser = parser or PlaceholderParser()

    def extract_variable(
        self,
        content: str,
        selected_text: str,
        name: str,
        start: int,
        end: int
    ) -> ExtractionResult:
        """
        Replace a selection with a ``{{name}}`` placeholder.

        The selected text is checked against ``content[start:end]`` right
        before splicing, so stale offsets from an edited document fail
        instead of corrupting it.

        Args:
            content: Full document text
            selected_text: Text the caller believes is selected
            name: Variable name for the selection
            start: Selection start offset (inclusive)
            end: Selection end offset (exclusive)

        Returns:
            ExtractionResult with updated content and variable record

        Raises:
            InvalidVariableName: If name breaks the naming rules
            InvalidSelectionRange: If offsets are out of bounds or empty
            SelectionMismatch: If the text at the offsets differs from selected_text
        """
        if not is_valid_variable_name(name):
            raise InvalidVariableName(name)

        if start < 0 or end > len(content) or start >= end:
            raise InvalidSelectionRange(
                f"Invalid selection range: [{start}, {end}) for content of length {len(content)}",
                name,
            )

        actual = content[start:end]
        if actual != selected_text:
            raise SelectionMismatch("Selected text does not match the specified range", name)

        updated = content[:start] + "{{" + name + "}}" + content[end:]
        logger.debug("Extracted variable %s from range [%d, %d)", name, start, end)

        return ExtractionResult(
            updated_content=updated,
            extracted_variable=ExtractedVariable(name=name, value=selected_text, start=start, end=end),
        )

    def suggest_variable_names(self, selected_text: str) -> List[VariableSuggestion]:
        """
        Suggest variable names for a piece of selected text.

        Returns:
            Up to 8 suggestions, unique by name, highest confidence first
        """
        suggestions: List[VariableSuggestion] = []

        for category, pattern in KEYWORD_PATTERNS.items():
            if not pattern.search(selected_text):
                continue

            confidence = self._pattern_confidence(selected_text, pattern)
            for rank, name in enumerate(COMMON_VARIABLES[category][:SUGGESTIONS_PER_CATEGORY]):
                suggestions.append(VariableSuggestion(
                    name=name,
                    confidence=confidence - rank * 0.1,
                    category=category,
                    reason=f"Detected {category}-related content",
                ))

        if len(selected_text) > 200:
            suggestions.append(VariableSuggestion(
                "long_context", 0.6, "context", "Long text content detected"
            ))

        if "\n" in selected_text and len(selected_text.split("\n")) > 3:
            suggestions.append(VariableSuggestion(
                "multiline_content", 0.7, "context", "Multi-line structured content"
            ))

        if self._looks_like_json(selected_text):
            suggestions.append(VariableSuggestion(
                "json_data", 0.8, "input", "JSON format detected"
            ))

        unique = self._deduplicate(suggestions)
        unique.sort(key=lambda s: s.confidence, reverse=True)
        return unique[:MAX_SUGGESTIONS]

    def scan_variables(self, content: str) -> List[VariableOccurrences]:
        """Scan content for placeholders, grouping all positions per variable."""
        return self.parser.scan_variables(content)

    def replace_variables(self, content: str, variables: Mapping[str, str]) -> str:
        """Substitute known variables, leaving the rest verbatim."""
        return self.parser.replace_variables(content, variables)

    @staticmethod
    def _pattern_confidence(text: str, pattern) -> float:
        matches = pattern.findall(text)
        if not matches:
            return 0.0

        # matches per 100 characters
        density = len(matches) / max(len(text) / 100, 1)
        return min(0.5 + min(density * 0.3, 0.5), 1.0)

    @staticmethod
    def _looks_like_json(text: str) -> bool:
        trimmed = text.strip()
        wrapped = (
            (trimmed.startswith("{") and trimmed.endswith("}"))
            or (trimmed.startswith("[") and trimmed.endswith("]"))
        )
        if not wrapped:
            return False
        try:
            json.loads(trimmed)
        except ValueError:
            return False
        return True

    @staticmethod
    def _deduplicate(suggestions: List[VariableSuggestion]) -> List[VariableSuggestion]:
        seen = set()
        unique = []
        for suggestion in suggestions:
            if suggestion.name in seen:
                continue
            seen.add(suggestion.name)
            unique.append(suggestion)
        return unique
