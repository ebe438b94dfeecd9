"""
Template processor for prompt data.

Derives reusable templates from concrete prompt data, fills templates with
variable values and checks variable completeness before substitution.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set
from dataclasses import dataclass, field

from ..constants import CONVERSATION_ROLES
from .models import StandardMessage, StandardPromptData, VariableDefinition, VariableKind
from .parser import PlaceholderParser, Replacement


logger = logging.getLogger(__name__)

MERGE_SIMILARITY_THRESHOLD = 0.7
SPLIT_LENGTH_THRESHOLD = 1000
SPLIT_COMPLEXITY_THRESHOLD = 0.8
SPLIT_CONFIDENCE = 0.8

# Name fragments used to guess a variable's semantic type, checked in order
TYPE_HINTS = (
    (VariableKind.NUMBER, ("count", "number", "num"), "Numeric variable"),
    (VariableKind.BOOLEAN, ("is_", "has_", "enable"), "Boolean variable"),
    (VariableKind.ARRAY, ("list", "array", "items"), "Array variable"),
    (VariableKind.OBJECT, ("config", "settings", "data"), "Object variable"),
)

DEFAULT_VALUES = {
    VariableKind.STRING: "",
    VariableKind.NUMBER: 0,
    VariableKind.BOOLEAN: False,
    VariableKind.OBJECT: {},
    VariableKind.ARRAY: [],
}


@dataclass
class TemplateBundle:
    """A template with its variable values and inferred definitions."""
    template: StandardPromptData
    variables: Dict[str, str]
    variable_definitions: List[VariableDefinition]


@dataclass
class VariableValidation:
    """Outcome of checking supplied variables against a template."""
    is_valid: bool
    missing_variables: List[str] = field(default_factory=list)
    unused_variables: List[str] = field(default_factory=list)


@dataclass
class ReplacementPreview:
    """Original text, processed text and the substitutions performed."""
    original: str
    processed: str
    replacements: List[Replacement] = field(default_factory=list)


@dataclass
class OptimizationSuggestion:
    """A suggested change to a template's variables."""
    type: str
    description: str
    variables: List[str]
    confidence: float


@dataclass
class VariableUsage:
    """How a variable is used across a template."""
    count: int = 0
    contexts: List[str] = field(default_factory=list)
    avg_length: float = 0.0
    complexity: float = 0.0


def levenshtein_distance(first: str, second: str) -> int:
    """Compute the edit distance between two strings."""
    if len(first) < len(second):
        first, second = second, first

    previous = list(range(len(second) + 1))
    for i, char_a in enumerate(first, 1):
        current = [i]
        for j, char_b in enumerate(second, 1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + cost,
            ))
        previous = current

    return previous[-1]


def name_similarity(first: str, second: str) -> float:
    """Similarity of two names as 1 minus the normalized edit distance."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(first, second)) / longest


class TemplateProcessor:
    """
    Converts concrete prompt data into parameterized templates and back.

    All methods are pure; the processor holds no per-call state.
    """

    def __init__(self, parser: Optional[PlaceholderParser] = None):
        self.parser = parser or PlaceholderParser()

    def to_template(self, data: StandardPromptData) -> TemplateBundle:
        """
        Derive a template and variable definitions from prompt data.

        Variables without a concrete value in ``metadata["variables"]`` get a
        ``[name_placeholder]`` value. Types are guessed from the variable name
        and a variable is required when more than one message uses it. The
        inference is a heuristic, not a guarantee.

        Args:
            data: Prompt data whose messages contain placeholders

        Returns:
            TemplateBundle with template, variables and definitions
        """
        metadata = dict(data.metadata or {})
        variables: Dict[str, str] = {}
        known = metadata.get("variables")
        if isinstance(known, Mapping):
            variables.update({name: str(value) for name, value in known.items()})

        discovered = self._collect_variables(data.messages)

        definitions = []
        for name in discovered:
            if not variables.get(name):
                variables[name] = f"[{name}_placeholder]"
            definitions.append(self._analyze_variable(name, data.messages))

        template_info = dict(metadata.get("template_info") or {})
        template_info["variables"] = discovered
        template_info["created_at"] = datetime.now(timezone.utc).isoformat()
        metadata["template_info"] = template_info

        template = data.model_copy(
            update={
                "messages": [message.model_copy() for message in data.messages],
                "metadata": metadata,
            },
            deep=True,
        )

        logger.debug("Derived template with %d variables", len(discovered))
        return TemplateBundle(template=template, variables=variables, variable_definitions=definitions)

    def from_template(
        self,
        template: StandardPromptData,
        variables: Mapping[str, str]
    ) -> StandardPromptData:
        """
        Fill a template with variable values.

        The result records the applied variable map in
        ``metadata["variables_applied"]`` and is marked as manual data. No
        time-dependent fields are added, so identical inputs give identical
        output.
        """
        messages = [
            message.model_copy(update={"content": self.parser.replace_variables(message.content, variables)})
            for message in template.messages
        ]

        metadata = dict(template.metadata or {})
        metadata["source"] = "manual"
        metadata["variables_applied"] = dict(variables)

        return template.model_copy(update={"messages": messages, "metadata": metadata}, deep=True)

    def validate_variables(
        self,
        template: StandardPromptData,
        variables: Mapping[str, str]
    ) -> VariableValidation:
        """
        Check supplied variables against the ones a template references.

        Unused variables are reported but do not make the result invalid.
        """
        required = self._collect_variables(template.messages)
        required_set = set(required)

        missing = [name for name in required if name not in variables]
        unused = [name for name in variables if name not in required_set]

        return VariableValidation(
            is_valid=not missing,
            missing_variables=missing,
            unused_variables=unused,
        )

    def replace_variables(self, content: str, variables: Mapping[str, str]) -> str:
        """Substitute known variables, leaving the rest verbatim."""
        return self.parser.replace_variables(content, variables)

    def scan_variables_in_content(self, content: str):
        """Group placeholder occurrences in content by variable."""
        return self.parser.scan_variables(content)

    def preview_replacement(
        self,
        content: str,
        variables: Mapping[str, str],
        highlight: bool = True
    ) -> ReplacementPreview:
        """
        Preview substitution with a full audit trail.

        Every substitution is recorded with the variable name, placeholder
        text, replacement value and its span in the original content.

        Args:
            content: Text with placeholders
            variables: Variable values
            highlight: Wrap substituted values as ``[value]`` in the processed text

        Returns:
            ReplacementPreview
        """
        processed, replacements = self.parser.replace_with_trail(content, variables, highlight=highlight)
        return ReplacementPreview(original=content, processed=processed, replacements=replacements)

    def suggest_optimizations(
        self,
        template: StandardPromptData,
        variables: Optional[Mapping[str, str]] = None
    ) -> List[OptimizationSuggestion]:
        """
        Suggest merging near-duplicate variables and splitting heavy ones.

        Bound values come from ``variables`` when given, otherwise from the
        template metadata (``variables`` and ``variables_applied``).

        Returns:
            Suggestions sorted by confidence, highest first
        """
        usage = self._analyze_usage(template, self._bound_values(template, variables))
        suggestions: List[OptimizationSuggestion] = []

        names = list(usage)
        for i, first in enumerate(names):
            for second in names[i + 1:]:
                similarity = name_similarity(first, second)
                if similarity > MERGE_SIMILARITY_THRESHOLD:
                    suggestions.append(OptimizationSuggestion(
                        type="merge",
                        description=f"Consider merging similar variables: {first}, {second}",
                        variables=[first, second],
                        confidence=round(similarity, 4),
                    ))

        for name, stats in usage.items():
            if stats.avg_length > SPLIT_LENGTH_THRESHOLD and stats.complexity > SPLIT_COMPLEXITY_THRESHOLD:
                suggestions.append(OptimizationSuggestion(
                    type="split",
                    description=f"Variable {name} holds complex content, consider splitting it",
                    variables=[name],
                    confidence=SPLIT_CONFIDENCE,
                ))

        suggestions.sort(key=lambda s: s.confidence, reverse=True)
        return suggestions

    def _collect_variables(self, messages: List[StandardMessage]) -> List[str]:
        seen: Set[str] = set()
        ordered: List[str] = []
        for message in messages:
            for name in self.parser.extract_variables(message.content):
                if name not in seen:
                    seen.add(name)
                    ordered.append(name)
        return ordered

    def _analyze_variable(self, name: str, messages: List[StandardMessage]) -> VariableDefinition:
        lowered = name.lower()
        kind = VariableKind.STRING
        description = f"{name} variable"

        for hint_kind, fragments, hint_description in TYPE_HINTS:
            if any(fragment in lowered for fragment in fragments):
                kind = hint_kind
                description = hint_description
                break

        usage_count = sum(
            1 for message in messages if name in self.parser.extract_variables(message.content)
        )

        return VariableDefinition(
            name=name,
            type=kind,
            description=description,
            default_value=DEFAULT_VALUES[kind],
            required=usage_count > 1,
        )

    @staticmethod
    def _bound_values(
        template: StandardPromptData,
        variables: Optional[Mapping[str, str]]
    ) -> Dict[str, List[str]]:
        sources: List[Any] = []
        if variables is not None:
            sources.append(variables)
        else:
            metadata = template.metadata or {}
            sources.extend([metadata.get("variables"), metadata.get("variables_applied")])

        bound: Dict[str, List[str]] = {}
        for source in sources:
            if not isinstance(source, Mapping):
                continue
            for name, value in source.items():
                if value is not None:
                    bound.setdefault(name, []).append(str(value))
        return bound

    def _analyze_usage(
        self,
        template: StandardPromptData,
        bound: Dict[str, List[str]]
    ) -> Dict[str, VariableUsage]:
        usage: Dict[str, VariableUsage] = {}

        for message in template.messages:
            for occurrence in self.parser.scan_variables(message.content):
                stats = usage.setdefault(occurrence.name, VariableUsage())
                stats.count += len(occurrence.positions)
                stats.contexts.append(message.role)

        for name, stats in usage.items():
            values = bound.get(name, [])
            if values:
                stats.avg_length = sum(len(v) for v in values) / len(values)
            roles = {role for role in stats.contexts if role in CONVERSATION_ROLES}
            diversity = min(len(roles) / len(CONVERSATION_ROLES), 1.0)
            stats.complexity = 0.5 * diversity + 0.5 * min(stats.avg_length / 2000, 1.0)

        return usage
