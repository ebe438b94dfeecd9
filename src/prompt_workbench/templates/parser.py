"""
Placeholder parser for {{variable}} syntax.

Finds, groups and substitutes variable placeholders in plain text with
exact position tracking. Pure functions over strings, no framework state.
"""

from typing import Dict, List, Mapping, NamedTuple, Optional, Set, Tuple
from dataclasses import dataclass, field

from ..constants import PLACEHOLDER_PATTERN


class Span(NamedTuple):
    """Half-open character range [start, end) in the scanned text."""
    start: int
    end: int


@dataclass
class PlaceholderMatch:
    """A single placeholder occurrence."""
    name: str
    placeholder: str
    start: int
    end: int


@dataclass
class VariableOccurrences:
    """All occurrences of one variable in a text."""
    name: str
    placeholder: str
    positions: List[Span] = field(default_factory=list)

    def to_dict(self) -> Dict:
        """Convert to dictionary format."""
        return {
            "name": self.name,
            "placeholder": self.placeholder,
            "positions": [{"start": s.start, "end": s.end} for s in self.positions],
        }


@dataclass
class Replacement:
    """Audit record for one substitution."""
    variable: str
    original_text: str
    replaced_text: str
    start: int
    end: int

    def to_dict(self) -> Dict:
        """Convert to dictionary format."""
        return {
            "variable": self.variable,
            "original_text": self.original_text,
            "replaced_text": self.replaced_text,
            "positions": [{"start": self.start, "end": self.end}],
        }


class PlaceholderParser:
    """
    Parser for extracting and substituting {{variable}} placeholders.

    Whitespace inside the braces is tolerated, so ``{{ name }}`` and
    ``{{name}}`` refer to the same variable.
    """

    def __init__(self, pattern=PLACEHOLDER_PATTERN):
        self.pattern = pattern

    def find_variables_with_positions(self, content: str) -> List[PlaceholderMatch]:
        """
        Find every placeholder with its position.

        Example:
            >>> PlaceholderParser().find_variables_with_positions("Hi {{name}}")
            [PlaceholderMatch(name='name', placeholder='{{name}}', start=3, end=11)]
        """
        results = []
        for match in self.pattern.finditer(content):
            name = match.group(1).strip()
            if not name:
                continue
            results.append(PlaceholderMatch(name, match.group(0), match.start(), match.end()))
        return results

    def extract_variables(self, content: str) -> List[str]:
        """
        Extract unique variable names in order of first appearance.

        Example:
            >>> PlaceholderParser().extract_variables("Hello {{name}}, you are {{age}}.")
            ['name', 'age']
        """
        seen: Set[str] = set()
        result: List[str] = []

        for found in self.find_variables_with_positions(content):
            if found.name not in seen:
                seen.add(found.name)
                result.append(found.name)

        return result

    def scan_variables(self, content: str) -> List[VariableOccurrences]:
        """
        Group placeholder occurrences by variable name.

        The recorded placeholder is the text of the first occurrence; every
        occurrence contributes a span, so repeated use is preserved.
        """
        grouped: Dict[str, VariableOccurrences] = {}

        for found in self.find_variables_with_positions(content):
            if found.name not in grouped:
                grouped[found.name] = VariableOccurrences(found.name, found.placeholder)
            grouped[found.name].positions.append(Span(found.start, found.end))

        return list(grouped.values())

    def count_variables(self, content: str) -> int:
        """Count placeholder occurrences, including duplicates."""
        return len(self.find_variables_with_positions(content))

    def has_variables(self, content: str) -> bool:
        """Check if content contains any placeholders."""
        return self.count_variables(content) > 0

    def replace_with_trail(
        self,
        content: str,
        variables: Mapping[str, str],
        highlight: bool = False
    ) -> Tuple[str, List[Replacement]]:
        """
        Substitute known variables in a single left-to-right pass.

        Placeholders whose variable is not in ``variables`` are left exactly
        as written. Replacement values are never rescanned.

        Args:
            content: Text with placeholders
            variables: Variable values by name
            highlight: Wrap substituted values as ``[value]``

        Returns:
            Tuple of (processed_text, replacements) where replacements are
            positioned against the original text
        """
        replacements: List[Replacement] = []

        def _substitute(match) -> str:
            name = match.group(1).strip()
            if not name or name not in variables or variables[name] is None:
                return match.group(0)

            value = str(variables[name])
            replacements.append(
                Replacement(name, match.group(0), value, match.start(), match.end())
            )
            return f"[{value}]" if highlight else value

        processed = self.pattern.sub(_substitute, content)
        return processed, replacements

    def replace_variables(self, content: str, variables: Mapping[str, str]) -> str:
        """Substitute known variables, leaving unresolved placeholders intact."""
        processed, _ = self.replace_with_trail(content, variables)
        return processed


_default_parser = PlaceholderParser()


def extract_variables(content: str) -> List[str]:
    """Convenience function to extract unique variable names."""
    return _default_parser.extract_variables(content)


def scan_variables(content: str) -> List[VariableOccurrences]:
    """Convenience function to group placeholder occurrences by name."""
    return _default_parser.scan_variables(content)


def replace_variables(content: str, variables: Optional[Mapping[str, str]]) -> str:
    """Convenience function for left-verbatim substitution."""
    return _default_parser.replace_variables(content, variables or {})
