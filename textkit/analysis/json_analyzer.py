"""
Structured Text Analyzer
Decodes JSON documents and computes structural statistics
"""

import json
import logging
from typing import Any, List, Tuple

from textkit.core.models import (
    AnalysisStats,
    JsonValueType,
    ParseError,
    ValidationResult,
    classify_value,
)

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not part of the JSON grammar
    raise ValueError(f"Invalid JSON constant: {name}")


class StructuredTextAnalyzer:
    """
    JSON analyzer

    Decoding is strict: invalid input raises ParseError. Traversal uses an
    explicit stack so deeply nested documents cannot exhaust the call stack.
    """

    def __init__(self, indent: int = 2):
        """
        Args:
            indent: Indentation used by format()
        """
        self.indent = indent

    def decode(self, text: str) -> Any:
        """
        Decodes JSON text

        Args:
            text: JSON source

        Returns:
            Decoded Python value

        Raises:
            ParseError: If the text is not valid JSON
        """
        if text is None or not text.strip():
            raise ParseError("Empty input", offset=0, line=1, column=1)

        try:
            return json.loads(text, parse_constant=_reject_constant)
        except json.JSONDecodeError as e:
            raise ParseError(e.msg, offset=e.pos, line=e.lineno, column=e.colno) from e
        except ValueError as e:
            raise ParseError(str(e)) from e
        except RecursionError as e:
            # The document may be valid JSON; the limit belongs to the decoder
            raise ParseError(
                "Nesting exceeds the JSON decoder's recursion limit "
                "(document not checked for syntax errors)"
            ) from e

    def analyze(self, text: str) -> AnalysisStats:
        """
        Decodes text and computes AnalysisStats

        Raises:
            ParseError: If the text is not valid JSON
        """
        value = self.decode(text)
        stats = self.analyze_value(value)
        logger.debug(f"Analyzed JSON document: {stats.node_count} nodes, depth {stats.max_depth}")
        return stats

    def analyze_value(self, value: Any) -> AnalysisStats:
        """
        Computes AnalysisStats for an already decoded value

        The root is at depth 0; every object member and array element sits
        one level below its container.
        """
        counts = {value_type: 0 for value_type in JsonValueType}
        key_count = 0
        max_depth = 0

        stack: List[Tuple[Any, int]] = [(value, 0)]
        while stack:
            item, depth = stack.pop()
            if depth > max_depth:
                max_depth = depth

            value_type = classify_value(item)
            counts[value_type] += 1

            if value_type == JsonValueType.OBJECT:
                key_count += len(item)
                # Reversed to visit members in document order
                for member in reversed(list(item.values())):
                    stack.append((member, depth + 1))
            elif value_type == JsonValueType.ARRAY:
                for element in reversed(item):
                    stack.append((element, depth + 1))

        return AnalysisStats(
            key_count=key_count,
            object_count=counts[JsonValueType.OBJECT],
            array_count=counts[JsonValueType.ARRAY],
            string_count=counts[JsonValueType.STRING],
            number_count=counts[JsonValueType.NUMBER],
            boolean_count=counts[JsonValueType.BOOLEAN],
            null_count=counts[JsonValueType.NULL],
            max_depth=max_depth,
        )

    def format(self, text: str, indent: int = None) -> str:
        """Pretty-prints JSON text, keeping member order and non-ASCII characters"""
        value = self.decode(text)
        return json.dumps(value, indent=self.indent if indent is None else indent, ensure_ascii=False)

    def minify(self, text: str) -> str:
        """Serializes JSON text without insignificant whitespace"""
        value = self.decode(text)
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False)

    def validate(self, text: str) -> ValidationResult:
        """Checks JSON syntax; never raises"""
        result = ValidationResult()
        try:
            self.decode(text)
        except ParseError as e:
            result.add_issue(str(e))
        return result


_default_analyzer = StructuredTextAnalyzer()


def analyze(text: str) -> AnalysisStats:
    """Module-level shortcut for StructuredTextAnalyzer().analyze"""
    return _default_analyzer.analyze(text)


def format_json(text: str, indent: int = 2) -> str:
    return _default_analyzer.format(text, indent=indent)


def minify_json(text: str) -> str:
    return _default_analyzer.minify(text)


def validate_json(text: str) -> ValidationResult:
    return _default_analyzer.validate(text)
