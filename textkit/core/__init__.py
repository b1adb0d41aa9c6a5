"""
Core models and exceptions for textkit
"""

from textkit.core.models import (
    TextKitError,
    ParseError,
    InputLoadError,
    ValidationError,
    JsonValueType,
    AnalysisStats,
    SqlToken,
    SqlTokenType,
    StatementType,
    KeywordCase,
    SqlStats,
    ValidationResult,
)

__all__ = [
    "TextKitError",
    "ParseError",
    "InputLoadError",
    "ValidationError",
    "JsonValueType",
    "AnalysisStats",
    "SqlToken",
    "SqlTokenType",
    "StatementType",
    "KeywordCase",
    "SqlStats",
    "ValidationResult",
]
