"""
Analysis module for textkit
JSON structure statistics and SQL formatting/linting
"""

from textkit.analysis.json_analyzer import StructuredTextAnalyzer
from textkit.analysis.sql_analyzer import SqlAnalyzer
from textkit.analysis.sql_formatter import SqlFormatter
from textkit.analysis.sql_lexer import tokenize, merge_compound_keywords

__all__ = [
    'StructuredTextAnalyzer',
    'SqlAnalyzer',
    'SqlFormatter',
    'tokenize',
    'merge_compound_keywords',
]
