"""
textkit - JSON structure analysis and SQL formatting tools
"""

from textkit.api import (
    analyze_structured_text,
    reflow_sql,
    minify_sql,
    validate_sql,
    analyze_sql_stats,
)

__version__ = "1.0.0"

__all__ = [
    "analyze_structured_text",
    "reflow_sql",
    "minify_sql",
    "validate_sql",
    "analyze_sql_stats",
]
