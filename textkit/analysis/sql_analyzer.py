"""
SQL Analyzer
Heuristic linting and structural statistics for SQL without parsing
"""

import re
import logging
from typing import Set

from textkit.core.models import SqlStats, StatementType, ValidationResult

logger = logging.getLogger(__name__)


ISSUE_EMPTY = "SQL statement is empty"
ISSUE_STATEMENT_KEYWORD = "Statement does not start with a recognized SQL keyword"
ISSUE_PARENTHESES = "Parentheses are not balanced ({opened} opening, {closed} closing)"
ISSUE_QUOTES = "Single quotes are not balanced ({count} found)"


class SqlAnalyzer:
    """
    Regex-based SQL analyzer

    Both operations work on the raw text and never raise. validate() is
    advisory only: it may accept invalid SQL and may reject valid SQL whose
    string literals contain parentheses or escaped quotes.
    """

    # Keywords counted by analyze_stats (each entry counted independently)
    SQL_KEYWORDS = [
        'SELECT', 'FROM', 'WHERE', 'JOIN', 'INNER JOIN', 'LEFT JOIN', 'RIGHT JOIN', 'FULL JOIN',
        'ON', 'AND', 'OR', 'NOT', 'IN', 'EXISTS', 'LIKE', 'BETWEEN', 'IS NULL', 'IS NOT NULL',
        'GROUP BY', 'HAVING', 'ORDER BY', 'ASC', 'DESC', 'LIMIT', 'OFFSET',
        'INSERT', 'INTO', 'VALUES', 'UPDATE', 'SET', 'DELETE', 'CREATE', 'TABLE',
        'ALTER', 'DROP', 'INDEX', 'DATABASE', 'SCHEMA', 'VIEW', 'PROCEDURE', 'FUNCTION',
        'AS', 'DISTINCT', 'COUNT', 'SUM', 'AVG', 'MIN', 'MAX', 'CASE', 'WHEN', 'THEN', 'ELSE', 'END',
        'UNION', 'UNION ALL', 'INTERSECT', 'EXCEPT', 'WITH',
    ]

    # Priority order for statement type detection
    STATEMENT_TYPES = [
        StatementType.SELECT,
        StatementType.INSERT,
        StatementType.UPDATE,
        StatementType.DELETE,
        StatementType.CREATE,
        StatementType.ALTER,
        StatementType.DROP,
    ]

    KNOWN_FUNCTIONS = [
        'COUNT', 'SUM', 'AVG', 'MIN', 'MAX', 'UPPER', 'LOWER', 'LENGTH', 'SUBSTRING', 'NOW', 'DATE',
    ]

    STATEMENT_START_PATTERN = re.compile(
        r'^(?:SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP|WITH)\b', re.IGNORECASE
    )

    IDENTIFIER = r'[a-zA-Z_][a-zA-Z0-9_]*(?:\.[a-zA-Z_][a-zA-Z0-9_]*)?'

    def __init__(self):
        """Compiles the keyword and extraction patterns once"""
        self._keyword_patterns = [
            re.compile(r'\b' + r'\s+'.join(keyword.split()) + r'\b', re.IGNORECASE)
            for keyword in self.SQL_KEYWORDS
        ]
        self._statement_patterns = [
            (statement_type, re.compile(rf'\b{statement_type.value}\b', re.IGNORECASE))
            for statement_type in self.STATEMENT_TYPES
        ]
        self._table_patterns = [
            # FROM clause
            re.compile(rf'\bFROM\s+({self.IDENTIFIER})', re.IGNORECASE),
            # JOIN clause
            re.compile(rf'\bJOIN\s+({self.IDENTIFIER})', re.IGNORECASE),
        ]
        self._function_pattern = re.compile(
            r'\b(' + '|'.join(self.KNOWN_FUNCTIONS) + r')\s*\(', re.IGNORECASE
        )

    def validate(self, sql: str) -> ValidationResult:
        """
        Advisory checks on raw SQL

        Args:
            sql: SQL text

        Returns:
            ValidationResult with one issue per failed check
        """
        result = ValidationResult()
        text = (sql or '').strip()

        if not text:
            result.add_issue(ISSUE_EMPTY)
            return result

        if not self.STATEMENT_START_PATTERN.match(text):
            result.add_issue(ISSUE_STATEMENT_KEYWORD)

        opened = text.count('(')
        closed = text.count(')')
        if opened != closed:
            result.add_issue(ISSUE_PARENTHESES.format(opened=opened, closed=closed))

        quotes = text.count("'")
        if quotes % 2 != 0:
            result.add_issue(ISSUE_QUOTES.format(count=quotes))

        if result.issues:
            logger.debug(f"SQL validation found {len(result.issues)} issue(s)")
        return result

    def analyze_stats(self, sql: str) -> SqlStats:
        """
        Computes structural statistics for SQL

        Args:
            sql: SQL text

        Returns:
            SqlStats
        """
        sql = sql or ''
        stripped = sql.strip()

        return SqlStats(
            line_count=len(sql.split('\n')),
            word_count=len(stripped.split()) if stripped else 0,
            character_count=len(sql),
            keyword_count=self._count_keywords(sql),
            statement_type=self._detect_statement_type(sql),
            tables=self._extract_tables(sql),
            functions=self._extract_functions(sql),
        )

    def _count_keywords(self, sql: str) -> int:
        """Counts whole-word keyword occurrences, case-insensitively"""
        return sum(len(pattern.findall(sql)) for pattern in self._keyword_patterns)

    def _detect_statement_type(self, sql: str) -> StatementType:
        """First keyword of the priority list found anywhere in the text wins"""
        for statement_type, pattern in self._statement_patterns:
            if pattern.search(sql):
                return statement_type
        return StatementType.UNKNOWN

    def _extract_tables(self, sql: str) -> Set[str]:
        """
        Extracts table names following FROM and JOIN

        Returns:
            Set of lower-cased table names
        """
        tables = set()
        for pattern in self._table_patterns:
            for match in pattern.finditer(sql):
                tables.add(match.group(1).lower())
        return tables

    def _extract_functions(self, sql: str) -> Set[str]:
        """Extracts known function calls (name followed by parenthesis)"""
        return {match.group(1).upper() for match in self._function_pattern.finditer(sql)}


_default_analyzer = SqlAnalyzer()


def validate(sql: str) -> ValidationResult:
    """Module-level shortcut for SqlAnalyzer().validate"""
    return _default_analyzer.validate(sql)


def analyze_stats(sql: str) -> SqlStats:
    """Module-level shortcut for SqlAnalyzer().analyze_stats"""
    return _default_analyzer.analyze_stats(sql)
