"""
SQL Lexer
Splits SQL text into a flat token stream without parsing it
"""

import re
import logging
from typing import List, Optional, Tuple

from textkit.core.models import SqlToken, SqlTokenType

logger = logging.getLogger(__name__)


# Words classified as KEYWORD tokens. Function names (COUNT, SUM, ...) are
# deliberately left out so calls keep their spelling and stay glued to "(".
KEYWORDS = {
    'SELECT', 'FROM', 'WHERE', 'JOIN', 'INNER', 'LEFT', 'RIGHT', 'FULL', 'OUTER',
    'CROSS', 'NATURAL', 'ON', 'USING', 'AND', 'OR', 'NOT', 'IN', 'EXISTS', 'LIKE',
    'ILIKE', 'BETWEEN', 'IS', 'NULL', 'GROUP', 'BY', 'HAVING', 'ORDER', 'ASC', 'DESC',
    'LIMIT', 'OFFSET', 'INSERT', 'INTO', 'VALUES', 'UPDATE', 'SET', 'DELETE', 'CREATE',
    'TABLE', 'ALTER', 'DROP', 'INDEX', 'VIEW', 'DATABASE', 'SCHEMA', 'PROCEDURE',
    'FUNCTION', 'AS', 'DISTINCT', 'ALL', 'CASE', 'WHEN', 'THEN', 'ELSE', 'END',
    'UNION', 'INTERSECT', 'EXCEPT', 'WITH', 'RECURSIVE', 'PRIMARY', 'FOREIGN',
    'REFERENCES', 'CONSTRAINT', 'UNIQUE', 'DEFAULT', 'TRUE', 'FALSE', 'ANY', 'SOME',
    'OVER', 'PARTITION', 'RETURNING', 'REPLACE', 'TRUNCATE', 'MERGE',
}

# Multi-word keywords, merged into a single KEYWORD token (longest first)
COMPOUND_KEYWORDS: List[Tuple[str, ...]] = sorted([
    ('GROUP', 'BY'),
    ('ORDER', 'BY'),
    ('PARTITION', 'BY'),
    ('UNION', 'ALL'),
    ('INSERT', 'INTO'),
    ('DELETE', 'FROM'),
    ('INNER', 'JOIN'),
    ('CROSS', 'JOIN'),
    ('LEFT', 'JOIN'),
    ('LEFT', 'OUTER', 'JOIN'),
    ('RIGHT', 'JOIN'),
    ('RIGHT', 'OUTER', 'JOIN'),
    ('FULL', 'JOIN'),
    ('FULL', 'OUTER', 'JOIN'),
    ('NATURAL', 'JOIN'),
    ('NATURAL', 'LEFT', 'JOIN'),
    ('NATURAL', 'RIGHT', 'JOIN'),
    ('IS', 'NULL'),
    ('IS', 'NOT', 'NULL'),
], key=len, reverse=True)

# Order matters: comments before operators ("--", "/*"), "::" before parameters
_TOKEN_PATTERNS = [
    (SqlTokenType.WHITESPACE, r'\s+'),
    (SqlTokenType.COMMENT, r'--[^\r\n]*'),
    (SqlTokenType.COMMENT, r'/\*[\s\S]*?(?:\*/|\Z)'),
    (SqlTokenType.LITERAL, r"[NnEeXxBb]?'(?:''|[^'])*'?"),
    (SqlTokenType.LITERAL, r'"(?:""|[^"])*"?'),
    (SqlTokenType.LITERAL, r'`(?:``|[^`])*`?'),
    # A "[" that does not close on its line is an operator character
    (SqlTokenType.LITERAL, r'\[[^\]\r\n]*\]'),
    (SqlTokenType.NUMBER, r'(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?'),
    (SqlTokenType.IDENTIFIER, r'[A-Za-z_][A-Za-z0-9_$#]*'),
    (SqlTokenType.OPERATOR, r'::|<>|<=|>=|!=|\|\||->>|->|=>'),
    (SqlTokenType.IDENTIFIER, r'[@:$?][A-Za-z0-9_]+'),
    (SqlTokenType.PUNCTUATION, r'[,();]'),
]

_COMPILED_PATTERNS = [(token_type, re.compile(pattern)) for token_type, pattern in _TOKEN_PATTERNS]


def tokenize(sql: str) -> List[SqlToken]:
    """
    Splits SQL into tokens

    Never fails: unterminated quotes and comments run to the end of the
    input, and any character no pattern recognizes becomes a one-character
    OPERATOR token. Joining the token values reproduces the input exactly.

    Args:
        sql: SQL text

    Returns:
        List of SqlToken in source order
    """
    tokens: List[SqlToken] = []
    if not sql:
        return tokens

    pos = 0
    length = len(sql)
    while pos < length:
        token = _match_at(sql, pos)
        tokens.append(token)
        pos += len(token.value)

    _demote_qualified_keywords(tokens)
    logger.debug(f"Tokenized {length} characters into {len(tokens)} tokens")
    return tokens


def _demote_qualified_keywords(tokens: List[SqlToken]) -> None:
    """Keywords used as parts of a dotted name (t.end, view.id) are identifiers"""
    for i, token in enumerate(tokens):
        if token.type != SqlTokenType.KEYWORD:
            continue
        before = tokens[i - 1] if i > 0 else None
        after = tokens[i + 1] if i + 1 < len(tokens) else None
        if (before is not None and before.value == '.') or (after is not None and after.value == '.'):
            tokens[i] = SqlToken(SqlTokenType.IDENTIFIER, token.value, token.position)


def _match_at(sql: str, pos: int) -> SqlToken:
    """Matches the first pattern that applies at pos"""
    for token_type, pattern in _COMPILED_PATTERNS:
        match = pattern.match(sql, pos)
        if match and match.end() > pos:
            value = match.group(0)
            if token_type == SqlTokenType.IDENTIFIER and value.upper() in KEYWORDS:
                token_type = SqlTokenType.KEYWORD
            return SqlToken(token_type, value, pos)

    return SqlToken(SqlTokenType.OPERATOR, sql[pos], pos)


def significant(tokens: List[SqlToken]) -> List[SqlToken]:
    """Drops whitespace tokens"""
    return [t for t in tokens if t.type != SqlTokenType.WHITESPACE]


def merge_compound_keywords(tokens: List[SqlToken]) -> List[SqlToken]:
    """
    Merges multi-word keywords (GROUP BY, LEFT OUTER JOIN, ...) into one token

    Only whitespace may separate the words. The merged value joins the
    original words with a single space.
    """
    merged: List[SqlToken] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.type == SqlTokenType.KEYWORD:
            match = _match_compound(tokens, i)
            if match:
                words, end = match
                merged.append(SqlToken(SqlTokenType.KEYWORD, ' '.join(words), token.position))
                i = end
                continue
        merged.append(token)
        i += 1
    return merged


def _match_compound(tokens: List[SqlToken], start: int) -> Optional[Tuple[List[str], int]]:
    """Returns (words, index after last word) for the longest compound at start"""
    for compound in COMPOUND_KEYWORDS:
        words: List[str] = []
        i = start
        for expected in compound:
            # Skip whitespace between words, but not before the first one
            while words and i < len(tokens) and tokens[i].type == SqlTokenType.WHITESPACE:
                i += 1
            if i >= len(tokens):
                break
            candidate = tokens[i]
            if candidate.type != SqlTokenType.KEYWORD:
                break
            if candidate.upper != expected:
                break
            words.append(candidate.value)
            i += 1
        if len(words) == len(compound):
            return words, i
    return None
