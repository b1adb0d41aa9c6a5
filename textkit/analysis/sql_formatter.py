"""
SQL Formatter
Best-effort pretty-printing and minification of SQL over a token stream
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from textkit.analysis.sql_lexer import merge_compound_keywords, tokenize
from textkit.core.models import KeywordCase, SqlToken, SqlTokenType

logger = logging.getLogger(__name__)


# Clause keywords that start a new line at the clause level
MAJOR_CLAUSES = {
    'SELECT', 'FROM', 'WHERE', 'GROUP BY', 'HAVING', 'ORDER BY', 'LIMIT', 'OFFSET',
    'VALUES', 'SET', 'INSERT INTO', 'UPDATE', 'DELETE FROM', 'WITH', 'RETURNING',
}

# Clauses whose comma-separated items each get their own line
LIST_CLAUSES = {'SELECT', 'GROUP BY', 'ORDER BY', 'VALUES', 'SET', 'RETURNING'}

# Set operators, surrounded by blank lines
SET_OPERATORS = {'UNION', 'UNION ALL', 'INTERSECT', 'EXCEPT'}

JOIN_KEYWORDS = {
    'JOIN', 'INNER JOIN', 'CROSS JOIN', 'LEFT JOIN', 'LEFT OUTER JOIN', 'RIGHT JOIN',
    'RIGHT OUTER JOIN', 'FULL JOIN', 'FULL OUTER JOIN', 'NATURAL JOIN',
    'NATURAL LEFT JOIN', 'NATURAL RIGHT JOIN',
}

# Modifiers kept on the SELECT line
SELECT_MODIFIERS = {'DISTINCT', 'ALL'}

# Keywords that double as function names: LEFT(s, 3)
FUNCTION_KEYWORDS = {'LEFT', 'RIGHT', 'REPLACE'}


@dataclass
class _Scope:
    """Statement level inside which clause keywords are laid out"""
    base: int
    cont: int
    open_level: int = 0
    is_root: bool = False
    list_mode: bool = False
    between_pending: bool = False
    clause: Optional[str] = None


@dataclass
class _Line:
    level: int
    parts: List[str] = field(default_factory=list)

    def text(self) -> str:
        return ''.join(self.parts)


class SqlFormatter:
    """
    SQL pretty-printer and minifier

    Works on tokens from the SQL lexer, so keywords inside string literals,
    quoted identifiers and comments are never touched. Formatting never
    raises: unbalanced parentheses or CASE blocks degrade to best-effort
    indentation.
    """

    def __init__(self, indent_width: int = 4, keyword_case: KeywordCase = KeywordCase.UPPER):
        """
        Args:
            indent_width: Spaces per indentation level
            keyword_case: Casing applied to keywords
        """
        self.indent_width = indent_width
        self.keyword_case = keyword_case

    def reflow(self, sql: str) -> str:
        """
        Pretty-prints SQL

        Args:
            sql: SQL text (may be malformed)

        Returns:
            Formatted SQL; empty string for blank input
        """
        if not sql or not sql.strip():
            return ''

        tokens = merge_compound_keywords(tokenize(sql))
        emitter = _Emitter(self._keyword_text)
        emitter.run(tokens)
        return self._render(emitter.lines)

    def minify(self, sql: str) -> str:
        """
        Collapses SQL onto a single line

        Whitespace runs become one space, whitespace next to , ( ) ; is
        dropped, and line comments are rewritten as block comments so the
        code after them is not swallowed. Literal contents are untouched.
        """
        parts: List[str] = []
        pending_space = False
        previous: Optional[SqlToken] = None

        for token in tokenize(sql or ''):
            if token.type == SqlTokenType.WHITESPACE:
                pending_space = True
                continue

            value = token.value
            if token.type == SqlTokenType.COMMENT and value.startswith('--'):
                value = '/* ' + value[2:].strip().replace('*/', '* /') + ' */'

            if parts and pending_space and not _is_tight(previous) and not _is_tight(token):
                parts.append(' ')
            parts.append(value)
            pending_space = False
            previous = token

        return ''.join(parts).strip()

    def _keyword_text(self, value: str) -> str:
        if self.keyword_case == KeywordCase.UPPER:
            return value.upper()
        if self.keyword_case == KeywordCase.LOWER:
            return value.lower()
        return value

    def _render(self, lines: List[_Line]) -> str:
        rendered: List[str] = []
        for line in lines:
            text = line.text()
            if text.strip():
                rendered.append(' ' * (self.indent_width * line.level) + text)
            elif rendered and rendered[-1]:
                # Runs of blank lines collapse to one
                rendered.append('')
        return '\n'.join(rendered).strip()


def _is_tight(token: Optional[SqlToken]) -> bool:
    """Punctuation that takes no surrounding whitespace when minified"""
    return token is not None and token.type == SqlTokenType.PUNCTUATION


class _Emitter:
    """Walks the token stream once and lays it out into indented lines"""

    def __init__(self, keyword_text):
        self.keyword_text = keyword_text
        self.lines: List[_Line] = [_Line(level=0)]
        self.scopes: List[_Scope] = [self._root_scope()]
        # (scope depth, CASE line level)
        self.cases: List[tuple] = []
        self.inline_depth = 0
        self.pending_level: Optional[int] = None
        self.blank_next = False
        self.force_space = False
        self.matches: Dict[int, Optional[int]] = {}
        self.tokens: List[SqlToken] = []
        self.previous: Optional[SqlToken] = None

    @staticmethod
    def _root_scope() -> _Scope:
        return _Scope(base=0, cont=1, is_root=True)

    @property
    def scope(self) -> _Scope:
        return self.scopes[-1]

    @property
    def line(self) -> _Line:
        return self.lines[-1]

    def run(self, tokens: List[SqlToken]) -> None:
        # Significant tokens paired with "was preceded by whitespace"
        sequence = []
        spaced = False
        for token in tokens:
            if token.type == SqlTokenType.WHITESPACE:
                spaced = True
                continue
            sequence.append((token, spaced))
            spaced = False

        self.tokens = [token for token, _ in sequence]
        self.matches = _match_parens(self.tokens)

        for index, (token, spaced) in enumerate(sequence):
            self._consume(index, token, spaced)
            self.previous = token

        if len(self.scopes) > 1 or self.inline_depth:
            logger.debug("Unbalanced parentheses, output indentation is best-effort")

    # Line management

    def newline(self, level: int) -> None:
        level = max(level, 0)
        if self.blank_next:
            self.blank_next = False
            if self.line.parts:
                self.lines.append(_Line(level=0))
            elif len(self.lines) > 1 and self.lines[-2].parts:
                # Current line is empty: turn it into the blank one
                self.line.level = 0
            else:
                self.line.level = level
                return
            self.lines.append(_Line(level=level))
            return

        if self.line.parts:
            self.lines.append(_Line(level=level))
        else:
            self.line.level = level

    def append(self, text: str, spaced: bool) -> None:
        parts = self.line.parts
        if parts and text not in (',', ';') and (spaced or self.force_space):
            if not parts[-1].endswith(' '):
                parts.append(' ')
        parts.append(text)
        self.force_space = False

    # Token dispatch

    def _consume(self, index: int, token: SqlToken, spaced: bool) -> None:
        if token.is_punctuation(';'):
            self._end_statement(token, spaced)
            return

        if self.inline_depth:
            self._consume_inline(token, spaced)
            return

        upper = token.upper if token.type == SqlTokenType.KEYWORD else None

        if self.pending_level is not None:
            keep_on_select_line = (
                upper in SELECT_MODIFIERS
                and self._line_starts_with('SELECT')
                and not self._after_line_comment()
            )
            if not keep_on_select_line:
                self.newline(self.pending_level)
                self.pending_level = None

        if token.type == SqlTokenType.COMMENT:
            self.append(token.value, spaced)
            if token.value.startswith('--'):
                self.pending_level = self.line.level
            return

        if token.type == SqlTokenType.PUNCTUATION:
            self._consume_punctuation(index, token, spaced)
            return

        if upper is not None:
            self._consume_keyword(token, upper, spaced)
            return

        self.append(token.value, spaced)

    def _consume_inline(self, token: SqlToken, spaced: bool) -> None:
        if token.is_punctuation('('):
            self.inline_depth += 1
        elif token.is_punctuation(')'):
            self.inline_depth -= 1

        text = token.value
        if token.type == SqlTokenType.KEYWORD:
            text = self.keyword_text(text)
        self.append(text, spaced)

        if token.is_punctuation(','):
            self.force_space = True
        if token.type == SqlTokenType.COMMENT and token.value.startswith('--'):
            # A line comment must end its line even inside inline parentheses
            self.newline(self.line.level + 1)

    def _consume_keyword(self, token: SqlToken, upper: str, spaced: bool) -> None:
        scope = self.scope
        text = self.keyword_text(token.value)
        case_open = self._case_open()

        if upper in SET_OPERATORS:
            self.blank_next = True
            self.newline(scope.base)
            self.append(text, spaced)
            self.blank_next = True
            self.pending_level = scope.base
            scope.list_mode = False
            scope.clause = None
        elif upper in MAJOR_CLAUSES and not case_open:
            self.newline(scope.base)
            self.append(text, spaced)
            scope.list_mode = upper in LIST_CLAUSES
            scope.between_pending = False
            scope.clause = upper
            if scope.list_mode:
                self.pending_level = scope.cont
        elif upper in JOIN_KEYWORDS and not case_open:
            self.newline(scope.base)
            self.append(text, spaced)
            scope.list_mode = False
            scope.clause = None
        elif upper == 'ON' and not case_open:
            self.newline(scope.cont)
            self.append(text, spaced)
            scope.clause = None
        elif upper in ('AND', 'OR'):
            if upper == 'AND' and scope.between_pending:
                scope.between_pending = False
            elif not case_open:
                self.newline(scope.cont)
            self.append(text, spaced)
        elif upper == 'BETWEEN':
            scope.between_pending = True
            self.append(text, spaced)
        elif upper == 'CASE':
            if self.line.parts:
                self.newline(self.line.level + 1)
            self.append(text, spaced)
            self.cases.append((len(self.scopes), self.line.level))
        elif upper in ('WHEN', 'ELSE') and case_open:
            self.newline(self.cases[-1][1] + 1)
            self.append(text, spaced)
        elif upper == 'END' and case_open:
            _, level = self.cases.pop()
            self.newline(level)
            self.append(text, spaced)
        else:
            self.append(text, spaced)

        self.force_space = True

    def _consume_punctuation(self, index: int, token: SqlToken, spaced: bool) -> None:
        scope = self.scope

        if token.value == ',':
            self.append(',', spaced)
            if scope.list_mode and not self._case_open():
                self.pending_level = scope.cont
            else:
                self.force_space = True
            return

        if token.value == '(':
            previous = self.previous
            if previous is not None and previous.is_keyword(*FUNCTION_KEYWORDS) and not spaced:
                self.force_space = False
            kind = self._classify_paren(index)
            self.append('(', spaced)
            if kind == 'inline':
                self.inline_depth = 1
                return
            open_level = self.line.level
            if kind == 'subquery':
                self.scopes.append(_Scope(base=open_level + 1, cont=open_level + 2, open_level=open_level))
            else:
                # Tuple items after VALUES are listed one per line
                self.scopes.append(_Scope(base=open_level + 1, cont=open_level + 1, open_level=open_level,
                                          list_mode=kind == 'tuple'))
            self.pending_level = open_level + 1
            return

        # Closing parenthesis
        if scope.is_root:
            logger.debug(f"Unmatched ')' at position {token.position}")
            self.append(')', spaced)
            return

        depth = len(self.scopes)
        while self.cases and self.cases[-1][0] >= depth:
            self.cases.pop()
        self.scopes.pop()
        self.newline(scope.open_level)
        self.append(')', spaced)

    def _end_statement(self, token: SqlToken, spaced: bool) -> None:
        if self._after_line_comment() and self.line.parts:
            # ";" on the comment line would become part of the comment
            self.newline(self.line.level)
        if self.inline_depth or len(self.scopes) > 1:
            logger.debug(f"Statement ended inside open parentheses at position {token.position}")
        self.inline_depth = 0
        self.cases = []
        self.scopes = [self._root_scope()]
        self.append(';', spaced)
        self.blank_next = True
        self.pending_level = 0

    # Helpers

    def _case_open(self) -> bool:
        return bool(self.cases) and self.cases[-1][0] == len(self.scopes)

    def _after_line_comment(self) -> bool:
        previous = self.previous
        return (previous is not None and previous.type == SqlTokenType.COMMENT
                and previous.value.startswith('--'))

    def _line_starts_with(self, keyword: str) -> bool:
        parts = [p for p in self.line.parts if p.strip()]
        return bool(parts) and parts[0].upper() == keyword

    def _classify_paren(self, index: int) -> str:
        """
        Decides how a "(" is laid out

        Returns:
            'subquery' when it opens a SELECT/WITH, 'tuple' for a row after
            VALUES, 'group' when it holds top-level AND/OR conditions or a
            CASE expression at any depth, 'inline' otherwise
        """
        end = self.matches.get(index)
        stop = end if end is not None else len(self.tokens)

        inner = [t for t in self.tokens[index + 1:stop] if t.type != SqlTokenType.COMMENT]
        if inner and inner[0].is_keyword('SELECT', 'WITH'):
            return 'subquery'

        if self.scope.clause == 'VALUES' and not self._case_open():
            return 'tuple'

        depth = 0
        connectives = 0
        betweens = 0
        for t in inner:
            if t.is_punctuation('('):
                depth += 1
            elif t.is_punctuation(')'):
                depth -= 1
            elif t.is_punctuation(';'):
                break
            elif t.is_keyword('CASE'):
                # Inline layout would flatten WHEN/ELSE onto one line
                return 'group'
            elif depth == 0 and t.is_keyword('BETWEEN'):
                betweens += 1
            elif depth == 0 and t.is_keyword('AND', 'OR'):
                connectives += 1

        if connectives - betweens > 0:
            return 'group'
        return 'inline'


def _match_parens(tokens: List[SqlToken]) -> Dict[int, Optional[int]]:
    """Maps each "(" index to its matching ")" index, or None if unclosed"""
    matches: Dict[int, Optional[int]] = {}
    stack: List[int] = []
    for i, token in enumerate(tokens):
        if token.is_punctuation('('):
            stack.append(i)
            matches[i] = None
        elif token.is_punctuation(')') and stack:
            matches[stack.pop()] = i
        elif token.is_punctuation(';'):
            stack = []
    return matches


_default_formatter = SqlFormatter()


def reflow(sql: str) -> str:
    """Module-level shortcut for SqlFormatter().reflow"""
    return _default_formatter.reflow(sql)


def minify(sql: str) -> str:
    """Module-level shortcut for SqlFormatter().minify"""
    return _default_formatter.minify(sql)
