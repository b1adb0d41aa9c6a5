"""
Tests for SqlFormatter
"""

import random
import unittest

import pytest

from textkit.analysis.sql_formatter import SqlFormatter, minify, reflow
from textkit.analysis.sql_lexer import significant, tokenize
from textkit.core.models import KeywordCase, SqlTokenType


def token_multiset(sql):
    """Significant token values, keywords compared case-insensitively"""
    values = []
    for token in significant(tokenize(sql)):
        values.append(token.upper if token.type == SqlTokenType.KEYWORD else token.value)
    return sorted(values)


class TestReflow(unittest.TestCase):
    """Pretty-printing layout"""

    def setUp(self):
        self.formatter = SqlFormatter()

    def test_select_list(self):
        """Each selected column goes on its own indented line"""
        result = self.formatter.reflow("select id, name from users where active = 1")

        self.assertEqual(result, "SELECT\n    id,\n    name\nFROM users\nWHERE active = 1")

    def test_and_or_conditions(self):
        """AND/OR start continuation lines under WHERE"""
        result = self.formatter.reflow("SELECT * FROM t WHERE a = 1 AND b = 2 OR c = 3")

        self.assertEqual(result, "SELECT\n    *\nFROM t\nWHERE a = 1\n    AND b = 2\n    OR c = 3")

    def test_join_with_on(self):
        """JOIN at clause level, ON and its conditions one level deeper"""
        result = self.formatter.reflow(
            "SELECT u.name FROM users u LEFT JOIN posts p "
            "ON u.id = p.user_id AND p.status = 'published'"
        )

        self.assertEqual(result, (
            "SELECT\n"
            "    u.name\n"
            "FROM users u\n"
            "LEFT JOIN posts p\n"
            "    ON u.id = p.user_id\n"
            "    AND p.status = 'published'"
        ))

    def test_case_expression(self):
        """WHEN/ELSE indented under CASE, END back at CASE level"""
        result = self.formatter.reflow(
            "SELECT CASE WHEN x = 1 THEN 'one' ELSE 'other' END AS label FROM t"
        )

        self.assertEqual(result, (
            "SELECT\n"
            "    CASE\n"
            "        WHEN x = 1 THEN 'one'\n"
            "        ELSE 'other'\n"
            "    END AS label\n"
            "FROM t"
        ))

    def test_case_inside_function_call(self):
        """A CASE argument opens the call instead of flattening WHEN/ELSE"""
        result = self.formatter.reflow("SELECT SUM(CASE WHEN a = 1 THEN 1 ELSE 0 END) AS n FROM t")

        self.assertEqual(result, (
            "SELECT\n"
            "    SUM(\n"
            "        CASE\n"
            "            WHEN a = 1 THEN 1\n"
            "            ELSE 0\n"
            "        END\n"
            "    ) AS n\n"
            "FROM t"
        ))

    def test_nested_case_inside_call_arguments(self):
        """CASE deeper inside the parentheses still opens the outer call"""
        result = self.formatter.reflow("SELECT COALESCE(MAX(CASE WHEN a THEN 1 END), 0) FROM t")

        self.assertNotIn("CASE WHEN", result)
        self.assertIn("\n            CASE\n", result)
        self.assertEqual(token_multiset(result), token_multiset(
            "SELECT COALESCE(MAX(CASE WHEN a THEN 1 END), 0) FROM t"
        ))

    def test_subquery(self):
        """Subquery clauses indent one level inside the parentheses"""
        result = self.formatter.reflow(
            "SELECT name FROM users WHERE id IN (SELECT user_id FROM orders)"
        )

        self.assertEqual(result, (
            "SELECT\n"
            "    name\n"
            "FROM users\n"
            "WHERE id IN (\n"
            "    SELECT\n"
            "        user_id\n"
            "    FROM orders\n"
            ")"
        ))

    def test_derived_table(self):
        """Closing parenthesis returns to the opening line's level"""
        result = self.formatter.reflow("SELECT * FROM (SELECT id FROM t) sub")

        self.assertEqual(result, (
            "SELECT\n"
            "    *\n"
            "FROM (\n"
            "    SELECT\n"
            "        id\n"
            "    FROM t\n"
            ") sub"
        ))

    def test_boolean_group(self):
        """Parentheses holding AND/OR are laid out as a block"""
        result = self.formatter.reflow("SELECT * FROM t WHERE a = 1 AND (b = 2 OR c = 3)")

        self.assertEqual(result, (
            "SELECT\n"
            "    *\n"
            "FROM t\n"
            "WHERE a = 1\n"
            "    AND (\n"
            "        b = 2\n"
            "        OR c = 3\n"
            "    )"
        ))

    def test_function_call_stays_inline(self):
        """Plain calls keep their arguments on one line"""
        self.assertEqual(
            self.formatter.reflow("SELECT COUNT(id) FROM users"),
            "SELECT\n    COUNT(id)\nFROM users",
        )

    def test_keyword_function_stays_glued(self):
        """LEFT( is a call, not a join"""
        self.assertEqual(
            self.formatter.reflow("SELECT LEFT(name, 3) FROM t"),
            "SELECT\n    LEFT(name, 3)\nFROM t",
        )

    def test_value_list_stays_inline(self):
        """IN lists outside VALUES are not split"""
        self.assertEqual(
            self.formatter.reflow("SELECT a FROM t WHERE id IN (1, 2, 3)"),
            "SELECT\n    a\nFROM t\nWHERE id IN (1, 2, 3)",
        )

    def test_insert_values(self):
        """One row per line after VALUES, one item per line inside each row"""
        result = self.formatter.reflow("INSERT INTO t (a, b) VALUES (1, 'x'), (2, 'y')")

        self.assertEqual(result, (
            "INSERT INTO t (a, b)\n"
            "VALUES\n"
            "    (\n"
            "        1,\n"
            "        'x'\n"
            "    ),\n"
            "    (\n"
            "        2,\n"
            "        'y'\n"
            "    )"
        ))

    def test_values_item_call_stays_inline(self):
        """Calls inside a VALUES row keep their own arguments together"""
        result = self.formatter.reflow("INSERT INTO t VALUES (1, NOW(), COALESCE(a, 0))")

        self.assertIn("\n        NOW(),\n", result)
        self.assertIn("\n        COALESCE(a, 0)\n", result)

    def test_union_all_surrounded_by_blank_lines(self):
        """Set operators sit alone between blank lines"""
        result = self.formatter.reflow("SELECT a FROM t UNION ALL SELECT a FROM u")

        self.assertEqual(result, "SELECT\n    a\nFROM t\n\nUNION ALL\n\nSELECT\n    a\nFROM u")

    def test_multiple_statements(self):
        """Statements are separated by a blank line"""
        self.assertEqual(
            self.formatter.reflow("SELECT 1; SELECT 2;"),
            "SELECT\n    1;\n\nSELECT\n    2;",
        )

    def test_line_comment_before_semicolon(self):
        """A ";" after a line comment stays outside the comment"""
        result = self.formatter.reflow("SELECT a FROM t -- note\n;\nSELECT b FROM u")

        self.assertEqual(result, "SELECT\n    a\nFROM t -- note\n;\n\nSELECT\n    b\nFROM u")
        self.assertEqual(token_multiset(result), token_multiset("SELECT a FROM t -- note\n;\nSELECT b FROM u"))

    def test_line_comment_before_semicolon_in_parentheses(self):
        """Closing an open parenthesis with ";" after a comment keeps the ";" a token"""
        result = self.formatter.reflow("SELECT COUNT(a -- inner\n; SELECT 1")

        self.assertIn(";", [line.strip() for line in result.split("\n")])
        self.assertEqual(token_multiset(result), token_multiset("SELECT COUNT(a -- inner\n; SELECT 1"))

    def test_between_and_stays_inline(self):
        """The AND of BETWEEN does not start a new line"""
        result = self.formatter.reflow("SELECT a FROM t WHERE x BETWEEN 1 AND 5 AND y = 2")

        self.assertEqual(result, "SELECT\n    a\nFROM t\nWHERE x BETWEEN 1 AND 5\n    AND y = 2")

    def test_distinct_stays_on_select_line(self):
        """DISTINCT is a modifier of SELECT, not a column"""
        result = self.formatter.reflow("SELECT DISTINCT a, b FROM t")

        self.assertEqual(result, "SELECT DISTINCT\n    a,\n    b\nFROM t")

    def test_distinct_after_comment(self):
        """DISTINCT after a line comment starts a new line instead of joining the comment"""
        result = self.formatter.reflow("SELECT -- c\nDISTINCT a FROM t")

        self.assertEqual(result, "SELECT\n    -- c\n    DISTINCT a\nFROM t")

    def test_line_comment_ends_line(self):
        """Code after a line comment continues on the next line"""
        result = self.formatter.reflow("SELECT a -- first\nFROM t")

        self.assertEqual(result, "SELECT\n    a -- first\nFROM t")

    def test_keywords_in_literals_untouched(self):
        """Literal contents are neither cased nor split"""
        result = self.formatter.reflow("select 'from where and' from t")

        self.assertIn("'from where and'", result)
        self.assertEqual(result.count("\n"), 2)

    def test_qualified_keyword_not_uppercased(self):
        """Keywords used as dotted names keep their spelling"""
        result = self.formatter.reflow("select t.end from t")
        self.assertIn("t.end", result)

    def test_blank_input(self):
        """Empty or whitespace-only input gives an empty string"""
        self.assertEqual(self.formatter.reflow(""), "")
        self.assertEqual(self.formatter.reflow("   \n\t"), "")

    def test_module_shortcut(self):
        """reflow() uses the default formatter"""
        self.assertEqual(reflow("select a from t"), "SELECT\n    a\nFROM t")


class TestReflowOptions(unittest.TestCase):
    """Indent width and keyword casing"""

    def test_indent_width(self):
        """Indentation follows indent_width"""
        formatter = SqlFormatter(indent_width=2)
        self.assertEqual(formatter.reflow("select a, b from t"), "SELECT\n  a,\n  b\nFROM t")

    def test_lower_case(self):
        """Keywords are lowercased with KeywordCase.LOWER"""
        formatter = SqlFormatter(keyword_case=KeywordCase.LOWER)
        self.assertEqual(formatter.reflow("SELECT a FROM t"), "select\n    a\nfrom t")

    def test_preserve_case(self):
        """Keywords keep their spelling with KeywordCase.PRESERVE"""
        formatter = SqlFormatter(keyword_case=KeywordCase.PRESERVE)
        self.assertEqual(formatter.reflow("Select a From t"), "Select\n    a\nFrom t")


class TestReflowProperties:
    """Properties that hold for any input"""

    SAMPLES = [
        "select id, name from users where active = 1",
        "SELECT u.name FROM users u LEFT JOIN posts p ON u.id = p.user_id AND p.status = 'x'",
        "SELECT CASE WHEN x = 1 THEN 'one' ELSE 'other' END AS label FROM t",
        "SELECT name FROM users WHERE id IN (SELECT user_id FROM orders)",
        "SELECT * FROM t WHERE a = 1 AND (b = 2 OR c = 3)",
        "INSERT INTO t (a, b) VALUES (1, 'x'), (2, 'y')",
        "SELECT a FROM t UNION ALL SELECT a FROM u",
        "update t set a = 1, b = 2 where id = 3",
        "select count(*) from t group by a, b having count(*) > 1 order by a desc limit 10",
        "SELECT a FROM t -- note\n;\nSELECT b FROM u",
        "SELECT COUNT(a -- inner\n) FROM t;",
        "SELECT a -- c\n, b FROM t",
        "SELECT SUM(CASE WHEN a = 1 THEN 1 ELSE 0 END) AS n FROM t",
        "SELECT\n    a\nFROM t -- note\n;\n\nSELECT\n    b\nFROM u",
        "INSERT INTO t (a, b)\nVALUES\n    (\n        1,\n        'x'\n    ),\n    (\n        2,\n        'y'\n    )",
    ]

    MALFORMED = [
        "SELECT (a FROM t",
        "SELECT a) FROM t",
        "SELECT ((( FROM",
        "SELECT CASE WHEN a THEN b FROM t",
        "END END ) ( ; ;",
        "SELECT 'unterminated",
        "/* open comment",
        ")))",
        "SELECT [abc\n, b FROM t",
        "SELECT -- c\nDISTINCT a FROM t -- d\n;",
        "SELECT COUNT(a -- inner\n; SELECT 1",
        "VALUES (CASE WHEN a -- x\n; END",
    ]

    @pytest.mark.parametrize("sql", SAMPLES + MALFORMED)
    def test_tokens_preserved(self, sql):
        """Reflow only changes whitespace and keyword casing"""
        assert token_multiset(reflow(sql)) == token_multiset(sql)

    @pytest.mark.parametrize("sql", SAMPLES)
    def test_idempotent(self, sql):
        """Reflowing formatted output changes nothing"""
        once = reflow(sql)
        assert reflow(once) == once

    @pytest.mark.parametrize("sql", MALFORMED)
    def test_malformed_input_never_raises(self, sql):
        """Unbalanced input still formats"""
        assert isinstance(reflow(sql), str)

    @pytest.mark.parametrize("sql", SAMPLES)
    def test_no_trailing_whitespace(self, sql):
        """No line ends in spaces"""
        for line in reflow(sql).split("\n"):
            assert line == line.rstrip()


class TestReflowGeneratedInput:
    """Token preservation over randomly assembled statements"""

    VOCABULARY = [
        "SELECT", "FROM", "WHERE", "AND", "OR", "CASE", "WHEN", "THEN", "ELSE", "END",
        "BETWEEN", "VALUES", "UNION ALL", "DISTINCT", "LEFT", "JOIN", "ON", "GROUP BY",
        "a", "t.x", "COUNT", "1", "'lit'", "(", ")", ",", ";", "=", "*",
        "-- note\n", "/* c */",
    ]
    SEPARATORS = [" ", "", "\n"]

    def generate(self, rng):
        parts = []
        for _ in range(rng.randint(1, 25)):
            parts.append(rng.choice(self.VOCABULARY))
            parts.append(rng.choice(self.SEPARATORS))
        return "".join(parts)

    @pytest.mark.parametrize("seed", range(20))
    def test_tokens_preserved(self, seed):
        """Reflow keeps every token for any mix of clauses, comments and parentheses"""
        rng = random.Random(seed)
        for _ in range(25):
            sql = self.generate(rng)
            result = reflow(sql)
            assert token_multiset(result) == token_multiset(sql), sql

    @pytest.mark.parametrize("seed", range(5))
    def test_minify_after_reflow_preserves_tokens(self, seed):
        """Minifying reflowed output gives the same tokens as minifying the input"""
        rng = random.Random(seed)
        for _ in range(25):
            sql = self.generate(rng)
            assert token_multiset(minify(reflow(sql))) == token_multiset(minify(sql)), sql


class TestMinify:
    """Single-line minification"""

    def test_collapses_whitespace(self):
        """Whitespace runs shrink to one space, none around commas"""
        assert minify("SELECT  a ,  b\n  FROM   t") == "SELECT a,b FROM t"

    def test_parentheses_and_semicolon(self):
        """No whitespace next to ( ) ;"""
        assert minify("SELECT COUNT( * ) FROM t ;") == "SELECT COUNT(*)FROM t;"
        assert minify("WHERE id IN ( 1 , 2 )") == "WHERE id IN(1,2)"

    def test_line_comment_becomes_block(self):
        """Line comments cannot swallow the rest of a single line"""
        assert minify("SELECT a -- note\nFROM t") == "SELECT a /* note */ FROM t"

    def test_literal_untouched(self):
        """Whitespace inside literals is kept"""
        assert minify("SELECT 'a   b,  c'  FROM t") == "SELECT 'a   b,  c' FROM t"

    def test_keyword_case_untouched(self):
        """Minify never changes keyword casing"""
        assert minify("select a from t") == "select a from t"

    def test_single_line(self, sample_sql):
        """Reflowed SQL minifies back to one line"""
        assert "\n" not in minify(reflow(sample_sql))

    def test_idempotent(self, sample_sql):
        """Minifying minified SQL changes nothing"""
        once = minify(sample_sql + " -- tail")
        assert minify(once) == once

    def test_minify_reflow_round_trip(self, sample_sql):
        """Minifying a reflowed query keeps the same tokens"""
        assert token_multiset(minify(reflow(sample_sql))) == token_multiset(minify(sample_sql))

    def test_empty(self):
        """Blank input minifies to an empty string"""
        assert minify("") == ""
        assert minify("   ") == ""
