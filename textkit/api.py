"""
Public entry points returning serializable result envelopes
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from textkit.analysis.json_analyzer import StructuredTextAnalyzer
from textkit.analysis.sql_analyzer import SqlAnalyzer
from textkit.analysis.sql_formatter import SqlFormatter
from textkit.config.config import DefaultConfig
from textkit.core.models import AnalysisStats, KeywordCase, ParseError, SqlStats

logger = logging.getLogger(__name__)

_json_analyzer = StructuredTextAnalyzer()
_sql_analyzer = SqlAnalyzer()


class JsonStatsModel(BaseModel):
    """Serializable AnalysisStats"""
    key_count: int = Field(ge=0)
    object_count: int = Field(ge=0)
    array_count: int = Field(ge=0)
    string_count: int = Field(ge=0)
    number_count: int = Field(ge=0)
    boolean_count: int = Field(ge=0)
    null_count: int = Field(ge=0)
    value_count: int = Field(ge=0, description="Number of scalar values")
    max_depth: int = Field(ge=0, description="Deepest nesting level, root = 0")

    @classmethod
    def from_stats(cls, stats: AnalysisStats) -> 'JsonStatsModel':
        return cls(
            key_count=stats.key_count,
            object_count=stats.object_count,
            array_count=stats.array_count,
            string_count=stats.string_count,
            number_count=stats.number_count,
            boolean_count=stats.boolean_count,
            null_count=stats.null_count,
            value_count=stats.value_count,
            max_depth=stats.max_depth,
        )


class ErrorDetail(BaseModel):
    """Decode error surfaced to the caller"""
    message: str
    offset: Optional[int] = None
    line: Optional[int] = None
    column: Optional[int] = None


class AnalysisEnvelope(BaseModel):
    """Result of analyze_structured_text"""
    ok: bool
    stats: Optional[JsonStatsModel] = None
    error: Optional[ErrorDetail] = None


class SqlValidationEnvelope(BaseModel):
    """Result of validate_sql"""
    valid: bool
    issues: List[str] = Field(default_factory=list)


class SqlStatsReport(BaseModel):
    """Serializable SqlStats (sets rendered as sorted lists)"""
    line_count: int
    word_count: int
    character_count: int
    keyword_count: int
    statement_type: str
    tables: List[str] = Field(default_factory=list)
    functions: List[str] = Field(default_factory=list)

    @classmethod
    def from_stats(cls, stats: SqlStats) -> 'SqlStatsReport':
        return cls(
            line_count=stats.line_count,
            word_count=stats.word_count,
            character_count=stats.character_count,
            keyword_count=stats.keyword_count,
            statement_type=stats.statement_type.value,
            tables=sorted(stats.tables),
            functions=sorted(stats.functions),
        )


def analyze_structured_text(text: str) -> AnalysisEnvelope:
    """
    Analyzes a JSON document without raising

    Returns:
        AnalysisEnvelope with ok=True and stats, or ok=False and the decode error
    """
    try:
        stats = _json_analyzer.analyze(text)
    except ParseError as e:
        logger.debug(f"JSON analysis failed: {e}")
        return AnalysisEnvelope(
            ok=False,
            error=ErrorDetail(message=e.message, offset=e.offset, line=e.line, column=e.column),
        )
    return AnalysisEnvelope(ok=True, stats=JsonStatsModel.from_stats(stats))


def reflow_sql(sql: str, indent_width: int = DefaultConfig.SQL_INDENT_WIDTH,
               keyword_case: KeywordCase = KeywordCase.UPPER) -> str:
    """Pretty-prints SQL (best-effort, never raises)"""
    return SqlFormatter(indent_width=indent_width, keyword_case=keyword_case).reflow(sql)


def minify_sql(sql: str) -> str:
    """Collapses SQL onto one line (best-effort, never raises)"""
    return SqlFormatter().minify(sql)


def validate_sql(sql: str) -> SqlValidationEnvelope:
    """Advisory SQL checks"""
    result = _sql_analyzer.validate(sql)
    return SqlValidationEnvelope(valid=result.valid, issues=list(result.issues))


def analyze_sql_stats(sql: str) -> SqlStats:
    """Structural summary of SQL"""
    return _sql_analyzer.analyze_stats(sql)
