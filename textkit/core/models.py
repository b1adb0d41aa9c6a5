"""
Modelos de dados e exceções para textkit
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set


# Exceções customizadas
class TextKitError(Exception):
    """Exceção base para erros do textkit"""
    pass


class ParseError(TextKitError):
    """Texto estruturado não pôde ser decodificado"""

    def __init__(self, message: str, offset: Optional[int] = None,
                 line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"{self.message} (line {self.line}, column {self.column})"
        if self.offset is not None:
            return f"{self.message} (offset {self.offset})"
        return self.message


class InputLoadError(TextKitError):
    """Erro ao carregar arquivos de entrada"""
    pass


class ValidationError(TextKitError):
    """Erro de validação"""
    pass


class JsonValueType(str, Enum):
    """Tipos de valores JSON decodificados"""
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


def classify_value(value: Any) -> JsonValueType:
    """
    Mapeia um valor JSON decodificado para seu JsonValueType

    bool é subclasse de int, por isso é verificado antes de números.
    """
    if value is None:
        return JsonValueType.NULL
    if isinstance(value, bool):
        return JsonValueType.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonValueType.NUMBER
    if isinstance(value, str):
        return JsonValueType.STRING
    if isinstance(value, list):
        return JsonValueType.ARRAY
    if isinstance(value, dict):
        return JsonValueType.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


@dataclass(frozen=True)
class AnalysisStats:
    """Contagens agregadas de um documento JSON"""
    key_count: int = 0
    object_count: int = 0
    array_count: int = 0
    string_count: int = 0
    number_count: int = 0
    boolean_count: int = 0
    null_count: int = 0
    max_depth: int = 0

    @property
    def value_count(self) -> int:
        """Número de valores escalares"""
        return self.string_count + self.number_count + self.boolean_count + self.null_count

    @property
    def node_count(self) -> int:
        """Número de nós JSON, cada container contado uma vez"""
        return self.object_count + self.array_count + self.value_count


class SqlTokenType(str, Enum):
    """Categorias léxicas produzidas pelo lexer SQL"""
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    OPERATOR = "operator"
    COMMENT = "comment"
    WHITESPACE = "whitespace"


@dataclass(frozen=True)
class SqlToken:
    """Unidade léxica de uma string SQL"""
    type: SqlTokenType
    value: str
    position: int = 0

    @property
    def upper(self) -> str:
        return self.value.upper()

    def is_keyword(self, *words: str) -> bool:
        """True se for keyword igual a alguma das palavras informadas"""
        if self.type != SqlTokenType.KEYWORD:
            return False
        return not words or self.upper in words

    def is_punctuation(self, char: str) -> bool:
        return self.type == SqlTokenType.PUNCTUATION and self.value == char


class StatementType(str, Enum):
    """Categoria geral de um statement SQL"""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CREATE = "CREATE"
    ALTER = "ALTER"
    DROP = "DROP"
    UNKNOWN = "UNKNOWN"


class KeywordCase(str, Enum):
    """Caixa das keywords aplicada pelo formatador SQL"""
    UPPER = "upper"
    LOWER = "lower"
    PRESERVE = "preserve"

    @classmethod
    def from_string(cls, value: str) -> 'KeywordCase':
        """Cria KeywordCase a partir de string com validação"""
        try:
            return cls(value.lower())
        except ValueError:
            valid = [c.value for c in cls]
            raise ValueError(f"Invalid keyword case: {value}. Valid: {valid}")


@dataclass
class SqlStats:
    """Resumo estrutural de uma string SQL"""
    line_count: int
    word_count: int
    character_count: int
    keyword_count: int
    statement_type: StatementType = StatementType.UNKNOWN
    tables: Set[str] = field(default_factory=set)
    functions: Set[str] = field(default_factory=set)


@dataclass
class ValidationResult:
    """Resultado de uma validação consultiva"""
    issues: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def add_issue(self, issue: str) -> None:
        self.issues.append(issue)
