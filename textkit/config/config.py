"""
Módulo de configuração para textkit
Suporta configuração via variáveis de ambiente e arquivo .env
"""

import os
import threading
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

from textkit.core.models import KeywordCase


class DefaultConfig:
    """Valores padrão das configurações"""
    # Formatação SQL
    SQL_INDENT_WIDTH = 4
    SQL_KEYWORD_CASE = 'upper'

    # Formatação JSON
    JSON_INDENT = 2

    # Limite de tamanho da entrada, aplicado pelo chamador (bytes)
    MAX_INPUT_BYTES = 10 * 1024 * 1024

    # Caminhos
    OUTPUT_DIR = './output'

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_DIR = './logs'
    AUTO_LOG_ENABLED = False


class Config:
    """
    Configurações do textkit (Singleton Thread-Safe)

    Uso:
        config = Config.get_instance()
        # ou
        config = get_config()

    Thread-safe: Sim (usando threading.Lock com double-check locking)
    """

    _instance: Optional['Config'] = None
    _lock: threading.Lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """
        Inicializa configurações (executado apenas uma vez)

        Usa flag _initialized para evitar reinicialização em chamadas
        subsequentes de __new__.
        """
        if Config._initialized:
            return

        with Config._lock:
            if Config._initialized:
                return

            # Tenta carregar .env primeiro, depois environment.env
            base_path = Path(__file__).parent.parent.parent
            env_path = base_path / '.env'
            if not env_path.exists():
                env_path = base_path / 'environment.env'

            if env_path.exists():
                load_dotenv(env_path)
                self._env_loaded = True
            else:
                self._env_loaded = False

            # Formatação SQL
            self.sql_indent_width = self._getenv_int('TEXTKIT_SQL_INDENT_WIDTH', DefaultConfig.SQL_INDENT_WIDTH)
            self.sql_keyword_case = os.getenv('TEXTKIT_SQL_KEYWORD_CASE', DefaultConfig.SQL_KEYWORD_CASE).lower()

            # Formatação JSON
            self.json_indent = self._getenv_int('TEXTKIT_JSON_INDENT', DefaultConfig.JSON_INDENT)

            self.max_input_bytes = self._getenv_int('TEXTKIT_MAX_INPUT_BYTES', DefaultConfig.MAX_INPUT_BYTES)

            # Caminhos
            self.output_dir = os.getenv('TEXTKIT_OUTPUT_DIR', DefaultConfig.OUTPUT_DIR)

            # Logging
            self.log_level = os.getenv('TEXTKIT_LOG_LEVEL', DefaultConfig.LOG_LEVEL)
            self.log_file = os.getenv('TEXTKIT_LOG_FILE')  # Opcional
            self.log_dir = os.getenv('TEXTKIT_LOG_DIR', DefaultConfig.LOG_DIR)
            self.auto_log_enabled = self._getenv_bool('TEXTKIT_AUTO_LOG_ENABLED', DefaultConfig.AUTO_LOG_ENABLED)

            self._validate()

            Config._initialized = True

    @classmethod
    def get_instance(cls) -> 'Config':
        """
        Retorna instância singleton de configuração

        Exemplo:
            >>> config = Config.get_instance()
            >>> config.sql_indent_width
            4
        """
        return cls()

    @classmethod
    def reset_instance(cls) -> None:
        """
        Reseta instância singleton (útil para testes)

        WARNING: Use apenas em testes.
        """
        with cls._lock:
            cls._instance = None
            cls._initialized = False

    @staticmethod
    def _getenv_int(key: str, default: int) -> int:
        """Obtém variável de ambiente como int"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def _getenv_bool(key: str, default: bool = False) -> bool:
        """Obtém variável de ambiente como bool"""
        value = os.getenv(key, '').lower()
        if not value:
            return default
        return value in ('true', '1', 'yes', 'on')

    def _validate(self) -> None:
        """Valida configurações"""
        if self.sql_indent_width < 1 or self.sql_indent_width > 16:
            raise ValueError("SQL indent width must be between 1 and 16")

        KeywordCase.from_string(self.sql_keyword_case)

        if self.json_indent < 0 or self.json_indent > 16:
            raise ValueError("JSON indent must be between 0 and 16")

        if self.max_input_bytes <= 0:
            raise ValueError("Max input bytes must be positive")

        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")

    @property
    def keyword_case(self) -> KeywordCase:
        return KeywordCase.from_string(self.sql_keyword_case)

    def __repr__(self) -> str:
        return (f"Config(sql_indent_width={self.sql_indent_width}, "
                f"sql_keyword_case={self.sql_keyword_case}, json_indent={self.json_indent}, "
                f"output_dir={self.output_dir}, env_loaded={self._env_loaded})")


def get_config() -> Config:
    """
    Retorna instância singleton de configuração (função helper)

    Returns:
        Instância única de Config
    """
    return Config.get_instance()


def reload_config() -> Config:
    """
    Recarrega configuração (útil para testes)

    Reseta a instância singleton e cria uma nova, relendo o ambiente.

    Returns:
        Nova instância de Config
    """
    Config.reset_instance()
    return Config.get_instance()
