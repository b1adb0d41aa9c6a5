"""
Carrega entradas SQL/JSON a partir de arquivos
"""

import logging
from pathlib import Path
from typing import Dict

from textkit.core.models import InputLoadError, ValidationError

logger = logging.getLogger(__name__)


class FileLoader:
    """Loader de todos os arquivos com uma extensão dentro de um diretório"""

    def __init__(self, directory_path: str, extension: str = "sql"):
        """
        Args:
            directory_path: Diretório a percorrer (recursivamente)
            extension: Extensão dos arquivos sem o ponto (padrão: "sql")
        """
        self.directory_path = directory_path
        self.extension = extension.lstrip('.') if extension else extension

    def load(self) -> Dict[str, str]:
        """
        Lê os arquivos

        Returns:
            Dict com caminho relativo ao diretório -> conteúdo

        Raises:
            InputLoadError: Se o diretório não existir ou não tiver arquivos válidos
            ValidationError: Se a extensão for vazia
        """
        # Validação
        if not self.extension or not self.extension.strip():
            raise ValidationError("File extension cannot be empty")

        root = Path(self.directory_path)
        if not root.exists():
            raise InputLoadError(f"Directory not found: {self.directory_path}")

        if not root.is_dir():
            raise InputLoadError(f"Path is not a directory: {self.directory_path}")

        files = {}

        # Busca todos os arquivos com a extensão especificada
        for file_path in sorted(root.rglob(f"*.{self.extension}")):
            try:
                content = file_path.read_text(encoding='utf-8')
            except UnicodeDecodeError as e:
                logger.error(f"Encoding error reading {file_path}: {e}")
                raise InputLoadError(f"Could not decode file {file_path}: {e}")
            except OSError as e:
                logger.error(f"Error reading {file_path}: {e}")
                raise InputLoadError(f"Could not read file {file_path}: {e}")

            # Validação: arquivo não pode estar vazio
            if not content.strip():
                logger.warning(f"Skipping empty file: {file_path.name}")
                continue

            files[file_path.relative_to(root).as_posix()] = content
            logger.debug(f"Loaded: {file_path.name}")

        if not files:
            raise InputLoadError(
                f"No .{self.extension} files found in {self.directory_path}"
            )

        logger.info(f"Loaded {len(files)} file(s) from {self.directory_path}")
        return files

    @staticmethod
    def from_files(directory_path: str, extension: str = "sql") -> Dict[str, str]:
        """Atalho para FileLoader(directory_path, extension).load()"""
        return FileLoader(directory_path, extension).load()
