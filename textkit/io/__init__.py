"""
Input loading for textkit
"""

from textkit.io.file_loader import FileLoader

__all__ = ["FileLoader"]
