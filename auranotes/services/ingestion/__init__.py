"""
Ingestion module - Turning uploaded files into transcript text.
"""

from .parser import UploadedFile, parse_file, parse_files

__all__ = ["UploadedFile", "parse_file", "parse_files"]
