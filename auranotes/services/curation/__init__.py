"""
Curation module - LLM restructuring, refine, and derived artifacts.
"""

from .artifacts import ArtifactGenerator
from .base import BaseCurator
from .curator import NoteCurator

__all__ = ["ArtifactGenerator", "BaseCurator", "NoteCurator"]
