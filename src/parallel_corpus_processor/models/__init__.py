"""
Data models for the parallel corpus processor.
"""

from .core import (
    CorpusEntry,
    CorpusRole,
    DatasetConfig,
    DatasetKind,
    GroupedFiles,
    LanguagePair,
    RemoteResource,
    ToolFailurePolicy,
)
from .languages import ALL_LANGUAGES, Language

__all__ = [
    "ALL_LANGUAGES",
    "CorpusEntry",
    "CorpusRole",
    "DatasetConfig",
    "DatasetKind",
    "GroupedFiles",
    "Language",
    "LanguagePair",
    "RemoteResource",
    "ToolFailurePolicy",
]
