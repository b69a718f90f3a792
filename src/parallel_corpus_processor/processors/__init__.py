"""
Pipeline stages: download, extraction, preprocessing, cleaning and vocabulary derivation.
"""

from .downloader import Downloader, DownloadError
from .archive_extractor import ArchiveExtractor, ExtractionError
from .text_preprocessor import TextPreprocessor
from .corpus_cleaner import CorpusCleaner
from .vocabulary_builder import VocabularyBuilder, VocabularyError

__all__ = [
    "Downloader", "DownloadError",
    "ArchiveExtractor", "ExtractionError",
    "TextPreprocessor",
    "CorpusCleaner",
    "VocabularyBuilder", "VocabularyError"
]
