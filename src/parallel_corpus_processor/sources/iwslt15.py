"""
IWSLT-15 English-Vietnamese dataset, as preprocessed by the Stanford NLP group.
"""
from typing import List

from ..models.core import GroupedFiles, RemoteResource
from ..models.languages import ENGLISH, VIETNAMESE
from .base import DatasetSource
from .registry import LanguagePairRegistry

IWSLT15_URL = "https://nlp.stanford.edu/projects/nmt/data"
TRAIN_PREFIX = "train"
DEV_PREFIX = "tst2012"
TEST_PREFIX = "tst2013"
VOCAB_PREFIX = "vocab"

# Orientation matches the upstream directory name (iwslt15.en-vi).
SUPPORTED_PAIRS = LanguagePairRegistry.from_pairs([(ENGLISH, VIETNAMESE)])


class IWSLT15Dataset(DatasetSource):
    """IWSLT-15 corpus. Ships its own vocabularies, so none are derived."""

    name = "IWSLT-15"
    directory_name = "iwslt-15"

    def supported_pairs(self) -> LanguagePairRegistry:
        return SUPPORTED_PAIRS

    @property
    def reversed(self) -> bool:
        """True when the requested pair is the reverse of the upstream orientation."""
        return not SUPPORTED_PAIRS.is_supported_exact(self.source_language, self.target_language)

    @property
    def remote_directory(self) -> str:
        if self.reversed:
            return f"iwslt15.{self.tgt}-{self.src}"
        return f"iwslt15.{self.src}-{self.tgt}"

    def remote_resources(self) -> List[RemoteResource]:
        base = f"{IWSLT15_URL}/{self.remote_directory}"
        return [
            RemoteResource(f"{base}/{prefix}.{language}")
            for prefix in (TRAIN_PREFIX, DEV_PREFIX, TEST_PREFIX, VOCAB_PREFIX)
            for language in (self.src, self.tgt)
        ]

    def grouped_files(self) -> GroupedFiles:
        return GroupedFiles(
            train_corpora=self.corpus_entries("IWSLT15/Train", [TRAIN_PREFIX]),
            dev_corpora=self.corpus_entries("IWSLT15/Dev", [DEV_PREFIX]),
            test_corpora=self.corpus_entries("IWSLT15/Test", [TEST_PREFIX]),
            vocabularies=(
                self.corpus_file(VOCAB_PREFIX, self.source_language),
                self.corpus_file(VOCAB_PREFIX, self.target_language)
            )
        )
