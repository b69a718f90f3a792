"""
Multilingual TED talks corpus (Qi et al., 2018), prepared locally.

The corpus is not fetched by the pipeline. Each split is expected to be
already extracted into one file per language and pair, named
``{split}.{a}-{b}.{lang}`` inside the dataset directory, where ``a-b`` is
the pair in the order of :data:`TED_LANGUAGES`.
"""
from typing import List

from ..models.core import CorpusEntry, GroupedFiles, RemoteResource
from ..models.languages import ALL_LANGUAGES, Language
from .base import DatasetSource
from .registry import LanguagePairRegistry

TED_LANGUAGES: List[Language] = list(ALL_LANGUAGES)

SUPPORTED_PAIRS = LanguagePairRegistry.from_languages(TED_LANGUAGES)


class TedTalksDataset(DatasetSource):
    """TED talks corpus covering every pair of its 59 languages."""

    name = "TED-Talks"
    directory_name = "ted-talks"

    def supported_pairs(self) -> LanguagePairRegistry:
        return SUPPORTED_PAIRS

    @property
    def pair_prefix(self) -> str:
        first, second = SUPPORTED_PAIRS.canonical(self.source_language, self.target_language)
        return f"{first.abbreviation}-{second.abbreviation}"

    def remote_resources(self) -> List[RemoteResource]:
        return []

    def _entry(self, tag: str, split: str) -> CorpusEntry:
        prefix = f"{split}.{self.pair_prefix}"
        return CorpusEntry(
            tag,
            self.corpus_file(prefix, self.source_language),
            self.corpus_file(prefix, self.target_language)
        )

    def grouped_files(self) -> GroupedFiles:
        return GroupedFiles(
            train_corpora=[self._entry("TED/Train", "train")],
            dev_corpora=[self._entry("TED/Dev", "dev")],
            test_corpora=[self._entry("TED/Test", "test")]
        )
