"""
Dataset assembled from an arbitrary list of remote files.
"""
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..models.core import GroupedFiles, RemoteResource
from ..models.languages import Language
from .base import DatasetSource
from .registry import LanguagePairRegistry


def _directory_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "dataset"


class RemoteDataset(DatasetSource):
    """
    Dataset described entirely by configuration.

    Files are fetched from ``base_url`` (archives are extracted next to them)
    and corpora are located by prefix relative to the download directory,
    e.g. the prefix ``training/news-commentary-v11.de-en`` resolves to
    ``training/news-commentary-v11.de-en.de`` and ``...en``. Tags are
    ``{name}/Train``, ``{name}/Dev`` and ``{name}/Test``.
    """

    def __init__(
        self,
        working_root: Union[str, Path],
        source_language: Language,
        target_language: Language,
        name: str,
        base_url: str,
        files: Sequence[str],
        train: Sequence[str] = (),
        dev: Sequence[str] = (),
        test: Sequence[str] = (),
        vocabulary: Optional[str] = None,
        supported_pairs: Optional[Iterable[Tuple[Language, Language]]] = None
    ):
        if not files:
            raise ValueError(f"Dataset {name} does not list any files to download")

        self.name = name
        self.directory_name = _directory_name(name)
        self.base_url = base_url.rstrip("/")
        self.files = list(files)
        self.train_prefixes = list(train)
        self.dev_prefixes = list(dev)
        self.test_prefixes = list(test)
        self.vocabulary_prefix = vocabulary
        self._registry = LanguagePairRegistry.from_pairs(
            supported_pairs if supported_pairs is not None else [(source_language, target_language)]
        )
        super().__init__(working_root, source_language, target_language)

    def supported_pairs(self) -> LanguagePairRegistry:
        return self._registry

    def remote_resources(self) -> List[RemoteResource]:
        return [RemoteResource(f"{self.base_url}/{filename.lstrip('/')}") for filename in self.files]

    def grouped_files(self) -> GroupedFiles:
        vocabularies = None
        if self.vocabulary_prefix:
            vocabularies = (
                self.corpus_file(self.vocabulary_prefix, self.source_language),
                self.corpus_file(self.vocabulary_prefix, self.target_language)
            )

        return GroupedFiles(
            train_corpora=self.corpus_entries(f"{self.name}/Train", self.train_prefixes),
            dev_corpora=self.corpus_entries(f"{self.name}/Dev", self.dev_prefixes),
            test_corpora=self.corpus_entries(f"{self.name}/Test", self.test_prefixes),
            vocabularies=vocabularies
        )
