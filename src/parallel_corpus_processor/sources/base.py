"""
Capability contract shared by every dataset source variant.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Union

from ..models.core import CorpusEntry, GroupedFiles, LanguagePair, RemoteResource
from ..models.languages import Language
from .registry import LanguagePairRegistry, UnsupportedLanguagePairError


class DatasetSource(ABC):
    """
    Descriptor of one upstream parallel corpus for one language pair.

    A source knows which remote files make up the corpus, where they land on
    disk and how the local files map to train/dev/test corpora and
    vocabularies. It performs no I/O itself: downloading, extraction and
    preprocessing are driven by the pipeline, which then asks the source for
    its :meth:`grouped_files`.

    Construction fails with :class:`UnsupportedLanguagePairError` before any
    I/O when the registry does not contain the requested pair.
    """

    #: Human readable dataset name, used in logs and error messages.
    name: str = ""

    #: Directory under the working root holding this dataset's downloads.
    directory_name: str = ""

    def __init__(
        self,
        working_root: Union[str, Path],
        source_language: Language,
        target_language: Language
    ):
        """
        Initialize the dataset source.

        Args:
            working_root: Root directory shared by all datasets
            source_language: Language of the source side
            target_language: Language of the target side

        Raises:
            UnsupportedLanguagePairError: If the pair is not provided by this dataset
        """
        if not self.supported_pairs().is_supported(source_language, target_language):
            raise UnsupportedLanguagePairError(self.name, source_language, target_language)

        self.working_root = Path(working_root)
        self.language_pair = LanguagePair(source_language, target_language)

    @abstractmethod
    def supported_pairs(self) -> LanguagePairRegistry:
        """Registry of the language pairs this dataset provides."""

    @abstractmethod
    def remote_resources(self) -> List[RemoteResource]:
        """Remote files to fetch, in order. Empty for purely local datasets."""

    @abstractmethod
    def grouped_files(self) -> GroupedFiles:
        """Local files grouped by role, following this dataset's naming convention."""

    @property
    def source_language(self) -> Language:
        return self.language_pair.source

    @property
    def target_language(self) -> Language:
        return self.language_pair.target

    @property
    def src(self) -> str:
        return self.language_pair.source.abbreviation

    @property
    def tgt(self) -> str:
        return self.language_pair.target.abbreviation

    @property
    def download_dir(self) -> Path:
        """Directory the remote resources are downloaded to, shared by all pairs."""
        return self.working_root / self.directory_name

    @property
    def working_dir(self) -> Path:
        """Directory private to this language pair."""
        return self.download_dir / self.language_pair.abbreviation

    def corpus_file(self, prefix: str, language: Language) -> Path:
        """Local path of a raw corpus file, ``{prefix}.{abbreviation}``."""
        return self.download_dir / f"{prefix}.{language.abbreviation}"

    def corpus_entries(self, tag: str, prefixes: Sequence[str]) -> List[CorpusEntry]:
        """
        Build one corpus entry per prefix.

        A single prefix is tagged ``tag``; several are told apart by appending
        the prefix to the tag.
        """
        entries = []
        for prefix in prefixes:
            entry_tag = tag if len(prefixes) == 1 else f"{tag}/{prefix}"
            entries.append(CorpusEntry(
                entry_tag,
                self.corpus_file(prefix, self.source_language),
                self.corpus_file(prefix, self.target_language)
            ))
        return entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.language_pair.abbreviation})"
