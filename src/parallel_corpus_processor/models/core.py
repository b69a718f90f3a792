"""
Core data models for the parallel corpus processor.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .languages import Language


class DatasetKind(Enum):
    """Supported dataset source variants."""
    IWSLT15 = "iwslt15"
    TED_TALKS = "ted_talks"
    REMOTE = "remote"


class ToolFailurePolicy(Enum):
    """What a stage does when an external tool exits with a non-zero status."""
    COPY_THROUGH = "copy_through"
    ABORT = "abort"


class CorpusRole(Enum):
    """Roles a corpus can play in the manifest."""
    TRAIN = "train"
    DEV = "dev"
    TEST = "test"


@dataclass(frozen=True)
class LanguagePair:
    """A (source, target) language pair."""
    source: Language
    target: Language

    def __post_init__(self):
        """Validate required fields after initialization."""
        if self.source == self.target:
            raise ValueError(f"Source and target languages must differ (got '{self.source.abbreviation}')")

    def reversed(self) -> "LanguagePair":
        """Return the same pair in the opposite orientation."""
        return LanguagePair(self.target, self.source)

    @property
    def abbreviation(self) -> str:
        """Pair abbreviation used in directory names, e.g. ``en-vi``."""
        return f"{self.source.abbreviation}-{self.target.abbreviation}"


@dataclass(frozen=True)
class RemoteResource:
    """A remote file to fetch, with the local filename inferred from its URL."""
    url: str

    def __post_init__(self):
        """Validate required fields after initialization."""
        if not self.url:
            raise ValueError("Resource URL cannot be empty")

        if not self.filename:
            raise ValueError(f"Cannot infer a filename from URL: {self.url}")

    @property
    def filename(self) -> str:
        """The path segment after the last separator."""
        return self.url.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class CorpusEntry:
    """A tagged pair of parallel corpus files."""
    tag: str
    source_file: Path
    target_file: Path

    def __post_init__(self):
        """Validate required fields after initialization."""
        if not self.tag:
            raise ValueError("Corpus tag cannot be empty")

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            "tag": self.tag,
            "source_file": str(self.source_file),
            "target_file": str(self.target_file),
        }


@dataclass(frozen=True)
class GroupedFiles:
    """
    The corpus manifest: files grouped by role plus the vocabulary pair.

    ``vocabularies`` is either a (source, target) pair or None, never half set.
    """
    train_corpora: Tuple[CorpusEntry, ...] = ()
    dev_corpora: Tuple[CorpusEntry, ...] = ()
    test_corpora: Tuple[CorpusEntry, ...] = ()
    vocabularies: Optional[Tuple[Path, Path]] = None

    def __post_init__(self):
        """Normalize sequences to tuples and validate the vocabulary pair."""
        object.__setattr__(self, "train_corpora", tuple(self.train_corpora))
        object.__setattr__(self, "dev_corpora", tuple(self.dev_corpora))
        object.__setattr__(self, "test_corpora", tuple(self.test_corpora))

        if self.vocabularies is not None:
            vocabularies = tuple(self.vocabularies)
            if len(vocabularies) != 2 or any(vocab is None for vocab in vocabularies):
                raise ValueError("Vocabularies must provide exactly one file per language side")
            object.__setattr__(self, "vocabularies", vocabularies)

    def corpora(self, role: CorpusRole) -> Tuple[CorpusEntry, ...]:
        """Get the corpora for a role."""
        if role is CorpusRole.TRAIN:
            return self.train_corpora
        if role is CorpusRole.DEV:
            return self.dev_corpora
        return self.test_corpora

    def all_corpora(self) -> List[CorpusEntry]:
        """Get train, dev and test corpora in that order."""
        return list(self.train_corpora) + list(self.dev_corpora) + list(self.test_corpora)

    def with_vocabularies(self, source_vocab: Path, target_vocab: Path) -> "GroupedFiles":
        """Return a copy with the vocabulary pair attached."""
        return replace(self, vocabularies=(source_vocab, target_vocab))

    def with_train_corpora(self, train_corpora: List[CorpusEntry]) -> "GroupedFiles":
        """Return a copy with the train corpora replaced."""
        return replace(self, train_corpora=tuple(train_corpora))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "train_corpora": [entry.to_dict() for entry in self.train_corpora],
            "dev_corpora": [entry.to_dict() for entry in self.dev_corpora],
            "test_corpora": [entry.to_dict() for entry in self.test_corpora],
            "vocabularies": [str(vocab) for vocab in self.vocabularies] if self.vocabularies else None,
        }


@dataclass
class DatasetConfig:
    """Configuration for a dataset source, as read from the datasets YAML file."""
    name: str
    kind: str
    source_language: str
    target_language: str
    base_url: Optional[str] = None
    files: List[str] = field(default_factory=list)
    train: List[str] = field(default_factory=list)
    dev: List[str] = field(default_factory=list)
    test: List[str] = field(default_factory=list)
    vocabulary: Optional[str] = None
    supported_pairs: List[List[str]] = field(default_factory=list)

    def __post_init__(self):
        """Validate required fields after initialization."""
        if not self.name:
            raise ValueError("Dataset name cannot be empty")

        if self.kind not in [e.value for e in DatasetKind]:
            raise ValueError(f"Invalid kind: {self.kind}. Must be one of: {[e.value for e in DatasetKind]}")

        if not self.source_language or not self.target_language:
            raise ValueError("Both source_language and target_language must be specified")

        if self.kind == DatasetKind.REMOTE.value:
            if not self.base_url:
                raise ValueError("Remote datasets require a base_url")

            if not self.files:
                raise ValueError("Remote datasets require at least one file")

            if not (self.train or self.dev or self.test):
                raise ValueError("Remote datasets require at least one train, dev or test prefix")

        for pair in self.supported_pairs:
            if len(pair) != 2:
                raise ValueError(f"Supported pairs must have exactly two languages, got: {pair}")

    @property
    def dataset_kind(self) -> DatasetKind:
        return DatasetKind(self.kind)
