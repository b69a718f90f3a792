"""
Dataset source variants and configuration-driven dispatch.
"""
from pathlib import Path
from typing import Callable, Dict, Union

from ..models.core import DatasetConfig, DatasetKind
from ..models.languages import Language
from .base import DatasetSource
from .iwslt15 import SUPPORTED_PAIRS as IWSLT15_PAIRS, IWSLT15Dataset
from .registry import LanguagePairRegistry, UnsupportedLanguagePairError
from .remote import RemoteDataset
from .ted_talks import SUPPORTED_PAIRS as TED_TALKS_PAIRS, TedTalksDataset


def _create_iwslt15(config: DatasetConfig, working_root: Path) -> DatasetSource:
    return IWSLT15Dataset(
        working_root,
        Language.from_abbreviation(config.source_language),
        Language.from_abbreviation(config.target_language)
    )


def _create_ted_talks(config: DatasetConfig, working_root: Path) -> DatasetSource:
    return TedTalksDataset(
        working_root,
        Language.from_abbreviation(config.source_language),
        Language.from_abbreviation(config.target_language)
    )


def _create_remote(config: DatasetConfig, working_root: Path) -> DatasetSource:
    supported_pairs = None
    if config.supported_pairs:
        supported_pairs = [
            (Language.from_abbreviation(a), Language.from_abbreviation(b))
            for a, b in config.supported_pairs
        ]

    return RemoteDataset(
        working_root,
        Language.from_abbreviation(config.source_language),
        Language.from_abbreviation(config.target_language),
        name=config.name,
        base_url=config.base_url,
        files=config.files,
        train=config.train,
        dev=config.dev,
        test=config.test,
        vocabulary=config.vocabulary,
        supported_pairs=supported_pairs
    )


DATASET_SOURCES: Dict[DatasetKind, Callable[[DatasetConfig, Path], DatasetSource]] = {
    DatasetKind.IWSLT15: _create_iwslt15,
    DatasetKind.TED_TALKS: _create_ted_talks,
    DatasetKind.REMOTE: _create_remote,
}

SUPPORTED_PAIRS: Dict[DatasetKind, LanguagePairRegistry] = {
    DatasetKind.IWSLT15: IWSLT15_PAIRS,
    DatasetKind.TED_TALKS: TED_TALKS_PAIRS,
}


def create_dataset_source(config: DatasetConfig, working_root: Union[str, Path]) -> DatasetSource:
    """
    Create the dataset source variant named by a configuration.

    Args:
        config: Dataset configuration
        working_root: Root directory shared by all datasets

    Returns:
        The dataset source

    Raises:
        ValueError: If a language abbreviation is unknown
        UnsupportedLanguagePairError: If the variant does not provide the pair
    """
    factory = DATASET_SOURCES[config.dataset_kind]
    return factory(config, Path(working_root))


__all__ = [
    "DATASET_SOURCES",
    "SUPPORTED_PAIRS",
    "DatasetSource",
    "IWSLT15Dataset",
    "LanguagePairRegistry",
    "RemoteDataset",
    "TedTalksDataset",
    "UnsupportedLanguagePairError",
    "create_dataset_source",
]
