"""
Language pair registries describing which pairs a dataset source provides.
"""
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Sequence, Tuple

from ..models.languages import Language


class UnsupportedLanguagePairError(ValueError):
    """Raised when a dataset source is requested for a pair it does not provide."""

    def __init__(self, dataset_name: str, source: Language, target: Language):
        self.dataset_name = dataset_name
        self.source = source
        self.target = target
        super().__init__(
            f"The language pair '{source.abbreviation}-{target.abbreviation}' "
            f"is not supported by the {dataset_name} dataset."
        )


class LanguagePairRegistry:
    """
    Set of language pairs supported by a dataset source.

    Support is symmetric: ``is_supported(a, b)`` holds whenever ``(a, b)`` or
    ``(b, a)`` is registered. ``is_supported_exact`` checks the registered
    orientation only, which sources use to detect reversed upstream naming.

    Two forms exist. An explicit registry holds an enumerated set of pairs. A
    combinatorial registry supports every pair of distinct languages from a
    list, and answers membership from the position of each language in that
    list instead of materializing all pairs.
    """

    def __init__(
        self,
        pairs: Optional[Iterable[Tuple[Language, Language]]] = None,
        languages: Optional[Sequence[Language]] = None
    ):
        if (pairs is None) == (languages is None):
            raise ValueError("Provide exactly one of 'pairs' or 'languages'")

        self._pairs: Optional[FrozenSet[Tuple[Language, Language]]] = None
        self._index: Optional[Dict[Language, int]] = None

        if pairs is not None:
            self._pairs = frozenset((source, target) for source, target in pairs)
        else:
            self._index = {}
            for language in languages:
                self._index.setdefault(language, len(self._index))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Language, Language]]) -> "LanguagePairRegistry":
        return cls(pairs=pairs)

    @classmethod
    def from_languages(cls, languages: Sequence[Language]) -> "LanguagePairRegistry":
        return cls(languages=languages)

    @property
    def is_combinatorial(self) -> bool:
        return self._index is not None

    def is_supported_exact(self, source: Language, target: Language) -> bool:
        """Check the pair in the registered orientation only."""
        try:
            if self._pairs is not None:
                return (source, target) in self._pairs
            source_index = self._index.get(source)
            target_index = self._index.get(target)
        except TypeError:
            # Unhashable input is never a registered language.
            return False
        if source_index is None or target_index is None:
            return False
        return source_index < target_index

    def is_supported(self, source: Language, target: Language) -> bool:
        """Check the pair in either orientation."""
        return self.is_supported_exact(source, target) or self.is_supported_exact(target, source)

    def canonical(self, source: Language, target: Language) -> Tuple[Language, Language]:
        """
        Return the registered orientation of a supported pair.

        Raises:
            ValueError: If the pair is not supported in either orientation
        """
        if self.is_supported_exact(source, target):
            return source, target
        if self.is_supported_exact(target, source):
            return target, source
        raise ValueError(f"Unsupported language pair: {source.abbreviation}-{target.abbreviation}")

    def pairs(self) -> Iterator[Tuple[Language, Language]]:
        """Iterate over the registered pairs in their registered orientation."""
        if self._pairs is not None:
            yield from sorted(self._pairs, key=lambda p: (p[0].abbreviation, p[1].abbreviation))
        else:
            yield from combinations(self._index, 2)

    def __len__(self) -> int:
        if self._pairs is not None:
            return len(self._pairs)
        n = len(self._index)
        return n * (n - 1) // 2

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.is_supported(pair[0], pair[1])
