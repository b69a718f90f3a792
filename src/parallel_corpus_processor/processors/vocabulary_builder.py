"""
Frequency-thresholded vocabulary derivation.
"""
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional

from ..utils.files import atomic_output
from ..utils.logging import PipelineLogger


class VocabularyError(Exception):
    """Raised when a vocabulary cannot be derived."""
    pass


class VocabularyBuilder:
    """
    Writes the most frequent whitespace-separated tokens of a set of files,
    one token per line, most frequent first.
    """

    def __init__(self, buffer_size: int = 8192, logger: Optional[PipelineLogger] = None):
        self.buffer_size = buffer_size
        self.logger = logger or PipelineLogger()

    def build(
        self,
        input_files: Iterable[Path],
        output_file: Path,
        size_threshold: int = 50000,
        count_threshold: int = -1
    ) -> bool:
        """
        Derive a vocabulary file unless it already exists.

        Tokens are selected by one of two policies. By default the
        ``size_threshold`` most frequent tokens are kept. A positive
        ``count_threshold`` overrides this and keeps every token seen at least
        that many times. Ties are ordered by first occurrence.

        Args:
            input_files: Corpus files to count tokens in
            output_file: Vocabulary file to write
            size_threshold: Maximum number of tokens to keep
            count_threshold: Minimum token frequency, or a non-positive value to disable

        Returns:
            True if the vocabulary was written, False if it already existed

        Raises:
            VocabularyError: If an input file cannot be read
        """
        output_file = Path(output_file)
        if output_file.exists():
            return False

        counts = self.count_tokens(input_files)
        tokens = self.select_tokens(counts, size_threshold, count_threshold)

        with atomic_output(output_file) as partial:
            with open(partial, "w", encoding="utf-8") as f:
                for token in tokens:
                    f.write(f"{token}\n")

        self.logger.record_vocabulary(output_file)
        self.logger.info(f"Created vocabulary '{output_file}' with {len(tokens)} tokens.")
        return True

    def count_tokens(self, input_files: Iterable[Path]) -> Counter:
        """Count whitespace-separated tokens over all input files."""
        counts: Counter = Counter()
        for path in input_files:
            try:
                with open(path, "r", encoding="utf-8", buffering=self.buffer_size) as f:
                    for line in f:
                        counts.update(line.split())
            except (OSError, UnicodeDecodeError) as e:
                self.logger.error(f"Could not read vocabulary input '{path}': {e}")
                raise VocabularyError(f"Could not read vocabulary input '{path}': {e}") from e
        return counts

    @staticmethod
    def select_tokens(counts: Counter, size_threshold: int, count_threshold: int = -1) -> List[str]:
        """Apply the selection policy to token counts."""
        ranked = counts.most_common()
        if count_threshold > 0:
            return [token for token, count in ranked if count >= count_threshold]
        return [token for token, _ in ranked[:size_threshold]]
