"""
Unit tests for the VocabularyBuilder.
"""
from collections import Counter

import pytest

from conftest import write_lines
from parallel_corpus_processor.processors.vocabulary_builder import VocabularyBuilder, VocabularyError
from parallel_corpus_processor.utils.logging import PipelineLogger


class TestVocabularyBuilder:
    """Test cases for VocabularyBuilder."""

    def setup_method(self):
        self.logger = PipelineLogger()
        self.builder = VocabularyBuilder(logger=self.logger)

    def test_size_threshold_keeps_most_frequent(self, tmp_path):
        corpus = write_lines(tmp_path / "train.en", ["a a a b b c"])
        output = tmp_path / "vocab.en"

        assert self.builder.build([corpus], output, size_threshold=2) is True

        assert output.read_text() == "a\nb\n"
        assert self.logger.stats.vocabularies_built == 1

    def test_union_of_inputs(self, tmp_path):
        train = write_lines(tmp_path / "train.en", ["a b"])
        dev = write_lines(tmp_path / "dev.en", ["b c", "b"])
        output = tmp_path / "vocab.en"

        self.builder.build([train, dev], output)

        assert output.read_text().splitlines() == ["b", "a", "c"]

    def test_count_threshold_overrides_size(self, tmp_path):
        corpus = write_lines(tmp_path / "train.en", ["a a a b b c"])
        output = tmp_path / "vocab.en"

        self.builder.build([corpus], output, size_threshold=1, count_threshold=2)

        assert output.read_text() == "a\nb\n"

    def test_existing_output_is_not_rebuilt(self, tmp_path):
        corpus = write_lines(tmp_path / "train.en", ["a"])
        output = write_lines(tmp_path / "vocab.en", ["cached"])

        assert self.builder.build([corpus], output) is False
        assert output.read_text() == "cached\n"

    def test_missing_input_is_fatal(self, tmp_path):
        output = tmp_path / "vocab.en"

        with pytest.raises(VocabularyError, match="missing.en"):
            self.builder.build([tmp_path / "missing.en"], output)

        assert not output.exists()
        assert not (tmp_path / "vocab.en.partial").exists()

    def test_select_tokens_ties_keep_first_occurrence(self):
        counts = Counter(["x", "y", "z", "y"])

        assert VocabularyBuilder.select_tokens(counts, 10) == ["y", "x", "z"]

    def test_vocabulary_cap(self, tmp_path):
        corpus = write_lines(tmp_path / "train.en", ["a"] * 100 + ["b"] * 50 + ["c"])
        output = tmp_path / "vocab.en"

        self.builder.build([corpus], output, size_threshold=2)

        assert set(output.read_text().split()) == {"a", "b"}
