"""
Sentence-length filtering of parallel training corpora.
"""
from pathlib import Path
from typing import Tuple

from ..utils.files import partial_path, strip_extension
from .tool_stage import ToolStage

CLEAN_MARKER = "clean"


def clean_prefix(corpus_prefix: Path) -> Path:
    """Prefix of the cleaned corpus, e.g. ``train.tok`` -> ``train.tok.clean``."""
    return corpus_prefix.with_name(f"{corpus_prefix.name}.{CLEAN_MARKER}")


class CorpusCleaner(ToolStage):
    """
    Filters a parallel corpus pair by sentence length with ``clean-corpus-n``.

    The pair must follow the ``{prefix}.{lang}`` convention, and the cleaned
    pair is written to ``{prefix}.clean.{lang}``. Both input files must have the
    same number of lines; the tool is trusted to keep them aligned and the
    pipeline re-validates alignment afterwards.
    """

    stage_name = "cleaning"

    def clean(
        self,
        source_file: Path,
        target_file: Path,
        source_language: str,
        target_language: str,
        min_length: int,
        max_length: int
    ) -> Tuple[Path, Path]:
        """
        Clean a parallel corpus pair unless the cleaned pair already exists.

        Args:
            source_file: Source side, named ``{prefix}.{source_language}``
            target_file: Target side, named ``{prefix}.{target_language}``
            source_language: Source language abbreviation
            target_language: Target language abbreviation
            min_length: Minimum sentence length in tokens
            max_length: Maximum sentence length in tokens

        Returns:
            The cleaned (source, target) files

        Raises:
            ValueError: If the files do not share a ``{prefix}.{lang}`` naming
            ToolError: If the tool fails and the failure policy is ABORT
        """
        source_file, target_file = Path(source_file), Path(target_file)
        corpus_prefix = strip_extension(source_file)
        expected_target = corpus_prefix.with_name(f"{corpus_prefix.name}.{target_language}")
        if source_file.suffix != f".{source_language}" or target_file != expected_target:
            raise ValueError(
                f"Cannot clean '{source_file}' and '{target_file}': expected files named "
                f"'{corpus_prefix}.{source_language}' and '{expected_target}'"
            )

        prefix = clean_prefix(corpus_prefix)
        clean_source = prefix.with_name(f"{prefix.name}.{source_language}")
        clean_target = prefix.with_name(f"{prefix.name}.{target_language}")
        if self._ready(clean_source, clean_target):
            return clean_source, clean_target

        self.logger.info(f"Cleaning '{corpus_prefix}' with sentence length bounds [{min_length}, {max_length}].")
        self.logger.record_tool_invocation("clean-corpus-n")

        # Cleaned files appear as {prefix}.clean.partial.{lang}, then get published.
        partial_prefix = partial_path(prefix)
        result = self.toolkit.clean_corpus(
            corpus_prefix, partial_prefix, source_language, target_language, min_length, max_length
        )
        for language, output in ((source_language, clean_source), (target_language, clean_target)):
            produced = partial_prefix.with_name(f"{partial_prefix.name}.{language}")
            if produced.exists():
                produced.replace(partial_path(output))

        result = self._finish(result, [(source_file, clean_source), (target_file, clean_target)])
        if result.success:
            self.logger.record_cleaning(clean_source, clean_target)
        return clean_source, clean_target
