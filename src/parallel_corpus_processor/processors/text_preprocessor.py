"""
Per-file text normalization: SGM to plain text conversion and tokenization.
"""
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..models.core import ToolFailurePolicy
from ..utils.files import extension, has_marker, insert_marker, is_bookkeeping, partial_path, strip_extension
from ..utils.logging import PipelineLogger
from .tool_stage import ToolStage

SGM_EXTENSION = ".sgm"
TOKENIZED_MARKER = "tok"
RESERVED_PREFIX = "."


class TextPreprocessor:
    """
    Normalizes extracted files into plain text corpora.

    Two idempotent steps run in order. SGM files are converted to a sibling
    without the ``.sgm`` extension. Then, if tokenization is enabled, files
    without a ``tok`` name segment are tokenized into ``{stem}.tok.{ext}``.
    Either step is skipped when its output already exists. Hidden files are
    left untouched.
    """

    def __init__(
        self,
        toolkit,
        tokenize: bool = False,
        on_tool_failure: ToolFailurePolicy = ToolFailurePolicy.COPY_THROUGH,
        retry_fallbacks: bool = False,
        logger: Optional[PipelineLogger] = None
    ):
        """
        Initialize the preprocessor.

        Args:
            toolkit: Provider of ``sgm_to_text`` and ``tokenize`` (see MosesToolkit)
            tokenize: Whether to tokenize files
            on_tool_failure: Policy applied when a tool exits with a non-zero status
            retry_fallbacks: Retry tools whose earlier failure left a fallback copy
            logger: Observer handle
        """
        self.tokenize = tokenize
        self.logger = logger or PipelineLogger()
        self._converter = _SgmConversion(toolkit, on_tool_failure, retry_fallbacks, self.logger)
        self._tokenizer = _Tokenization(toolkit, on_tool_failure, retry_fallbacks, self.logger)

    def preprocess(self, path: Path) -> Path:
        """
        Preprocess a single file.

        Args:
            path: Extracted file

        Returns:
            Path of the fully preprocessed file
        """
        path = Path(path)
        if path.name.startswith(RESERVED_PREFIX) or is_bookkeeping(path):
            return path

        if path.suffix == SGM_EXTENSION:
            path = self._converter.run(path)

        if self.tokenize and not has_marker(path, TOKENIZED_MARKER):
            path = self._tokenizer.run(path)

        return path

    def preprocess_all(self, paths: Iterable[Path]) -> Dict[Path, Path]:
        """
        Preprocess several files.

        Returns:
            Mapping from each input path to its preprocessed path
        """
        return {Path(path): self.preprocess(path) for path in paths}


class _SgmConversion(ToolStage):
    stage_name = "sgm conversion"

    def run(self, path: Path) -> Path:
        output = strip_extension(path)
        if self._ready(output):
            return output

        self.logger.record_tool_invocation("input-from-sgm")
        result = self.toolkit.sgm_to_text(path, partial_path(output))
        self._finish(result, [(path, output)])
        return output


class _Tokenization(ToolStage):
    stage_name = "tokenization"

    def run(self, path: Path) -> Path:
        output = insert_marker(path, TOKENIZED_MARKER)
        if self._ready(output):
            return output

        self.logger.record_tool_invocation("tokenizer")
        result = self.toolkit.tokenize(path, partial_path(output), extension(output))
        self._finish(result, [(path, output)])
        return output

