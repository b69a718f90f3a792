"""
Boundary to the Moses decoder scripts used for SGM conversion, tokenization
and length-based corpus cleaning.

Each script is run as a subprocess. A non-zero exit status is reported through
:class:`ToolResult` and never raised here; deciding whether a failure is fatal
is left to the calling stage.
"""
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

MOSES_REPOSITORY = "https://github.com/moses-smt/mosesdecoder.git"

SGM_TO_TEXT_SCRIPT = Path("scripts") / "ems" / "support" / "input-from-sgm.perl"
TOKENIZER_SCRIPT = Path("scripts") / "tokenizer" / "tokenizer.perl"
CLEAN_CORPUS_SCRIPT = Path("scripts") / "training" / "clean-corpus-n.perl"

TOOLKIT_UNAVAILABLE = 127


@dataclass
class ToolResult:
    """Outcome of one external tool invocation."""
    tool: str
    exit_code: int
    command: List[str] = field(default_factory=list)
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ToolError(Exception):
    """Raised by a stage whose failure policy does not allow a fallback."""

    def __init__(self, result: ToolResult, input_path: Optional[Path] = None):
        self.result = result
        self.input_path = input_path
        target = f" on '{input_path}'" if input_path else ""
        super().__init__(f"{result.tool} failed{target} with exit status {result.exit_code}")


class MosesToolkit:
    """
    Wrapper around a local checkout of the Moses decoder repository.

    The checkout is cloned on first use if it does not exist yet, so a fully
    cached pipeline run never touches the network.
    """

    def __init__(
        self,
        root: Union[str, Path],
        perl: str = "perl",
        git: str = "git",
        auto_clone: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the toolkit wrapper.

        Args:
            root: Directory of the Moses checkout
            perl: Perl interpreter used to run the scripts
            git: Git executable used to clone the repository
            auto_clone: Clone the repository when it is missing
            logger: Logger to report cloning to
        """
        self.root = Path(root)
        self.perl = perl
        self.git = git
        self.auto_clone = auto_clone
        self.logger = logger or logging.getLogger(__name__)
        self._clone_failed = False

    @property
    def exists(self) -> bool:
        return (self.root / "scripts").is_dir()

    def ensure_available(self) -> bool:
        """
        Make sure the scripts are present, cloning the repository if allowed.

        Returns:
            True if the scripts can be run
        """
        if self.exists:
            return True
        if not self.auto_clone or self._clone_failed:
            return False

        self.logger.info(f"Cloning the Moses repository into '{self.root}'.")
        self.root.parent.mkdir(parents=True, exist_ok=True)
        try:
            process = subprocess.run(
                [self.git, "clone", "--depth", "1", MOSES_REPOSITORY, str(self.root)],
                capture_output=True,
                text=True
            )
        except OSError as e:
            self.logger.error(f"Could not run '{self.git}' to clone the Moses repository: {e}")
            self._clone_failed = True
            return False

        if process.returncode != 0:
            self.logger.error(f"Could not clone the Moses repository: {process.stderr.strip()}")
            self._clone_failed = True
            return False

        self.logger.info("Cloned the Moses repository.")
        return True

    def sgm_to_text(self, input_path: Path, output_path: Path) -> ToolResult:
        """Convert an SGM file to plain text, one segment per line."""
        return self._run("input-from-sgm", SGM_TO_TEXT_SCRIPT, [], input_path, output_path)

    def tokenize(self, input_path: Path, output_path: Path, language: str) -> ToolResult:
        """Tokenize a text file with the Moses tokenizer for ``language``."""
        arguments = ["-q"]
        if language:
            arguments = ["-l", language] + arguments
        return self._run("tokenizer", TOKENIZER_SCRIPT, arguments, input_path, output_path)

    def clean_corpus(
        self,
        corpus_prefix: Path,
        clean_prefix: Path,
        source_language: str,
        target_language: str,
        min_length: int,
        max_length: int
    ) -> ToolResult:
        """
        Drop sentence pairs outside the length bounds.

        Reads ``{corpus_prefix}.{lang}`` for both languages and writes
        ``{clean_prefix}.{lang}``.
        """
        arguments = [
            str(corpus_prefix), source_language, target_language,
            str(clean_prefix), str(min_length), str(max_length)
        ]
        return self._run("clean-corpus-n", CLEAN_CORPUS_SCRIPT, arguments)

    def _run(
        self,
        tool: str,
        script: Path,
        arguments: List[str],
        input_path: Optional[Path] = None,
        output_path: Optional[Path] = None
    ) -> ToolResult:
        command = [self.perl, str(self.root / script)] + arguments

        if not self.ensure_available():
            return ToolResult(tool, TOOLKIT_UNAVAILABLE, command, f"Moses scripts not found under '{self.root}'")

        try:
            if input_path is None:
                process = subprocess.run(command, capture_output=True, text=True)
            else:
                with open(input_path, "rb") as stdin, open(output_path, "wb") as stdout:
                    process = subprocess.run(command, stdin=stdin, stdout=stdout, stderr=subprocess.PIPE)
        except OSError as e:
            return ToolResult(tool, TOOLKIT_UNAVAILABLE, command, str(e))

        stderr = process.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        return ToolResult(tool, process.returncode, command, stderr or "")
