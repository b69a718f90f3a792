"""
Main pipeline orchestrator for parallel corpus preparation.
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .loaders.dataset_loader import DatasetLoader
from .models.core import CorpusEntry, GroupedFiles, ToolFailurePolicy
from .processors.archive_extractor import ArchiveExtractor
from .processors.corpus_cleaner import CorpusCleaner
from .processors.downloader import Downloader
from .processors.text_preprocessor import TextPreprocessor
from .processors.vocabulary_builder import VocabularyBuilder
from .sources.base import DatasetSource
from .tools.moses import MosesToolkit
from .utils.files import count_lines
from .utils.logging import PipelineLogger


class CorpusAlignmentError(Exception):
    """Raised when the two sides of a corpus entry differ in line count."""

    def __init__(self, entry: CorpusEntry, source_lines: int, target_lines: int):
        self.entry = entry
        self.source_lines = source_lines
        self.target_lines = target_lines
        super().__init__(
            f"Corpus '{entry.tag}' is not aligned: '{entry.source_file}' has {source_lines} lines "
            f"but '{entry.target_file}' has {target_lines}"
        )


@dataclass
class PipelineConfig:
    """Configuration for the corpus preparation pipeline."""

    # Locations
    working_dir: str = "data"
    datasets_yaml_path: str = "datasets.yaml"
    toolkit_dir: Optional[str] = None
    log_dir: Optional[str] = None

    # Download options
    buffer_size: int = 8192
    progress_interval: float = 10.0
    request_timeout: float = 60.0

    # Processing options
    tokenize: bool = False
    train_length_bounds: Optional[Tuple[int, int]] = None
    vocab_size_threshold: int = 50000
    vocab_count_threshold: int = -1

    # Failure handling
    on_tool_failure: ToolFailurePolicy = ToolFailurePolicy.COPY_THROUGH
    retry_fallbacks: bool = False
    validate_alignment: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.working_dir:
            raise ValueError("working_dir cannot be empty")

        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")

        if self.progress_interval < 0:
            raise ValueError("progress_interval cannot be negative")

        if self.vocab_size_threshold <= 0:
            raise ValueError("vocab_size_threshold must be positive")

        if self.train_length_bounds is not None:
            if len(self.train_length_bounds) != 2:
                raise ValueError("train_length_bounds must be a (min, max) pair")
            min_length, max_length = (int(bound) for bound in self.train_length_bounds)
            if min_length < 0 or max_length < min_length:
                raise ValueError("train_length_bounds must satisfy 0 <= min <= max")
            self.train_length_bounds = (min_length, max_length)

        try:
            self.on_tool_failure = ToolFailurePolicy(self.on_tool_failure)
        except ValueError:
            raise ValueError(
                f"Invalid on_tool_failure: {self.on_tool_failure}. "
                f"Must be one of: {[e.value for e in ToolFailurePolicy]}"
            )

        # Try to get the toolkit location from environment if not provided
        if not self.toolkit_dir:
            self.toolkit_dir = os.getenv("MOSES_DIR")


class CorpusManifestBuilder:
    """
    Builds the final corpus manifest for one dataset source.

    Runs, in order and each idempotently: download of the remote resources,
    archive extraction, text preprocessing, vocabulary derivation when the
    source ships none, and length-based cleaning of the train corpora when
    bounds are configured. Dev and test corpora are never cleaned.
    """

    def __init__(
        self,
        config: PipelineConfig,
        logger: Optional[PipelineLogger] = None,
        toolkit=None,
        downloader: Optional[Downloader] = None
    ):
        """
        Initialize the manifest builder.

        Args:
            config: Pipeline configuration
            logger: Observer handle shared by all stages
            toolkit: External toolkit, created from the configuration on first use if not provided
            downloader: Downloader to use instead of one built from the configuration
        """
        self.config = config
        self.logger = logger or PipelineLogger(log_dir=config.log_dir)
        self._toolkit = toolkit

        self.downloader = downloader or Downloader(
            chunk_size=config.buffer_size,
            progress_interval=config.progress_interval,
            timeout=config.request_timeout,
            logger=self.logger
        )
        self.extractor = ArchiveExtractor(logger=self.logger)
        self.vocabulary_builder = VocabularyBuilder(buffer_size=config.buffer_size, logger=self.logger)

    def toolkit_for(self, source: DatasetSource):
        """The external toolkit, located under the source's download directory by default."""
        if self._toolkit is None:
            root = Path(self.config.toolkit_dir) if self.config.toolkit_dir else source.download_dir / "moses"
            self._toolkit = MosesToolkit(root, logger=self.logger.logger)
        return self._toolkit

    def build(self, source: DatasetSource) -> GroupedFiles:
        """
        Materialize a dataset and return its manifest.

        Args:
            source: Dataset source to prepare

        Returns:
            The fully populated manifest

        Raises:
            DownloadError: If a remote resource cannot be fetched
            ExtractionError: If an archive is corrupt
            FileNotFoundError: If a corpus file of the layout is missing
            VocabularyError: If a vocabulary cannot be derived
            CorpusAlignmentError: If a corpus pair is misaligned
            ToolError: If a tool fails and the failure policy is ABORT
        """
        toolkit = self.toolkit_for(source)
        preprocessor = TextPreprocessor(
            toolkit,
            tokenize=self.config.tokenize,
            on_tool_failure=self.config.on_tool_failure,
            retry_fallbacks=self.config.retry_fallbacks,
            logger=self.logger
        )

        layout = source.grouped_files()
        excluded = set(layout.vocabularies or ())

        downloaded = self._download(source)
        extracted = self._extract(source, downloaded)

        self.logger.info(f"{source.name} - Preprocessing any downloaded files.")
        preprocessor.preprocess_all(path for path in extracted if path not in excluded)
        self.logger.info(f"{source.name} - Preprocessed any downloaded files.")

        files = GroupedFiles(
            train_corpora=[self._preprocess_entry(source, entry, preprocessor) for entry in layout.train_corpora],
            dev_corpora=[self._preprocess_entry(source, entry, preprocessor) for entry in layout.dev_corpora],
            test_corpora=[self._preprocess_entry(source, entry, preprocessor) for entry in layout.test_corpora],
            vocabularies=layout.vocabularies
        )

        if files.vocabularies is None:
            files = self._derive_vocabularies(source, files)

        if self.config.train_length_bounds is not None:
            files = self._clean_train_corpora(source, files, toolkit)

        if self.config.validate_alignment:
            validate_alignment(files)

        return files

    def _download(self, source: DatasetSource) -> List[Path]:
        resources = source.remote_resources()
        if not resources:
            return []

        self.logger.info(f"{source.name} - Downloading any missing files.")
        paths = []
        for resource in resources:
            destination = source.download_dir / resource.filename
            self.downloader.fetch(resource.url, destination, self.config.buffer_size)
            paths.append(destination)
        return paths

    def _extract(self, source: DatasetSource, downloaded: List[Path]) -> List[Path]:
        if not downloaded:
            return []

        self.logger.info(f"{source.name} - Extracting any downloaded archives.")
        files = []
        for path in downloaded:
            files.extend(self.extractor.extract(path))
        self.logger.info(f"{source.name} - Extracted any downloaded archives.")
        return files

    def _preprocess_entry(
        self,
        source: DatasetSource,
        entry: CorpusEntry,
        preprocessor: TextPreprocessor
    ) -> CorpusEntry:
        paths = []
        for path in (entry.source_file, entry.target_file):
            if not path.exists() and not path.with_name(f"{path.name}.sgm").exists():
                raise FileNotFoundError(f"{source.name} - Missing corpus file for '{entry.tag}': {path}")
            if not path.exists():
                path = path.with_name(f"{path.name}.sgm")
            paths.append(preprocessor.preprocess(path))
        return CorpusEntry(entry.tag, paths[0], paths[1])

    def _derive_vocabularies(self, source: DatasetSource, files: GroupedFiles) -> GroupedFiles:
        self.logger.info(f"{source.name} - Creating vocabulary files.")
        corpora = files.all_corpora()
        source_vocab = source.working_dir / f"vocab.{source.src}"
        target_vocab = source.working_dir / f"vocab.{source.tgt}"

        self.vocabulary_builder.build(
            [entry.source_file for entry in corpora],
            source_vocab,
            self.config.vocab_size_threshold,
            self.config.vocab_count_threshold
        )
        self.vocabulary_builder.build(
            [entry.target_file for entry in corpora],
            target_vocab,
            self.config.vocab_size_threshold,
            self.config.vocab_count_threshold
        )
        self.logger.info(f"{source.name} - Created vocabulary files.")
        return files.with_vocabularies(source_vocab, target_vocab)

    def _clean_train_corpora(self, source: DatasetSource, files: GroupedFiles, toolkit) -> GroupedFiles:
        min_length, max_length = self.config.train_length_bounds
        cleaner = CorpusCleaner(
            toolkit,
            on_tool_failure=self.config.on_tool_failure,
            retry_fallbacks=self.config.retry_fallbacks,
            logger=self.logger
        )

        cleaned = []
        for entry in files.train_corpora:
            clean_source, clean_target = cleaner.clean(
                entry.source_file, entry.target_file, source.src, source.tgt, min_length, max_length
            )
            cleaned_entry = CorpusEntry(entry.tag, clean_source, clean_target)
            # The cleaning tool is trusted to keep both sides aligned; check it did.
            validate_entry(cleaned_entry)
            cleaned.append(cleaned_entry)
        return files.with_train_corpora(cleaned)


def validate_entry(entry: CorpusEntry) -> None:
    """
    Check that both sides of a corpus entry have the same number of lines.

    Raises:
        CorpusAlignmentError: If the line counts differ
    """
    source_lines = count_lines(entry.source_file)
    target_lines = count_lines(entry.target_file)
    if source_lines != target_lines:
        raise CorpusAlignmentError(entry, source_lines, target_lines)


def validate_alignment(files: GroupedFiles) -> None:
    """Validate line alignment of every corpus entry in a manifest."""
    for entry in files.all_corpora():
        validate_entry(entry)


class CorpusPipeline:
    """
    Main orchestrator for preparing every configured dataset.

    This class coordinates the entire pipeline:
    1. Load dataset configurations and create their sources
    2. Build the manifest of each source
    3. Report statistics and soft failures
    """

    def __init__(self, config: PipelineConfig, logger: Optional[PipelineLogger] = None, toolkit=None):
        """
        Initialize the corpus pipeline.

        Args:
            config: Pipeline configuration
            logger: Observer handle shared by all stages
            toolkit: External toolkit to use instead of a Moses checkout
        """
        self.config = config
        self.logger = logger or PipelineLogger(log_dir=config.log_dir)
        self.dataset_loader = DatasetLoader()
        self.builder = CorpusManifestBuilder(config, logger=self.logger, toolkit=toolkit)

    def create_sources(self, names: Optional[List[str]] = None) -> Dict[str, DatasetSource]:
        """
        Create the configured dataset sources.

        Args:
            names: Dataset entries to create, or None for all of them

        Raises:
            ValueError: If a named entry does not exist or is invalid
        """
        configs = self.dataset_loader.load_config(self.config.datasets_yaml_path)
        if names:
            missing = [name for name in names if name not in configs]
            if missing:
                raise ValueError(f"Unknown datasets: {', '.join(missing)}")
            configs = {name: configs[name] for name in names}

        return {
            name: self.dataset_loader.create_source(dataset_config, self.config.working_dir)
            for name, dataset_config in configs.items()
        }

    def prepare(self, source: DatasetSource) -> GroupedFiles:
        """Build the manifest of a single source."""
        self.logger.info(f"{source.name} - Preparing {source.language_pair.abbreviation} corpora.")
        files = self.builder.build(source)
        self.logger.info(f"{source.name} - Prepared {len(files.all_corpora())} corpora.")
        return files

    def run(self, names: Optional[List[str]] = None) -> Dict[str, GroupedFiles]:
        """
        Execute the complete pipeline.

        Args:
            names: Dataset entries to prepare, or None for all of them

        Returns:
            Mapping from dataset entry name to its manifest

        Raises:
            Exception: If any fatal error occurs
        """
        self.logger.start_run()
        self.logger.info("Starting corpus preparation pipeline")

        try:
            sources = self.create_sources(names)
            manifests = {name: self.prepare(source) for name, source in sources.items()}
        except Exception as e:
            self.logger.finish_run()
            self.logger.error(f"Pipeline failed: {e}")
            raise

        self.logger.finish_run()
        if self.logger.failures:
            self.logger.warning(
                f"{len(self.logger.failures)} tool failures were absorbed; affected outputs are unprocessed copies"
            )
            self.logger.generate_failure_report()
        self.logger.info("Pipeline completed successfully")
        return manifests

    def validate_configuration(self) -> Dict[str, Any]:
        """
        Validate the pipeline configuration and dataset entries.

        Returns:
            Dictionary with validation results
        """
        validation_results = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        # Check dataset configuration file
        if not Path(self.config.datasets_yaml_path).exists():
            validation_results["errors"].append(
                f"Dataset configuration file not found: {self.config.datasets_yaml_path}"
            )
            validation_results["valid"] = False
        else:
            try:
                sources = self.create_sources()
                if not sources:
                    validation_results["warnings"].append("No datasets are configured")
            except Exception as e:
                validation_results["errors"].append(f"Invalid dataset configuration: {e}")
                validation_results["valid"] = False

        # Check working directory permissions
        try:
            working_dir = Path(self.config.working_dir)
            working_dir.mkdir(parents=True, exist_ok=True)
            test_file = working_dir / "test_write_permissions.tmp"
            test_file.write_text("test")
            test_file.unlink()
        except OSError as e:
            validation_results["errors"].append(f"Cannot write to working directory {self.config.working_dir}: {e}")
            validation_results["valid"] = False

        if self.config.toolkit_dir and not Path(self.config.toolkit_dir).exists():
            validation_results["warnings"].append(
                f"Toolkit directory {self.config.toolkit_dir} does not exist and will be cloned when needed"
            )

        return validation_results

    def get_processing_stats(self) -> Dict[str, Any]:
        """
        Get comprehensive processing statistics.

        Returns:
            Dictionary with processing statistics
        """
        stats = self.logger.stats.to_dict()
        stats["failures"] = [failure.to_dict() for failure in self.logger.failures]

        start_time, end_time = self.logger.stats.start_time, self.logger.stats.end_time
        if start_time and end_time:
            duration = end_time - start_time
            stats["duration_seconds"] = duration.total_seconds()
            stats["duration_formatted"] = str(duration)

        return stats


def create_default_config() -> PipelineConfig:
    """
    Create a default pipeline configuration.

    Returns:
        PipelineConfig with default values
    """
    return PipelineConfig()


def create_config_from_dict(config_dict: Dict[str, Any]) -> PipelineConfig:
    """
    Create a pipeline configuration from a dictionary.

    Unknown keys are ignored with a warning.

    Args:
        config_dict: Dictionary with configuration values

    Returns:
        PipelineConfig instance
    """
    known = {f.name for f in fields(PipelineConfig)}
    unknown = sorted(set(config_dict) - known)
    if unknown:
        logging.getLogger(__name__).warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

    values = {key: value for key, value in config_dict.items() if key in known}
    if values.get("train_length_bounds") is not None:
        values["train_length_bounds"] = tuple(values["train_length_bounds"])
    return PipelineConfig(**values)
