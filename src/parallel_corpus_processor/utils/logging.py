"""
Logging and error tracking utilities for the parallel corpus processor.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class ToolFailure:
    """Represents a soft failure of an external tool."""
    stage: str
    tool: str
    exit_code: int
    input_path: str
    output_path: str
    error_message: str = ""
    fallback_applied: bool = True
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "stage": self.stage,
            "tool": self.tool,
            "exit_code": self.exit_code,
            "input_path": self.input_path,
            "output_path": self.output_path,
            "error_message": self.error_message,
            "fallback_applied": self.fallback_applied,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class PipelineStats:
    """Counts of the work actually performed during a run."""
    downloads: int = 0
    bytes_downloaded: int = 0
    archives_extracted: int = 0
    tool_invocations: int = 0
    tool_failures: int = 0
    fallback_copies: int = 0
    vocabularies_built: int = 0
    corpora_cleaned: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def performed_work(self) -> bool:
        """True if any network or subprocess work happened."""
        return self.downloads > 0 or self.tool_invocations > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "downloads": self.downloads,
            "bytes_downloaded": self.bytes_downloaded,
            "archives_extracted": self.archives_extracted,
            "tool_invocations": self.tool_invocations,
            "tool_failures": self.tool_failures,
            "fallback_copies": self.fallback_copies,
            "vocabularies_built": self.vocabularies_built,
            "corpora_cleaned": self.corpora_cleaned,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None
        }


@dataclass
class FailureReport:
    """Report of all soft failures absorbed during a run."""
    failures: List[ToolFailure] = field(default_factory=list)
    stats: Optional[PipelineStats] = None
    generation_timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "failures": [failure.to_dict() for failure in self.failures],
            "stats": self.stats.to_dict() if self.stats else None,
            "generation_timestamp": self.generation_timestamp.isoformat(),
            "summary": self.get_summary()
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the failures."""
        if not self.failures:
            return {"total_failures": 0}

        failures_by_stage = {}
        failures_by_tool = {}

        for failure in self.failures:
            failures_by_stage[failure.stage] = failures_by_stage.get(failure.stage, 0) + 1
            failures_by_tool[failure.tool] = failures_by_tool.get(failure.tool, 0) + 1

        return {
            "total_failures": len(self.failures),
            "failures_by_stage": failures_by_stage,
            "failures_by_tool": failures_by_tool,
            "degraded_outputs": [f.output_path for f in self.failures if f.fallback_applied]
        }


class PipelineLogger:
    """
    Observer handle passed to every pipeline stage.

    Wraps a standard ``logging.Logger`` and keeps per-run statistics and soft
    failures, so tests can capture or inspect what a stage did without relying
    on global logging state.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, log_dir: Optional[str] = None):
        """Initialize the pipeline logger.

        Args:
            logger: Logger to write to. Defaults to the package logger.
            log_dir: Directory for failure reports. Reports are only kept in memory if not set.
        """
        self.logger = logger or logging.getLogger("parallel_corpus_processor")
        self.log_dir = Path(log_dir) if log_dir else None

        self.failures: List[ToolFailure] = []
        self.stats = PipelineStats()

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def start_run(self) -> None:
        """Mark the start of a pipeline run."""
        self.stats.start_time = datetime.now()
        self.stats.end_time = None

    def finish_run(self) -> None:
        """Mark the end of a pipeline run."""
        self.stats.end_time = datetime.now()

    def record_download(self, url: str, num_bytes: int) -> None:
        """Record a completed download."""
        self.stats.downloads += 1
        self.stats.bytes_downloaded += num_bytes
        self.logger.debug(f"Recorded download of {num_bytes} bytes from '{url}'")

    def record_extraction(self, archive: Path) -> None:
        """Record an extracted archive."""
        self.stats.archives_extracted += 1
        self.logger.debug(f"Recorded extraction of '{archive}'")

    def record_tool_invocation(self, tool: str) -> None:
        """Record that an external tool was run."""
        self.stats.tool_invocations += 1
        self.logger.debug(f"Running external tool: {tool}")

    def record_vocabulary(self, path: Path) -> None:
        """Record a derived vocabulary file."""
        self.stats.vocabularies_built += 1
        self.logger.debug(f"Recorded vocabulary '{path}'")

    def record_cleaning(self, source_file: Path, target_file: Path) -> None:
        """Record a successfully cleaned corpus pair."""
        self.stats.corpora_cleaned += 1
        self.logger.debug(f"Recorded cleaned pair '{source_file}', '{target_file}'")

    def log_tool_failure(
        self,
        stage: str,
        tool: str,
        exit_code: int,
        input_path: Path,
        output_path: Path,
        error_message: str = "",
        fallback_applied: bool = True
    ) -> ToolFailure:
        """Log a non-zero exit of an external tool.

        Args:
            stage: Pipeline stage that invoked the tool
            tool: Name of the tool
            exit_code: Exit status reported by the tool
            input_path: File the tool was run on
            output_path: File the tool was expected to produce
            error_message: Captured error output, if any
            fallback_applied: Whether the input was copied verbatim to the output path

        Returns:
            The recorded failure
        """
        failure = ToolFailure(
            stage=stage,
            tool=tool,
            exit_code=exit_code,
            input_path=str(input_path),
            output_path=str(output_path),
            error_message=error_message.strip(),
            fallback_applied=fallback_applied
        )
        self.failures.append(failure)
        self.stats.tool_failures += 1

        if fallback_applied:
            self.stats.fallback_copies += 1
            self.logger.warning(
                f"{tool} exited with status {exit_code} during {stage}; "
                f"copied '{input_path}' verbatim to '{output_path}' (degraded output)"
            )
        else:
            self.logger.error(f"{tool} exited with status {exit_code} during {stage} of '{input_path}'")

        if failure.error_message:
            self.logger.debug(f"{tool} error output: {failure.error_message}")

        return failure

    def generate_failure_report(self) -> FailureReport:
        """Generate a report of all soft failures.

        Returns:
            FailureReport containing all failures and statistics
        """
        report = FailureReport(
            failures=self.failures.copy(),
            stats=self.stats
        )

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            report_file = self.log_dir / f"failure_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
            with open(report_file, 'w') as f:
                json.dump(report.to_dict(), f, indent=2)

            self.logger.info(f"Failure report generated: {report_file}")

        return report


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs") -> None:
    """
    Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files, or None to log to the console only
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = None

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"parallel_corpus_processor_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # Set specific loggers to appropriate levels
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    if log_file:
        logger.info(f"Logging initialized. Log file: {log_file}")
