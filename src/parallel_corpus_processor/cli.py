"""
Command Line Interface for the Parallel Corpus Processor.

This module provides a CLI for downloading, normalizing and assembling
bilingual parallel corpora described in a datasets configuration file.
"""
import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from . import __version__
from .loaders.dataset_loader import DatasetLoader
from .models.core import DatasetKind, GroupedFiles, ToolFailurePolicy
from .models.languages import ALL_LANGUAGES
from .pipeline import CorpusPipeline, PipelineConfig
from .sources import SUPPORTED_PAIRS


# Initialize rich console
console = Console()


class ProgressTracker:
    """Tracks and displays per-dataset progress."""

    def __init__(self):
        self.progress = None
        self.task_id = None

    def start(self, total_steps: int):
        """Start progress tracking."""
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console
        )
        self.progress.start()
        self.task_id = self.progress.add_task("Initializing...", total=total_steps)

    def update(self, description: str, advance: int = 1):
        """Update progress."""
        if self.progress and self.task_id is not None:
            self.progress.update(self.task_id, description=description, advance=advance)

    def stop(self):
        """Stop progress tracking."""
        if self.progress:
            self.progress.stop()


def setup_cli_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Setup logging for CLI with rich formatting."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)]
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def display_config_summary(config: PipelineConfig):
    """Display configuration summary in a table."""
    table = Table(title="Pipeline Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    bounds = config.train_length_bounds
    table.add_row("Dataset Config", config.datasets_yaml_path)
    table.add_row("Working Directory", config.working_dir)
    table.add_row("Toolkit Directory", config.toolkit_dir or "<downloads>/moses")
    table.add_row("Tokenize", "yes" if config.tokenize else "no")
    table.add_row("Train Length Bounds", f"{bounds[0]}-{bounds[1]}" if bounds else "none")
    table.add_row("Vocabulary Size Threshold", str(config.vocab_size_threshold))
    table.add_row("Vocabulary Count Threshold", str(config.vocab_count_threshold))
    table.add_row("On Tool Failure", config.on_tool_failure.value)

    console.print(table)


def display_manifest(name: str, files: GroupedFiles):
    """Display the manifest of one dataset."""
    table = Table(title=f"Manifest: {name}")
    table.add_column("Role", style="cyan")
    table.add_column("Tag", style="magenta")
    table.add_column("Source File", style="green")
    table.add_column("Target File", style="yellow")

    for role, corpora in (("train", files.train_corpora), ("dev", files.dev_corpora), ("test", files.test_corpora)):
        for entry in corpora:
            table.add_row(role, entry.tag, str(entry.source_file), str(entry.target_file))

    if files.vocabularies:
        table.add_row("vocab", "", str(files.vocabularies[0]), str(files.vocabularies[1]))

    console.print(table)


def display_processing_stats(stats: Dict[str, Any]):
    """Display processing statistics."""
    table = Table(title="Processing Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Downloads", str(stats.get("downloads", 0)))
    table.add_row("Bytes Downloaded", str(stats.get("bytes_downloaded", 0)))
    table.add_row("Archives Extracted", str(stats.get("archives_extracted", 0)))
    table.add_row("Tool Invocations", str(stats.get("tool_invocations", 0)))
    table.add_row("Vocabularies Built", str(stats.get("vocabularies_built", 0)))
    table.add_row("Corpora Cleaned", str(stats.get("corpora_cleaned", 0)))

    if "duration_formatted" in stats:
        table.add_row("Processing Time", stats["duration_formatted"])

    failure_count = len(stats.get("failures", []))
    failure_style = "yellow" if failure_count > 0 else "green"
    table.add_row("Tool Failures", f"[{failure_style}]{failure_count}[/{failure_style}]")

    console.print(table)

    if stats.get("failures"):
        console.print("\n[yellow]Degraded outputs (verbatim copies of their inputs):[/yellow]")
        for i, failure in enumerate(stats["failures"], 1):
            console.print(f"  {i}. {failure['output_path']} ({failure['tool']}, exit {failure['exit_code']})")


@click.group()
@click.version_option(version=__version__)
def cli():
    """Parallel Corpus Processor CLI - Preparation of bilingual corpora for machine translation."""
    pass


@cli.command()
@click.option(
    "--datasets-config", "-d",
    default="datasets.yaml",
    help="Path to datasets configuration YAML file",
    type=click.Path(exists=True)
)
@click.option(
    "--dataset", "datasets",
    multiple=True,
    help="Dataset entry to prepare (repeatable, defaults to all)"
)
@click.option(
    "--working-dir", "-w",
    default="data",
    help="Root directory for downloads and derived files",
    type=click.Path()
)
@click.option(
    "--toolkit-dir",
    envvar="MOSES_DIR",
    help="Moses checkout to use (or set MOSES_DIR env var)",
    type=click.Path()
)
@click.option(
    "--tokenize/--no-tokenize",
    default=False,
    help="Tokenize corpus files"
)
@click.option(
    "--min-length",
    help="Minimum train sentence length, enables cleaning together with --max-length",
    type=click.IntRange(0)
)
@click.option(
    "--max-length",
    help="Maximum train sentence length, enables cleaning together with --min-length",
    type=click.IntRange(0)
)
@click.option(
    "--vocab-size",
    default=50000,
    help="Number of most frequent tokens kept in derived vocabularies",
    type=click.IntRange(1)
)
@click.option(
    "--vocab-count",
    default=-1,
    help="Keep tokens seen at least this many times instead (overrides --vocab-size when positive)",
    type=int
)
@click.option(
    "--on-tool-failure",
    default=ToolFailurePolicy.COPY_THROUGH.value,
    help="What to do when an external tool fails",
    type=click.Choice([e.value for e in ToolFailurePolicy])
)
@click.option(
    "--retry-fallbacks",
    is_flag=True,
    help="Retry tools whose earlier failure left a verbatim copy"
)
@click.option(
    "--log-file",
    help="Path to log file (optional)",
    type=click.Path()
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging"
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Validate configuration without processing"
)
@click.option(
    "--manifest-file",
    help="Save the manifests to a JSON file",
    type=click.Path()
)
@click.option(
    "--stats-file",
    help="Save processing statistics to a JSON file",
    type=click.Path()
)
def prepare(
    datasets_config: str,
    datasets: Tuple[str, ...],
    working_dir: str,
    toolkit_dir: Optional[str],
    tokenize: bool,
    min_length: Optional[int],
    max_length: Optional[int],
    vocab_size: int,
    vocab_count: int,
    on_tool_failure: str,
    retry_fallbacks: bool,
    log_file: Optional[str],
    verbose: bool,
    dry_run: bool,
    manifest_file: Optional[str],
    stats_file: Optional[str]
):
    """Download and prepare the configured parallel corpora."""

    setup_cli_logging(verbose, log_file)

    console.print(Panel.fit(
        "[bold blue]Parallel Corpus Processor[/bold blue]\n"
        "Download, normalize and assemble parallel corpora",
        border_style="blue"
    ))

    if (min_length is None) != (max_length is None):
        console.print("[red]Error:[/red] --min-length and --max-length must be given together")
        sys.exit(1)

    try:
        config = PipelineConfig(
            working_dir=working_dir,
            datasets_yaml_path=datasets_config,
            toolkit_dir=toolkit_dir,
            tokenize=tokenize,
            train_length_bounds=(min_length, max_length) if min_length is not None else None,
            vocab_size_threshold=vocab_size,
            vocab_count_threshold=vocab_count,
            on_tool_failure=on_tool_failure,
            retry_fallbacks=retry_fallbacks
        )
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    display_config_summary(config)

    pipeline = CorpusPipeline(config)

    console.print("\n[yellow]Validating configuration...[/yellow]")
    validation_results = pipeline.validate_configuration()

    if not validation_results["valid"]:
        console.print("[red]Configuration validation failed:[/red]")
        for error in validation_results["errors"]:
            console.print(f"  • {error}")
        sys.exit(1)

    if validation_results["warnings"]:
        console.print("[yellow]Warnings:[/yellow]")
        for warning in validation_results["warnings"]:
            console.print(f"  • {warning}")

    console.print("[green]✓ Configuration validated successfully[/green]")

    if dry_run:
        console.print("\n[blue]Dry run completed - configuration is valid[/blue]")
        return

    progress_tracker = ProgressTracker()
    progress_tracker.start(total_steps=1)

    try:
        progress_tracker.update("Preparing datasets...", advance=0)
        manifests = pipeline.run(list(datasets) or None)
        progress_tracker.update("Processing completed!")
        progress_tracker.stop()

    except KeyboardInterrupt:
        progress_tracker.stop()
        console.print("\n[yellow]Processing interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        progress_tracker.stop()
        console.print(f"\n[red]Processing failed:[/red] {e}")
        sys.exit(1)

    console.print("\n[green]✓ Processing completed successfully![/green]")

    for name, files in manifests.items():
        display_manifest(name, files)

    stats = pipeline.get_processing_stats()
    display_processing_stats(stats)

    if manifest_file:
        with open(manifest_file, 'w') as f:
            json.dump({name: files.to_dict() for name, files in manifests.items()}, f, indent=2)
        console.print(f"\n[blue]Manifests saved to {manifest_file}[/blue]")

    if stats_file:
        with open(stats_file, 'w') as f:
            json.dump(stats, f, indent=2, default=str)
        console.print(f"\n[blue]Statistics saved to {stats_file}[/blue]")


@cli.command()
@click.option(
    "--datasets-config", "-d",
    default="datasets.yaml",
    help="Path to datasets configuration YAML file",
    type=click.Path(exists=True)
)
@click.option(
    "--working-dir", "-w",
    default="data",
    help="Root directory for downloads and derived files",
    type=click.Path()
)
def validate(datasets_config: str, working_dir: str):
    """Validate datasets configuration file."""

    console.print(Panel.fit(
        "[bold blue]Configuration Validator[/bold blue]\n"
        "Validate datasets configuration",
        border_style="blue"
    ))

    try:
        console.print(f"[yellow]Validating {datasets_config}...[/yellow]")

        loader = DatasetLoader()
        configs = loader.load_config(datasets_config)

        console.print(f"[green]✓ Successfully loaded {len(configs)} dataset configurations[/green]")

        table = Table(title="Dataset Configurations")
        table.add_column("Dataset", style="cyan", no_wrap=True)
        table.add_column("Kind", style="green")
        table.add_column("Language Pair", style="yellow")
        table.add_column("Download Directory", style="magenta")

        for name, dataset_config in configs.items():
            source = loader.create_source(dataset_config, working_dir)
            table.add_row(name, dataset_config.kind, source.language_pair.abbreviation, str(source.download_dir))

        console.print(table)

    except Exception as e:
        console.print(f"[red]Validation failed:[/red] {e}")
        sys.exit(1)


@cli.command()
@click.option(
    "--kind", "-k",
    help="Show the number of supported pairs of a dataset kind",
    type=click.Choice([kind.value for kind in SUPPORTED_PAIRS])
)
def languages(kind: Optional[str]):
    """List known languages."""

    if kind:
        registry = SUPPORTED_PAIRS[DatasetKind(kind)]
        console.print(f"[blue]{kind} supports {len(registry)} language pairs[/blue]")
        if not registry.is_combinatorial:
            for source, target in registry.pairs():
                console.print(f"  • {source.abbreviation}-{target.abbreviation}")
        return

    table = Table(title="Known Languages")
    table.add_column("Abbreviation", style="cyan")
    table.add_column("Language", style="green")

    for language in ALL_LANGUAGES:
        table.add_row(language.abbreviation, language.name)

    console.print(table)


@cli.command()
def version():
    """Show version information."""
    console.print(f"[blue]Parallel Corpus Processor v{__version__}[/blue]")


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
