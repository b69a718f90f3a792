#!/usr/bin/env python3
"""
Main entry point for the Parallel Corpus Processor.
"""
import os
import sys
import logging
from pathlib import Path
from dotenv import load_dotenv

from parallel_corpus_processor.pipeline import CorpusPipeline, create_config_from_dict
from parallel_corpus_processor.utils.logging import setup_logging


def _length_bounds():
    """Read train sentence length bounds from the environment, if both are set."""
    min_length = os.getenv("TRAIN_MIN_LENGTH")
    max_length = os.getenv("TRAIN_MAX_LENGTH")
    if min_length is None or max_length is None:
        return None
    return int(min_length), int(max_length)


def main():
    """Main entry point for the parallel corpus processor."""
    # Load environment variables
    load_dotenv()

    # Setup logging
    setup_logging(log_level=os.getenv("LOG_LEVEL", "INFO"), log_dir=os.getenv("LOG_DIR", "logs"))
    logger = logging.getLogger(__name__)

    try:
        config = create_config_from_dict({
            "working_dir": os.getenv("WORKING_DIR", "data"),
            "datasets_yaml_path": os.getenv("DATASETS_CONFIG", "datasets.yaml"),
            "toolkit_dir": os.getenv("MOSES_DIR"),
            "tokenize": os.getenv("TOKENIZE", "false").lower() in ("1", "true", "yes"),
            "train_length_bounds": _length_bounds(),
            "log_dir": os.getenv("LOG_DIR", "logs"),
        })

        pipeline = CorpusPipeline(config)

        # Validate configuration
        logger.info("Validating configuration...")
        validation_results = pipeline.validate_configuration()

        if not validation_results["valid"]:
            logger.error("Configuration validation failed:")
            for error in validation_results["errors"]:
                logger.error(f"  - {error}")
            return 1

        if validation_results["warnings"]:
            logger.warning("Configuration warnings:")
            for warning in validation_results["warnings"]:
                logger.warning(f"  - {warning}")

        # Run the pipeline
        logger.info("Starting parallel corpus preparation pipeline...")
        manifests = pipeline.run()

        # Print final statistics
        stats = pipeline.get_processing_stats()
        logger.info("Pipeline completed successfully!")
        for name, files in manifests.items():
            logger.info(f"  - {name}: {len(files.all_corpora())} corpora, vocabularies {files.vocabularies}")
        logger.info(f"Processing statistics:")
        logger.info(f"  - Downloads: {stats['downloads']} ({stats['bytes_downloaded']} bytes)")
        logger.info(f"  - Archives extracted: {stats['archives_extracted']}")
        logger.info(f"  - Tool invocations: {stats['tool_invocations']}")
        logger.info(f"  - Vocabularies built: {stats['vocabularies_built']}")
        logger.info(f"  - Total processing time: {stats.get('duration_formatted', 'N/A')}")

        if stats["failures"]:
            logger.warning(f"{len(stats['failures'])} outputs are unprocessed copies of their inputs")

        return 0

    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Pipeline failed with error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
