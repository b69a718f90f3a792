"""
Dataset configuration loader.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..models.core import DatasetConfig
from ..sources import DatasetSource, create_dataset_source


logger = logging.getLogger(__name__)


class DatasetLoader:
    """Loads dataset configurations and turns them into dataset sources."""

    def __init__(self):
        """Initialize the dataset loader."""
        self.loaded_configs: Dict[str, DatasetConfig] = {}

    def load_config(self, yaml_path: str) -> Dict[str, DatasetConfig]:
        """
        Load dataset configurations from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file

        Returns:
            Dictionary mapping dataset entry names to their configurations

        Raises:
            FileNotFoundError: If the YAML file doesn't exist
            yaml.YAMLError: If the YAML file is malformed
            ValueError: If the configuration is invalid
        """
        if not os.path.exists(yaml_path):
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML file {yaml_path}: {e}")

        if not config_data:
            logger.warning(f"Empty configuration file: {yaml_path}")
            return {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file {yaml_path} must contain a mapping of datasets")

        # Accept both a bare mapping and one nested under a top-level 'datasets' key.
        if set(config_data) == {"datasets"} and isinstance(config_data["datasets"], dict):
            config_data = config_data["datasets"]

        configs = {}
        for dataset_name, dataset_config in config_data.items():
            try:
                configs[dataset_name] = self._parse_entry(dataset_name, dataset_config)
                logger.info(f"Loaded configuration for dataset: {dataset_name}")
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Invalid configuration for dataset {dataset_name}: {e}")
                raise ValueError(f"Invalid configuration for dataset {dataset_name}: {e}")

        self.loaded_configs.update(configs)
        return configs

    @staticmethod
    def _parse_entry(dataset_name: str, entry: Dict[str, Any]) -> DatasetConfig:
        if not isinstance(entry, dict):
            raise ValueError("entry must be a mapping")

        return DatasetConfig(
            name=entry.get('name', dataset_name),
            kind=entry['kind'],
            source_language=str(entry['source_language']),
            target_language=str(entry['target_language']),
            base_url=entry.get('base_url'),
            files=_string_list(entry.get('files')),
            train=_string_list(entry.get('train')),
            dev=_string_list(entry.get('dev')),
            test=_string_list(entry.get('test')),
            vocabulary=entry.get('vocabulary'),
            supported_pairs=[_string_list(pair) for pair in entry.get('supported_pairs') or []]
        )

    def create_source(self, config: DatasetConfig, working_dir: Union[str, Path]) -> DatasetSource:
        """
        Create the dataset source for a configuration.

        Args:
            config: Dataset configuration
            working_dir: Root directory shared by all datasets

        Returns:
            The dataset source

        Raises:
            ValueError: If the language pair or a language is not supported
        """
        source = create_dataset_source(config, working_dir)
        logger.info(f"Created dataset source {source!r}")
        return source

    def create_sources(self, yaml_path: str, working_dir: Union[str, Path]) -> Dict[str, DatasetSource]:
        """Load a configuration file and create a source for every entry."""
        configs = self.load_config(yaml_path)
        return {name: self.create_source(config, working_dir) for name, config in configs.items()}

    def get_available_datasets(self) -> List[str]:
        """Get list of available dataset names."""
        return list(self.loaded_configs.keys())


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]
