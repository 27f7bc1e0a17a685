# minicasino/infrastructure/config/loaders/yaml_loader.py
import json
import logging
import os
from typing import Dict, Any, Optional

import yaml

from minicasino.domain.exceptions import ConfigError


class FileNotFoundConfigError(ConfigError):
    """A configuration file or directory does not exist."""
    def __init__(self, path, message=None):
        self.path = path
        self.message = message or f"Configuration file or directory not found: {path}"
        super().__init__(self.message)


class YamlParseError(ConfigError):
    """A YAML file could not be parsed."""
    def __init__(self, file_path, yaml_error):
        self.file_path = file_path
        self.yaml_error = yaml_error
        self.message = f"Error parsing YAML file {file_path}: {str(yaml_error)}"
        super().__init__(self.message)


class SchemaValidationError(ConfigError):
    """A configuration does not satisfy its schema."""
    def __init__(self, file_path, errors):
        self.file_path = file_path
        self.errors = errors
        error_msg = "\n  - ".join([""] + errors)
        self.message = f"Configuration validation failed for {file_path}:{error_msg}"
        super().__init__(self.message)


class YamlConfigLoader:
    """
    Loads and validates YAML configuration files.

    Schema defaults are merged in before validation, so a partial file
    (or an empty one) yields a complete configuration.
    """
    def __init__(self, schema_validator=None):
        """
        Initialize the YAML configuration loader.

        Args:
            schema_validator: Optional validator used to check configurations
        """
        self.logger = logging.getLogger("infrastructure.config.loader")
        self.schema_validator = schema_validator

    def load_file(self, file_path: str, schema_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a single YAML file and optionally validate it.

        Args:
            file_path: Path of the YAML file
            schema_path: Optional path of a JSON schema to validate against

        Returns:
            The parsed configuration dictionary

        Raises:
            FileNotFoundConfigError: If the file does not exist
            YamlParseError: If the YAML cannot be parsed
            SchemaValidationError: If validation fails
        """
        if not os.path.isfile(file_path):
            self.logger.error(f"Configuration file not found: {file_path}")
            raise FileNotFoundConfigError(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            error = YamlParseError(file_path, e)
            self.logger.error(error.message)
            raise error from e

        self.logger.debug(f"Successfully loaded configuration from {file_path}")

        if config is None:
            self.logger.warning(f"Empty configuration file: {file_path}")
            config = {}

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {file_path}")

        if schema_path and self.schema_validator:
            schema = self._load_schema(schema_path)
            is_valid, errors, config = self.schema_validator.validate_with_defaults(config, schema)
            if not is_valid:
                raise SchemaValidationError(file_path, errors)
            self.logger.debug(f"Successfully validated configuration against schema: {schema_path}")

        return config

    def _load_schema(self, schema_path: str) -> Dict[str, Any]:
        """
        Load a JSON schema file.

        Args:
            schema_path: Path of the JSON schema

        Returns:
            The parsed schema

        Raises:
            FileNotFoundConfigError: If the schema file does not exist
            ConfigError: If the schema cannot be parsed
        """
        if not os.path.isfile(schema_path):
            error_msg = f"Schema file not found: {schema_path}"
            self.logger.error(error_msg)
            raise FileNotFoundConfigError(schema_path, error_msg)

        try:
            with open(schema_path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except json.JSONDecodeError as e:
            error_msg = f"Error parsing schema file {schema_path}: {str(e)}"
            self.logger.error(error_msg)
            raise ConfigError(error_msg) from e
