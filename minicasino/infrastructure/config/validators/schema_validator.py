# minicasino/infrastructure/config/validators/schema_validator.py
import copy
import logging
from typing import Dict, Any, Tuple, List

import jsonschema


class SchemaValidator:
    """
    Validates configuration data against JSON schemas.
    """
    def __init__(self):
        """Initialize the schema validator."""
        self.logger = logging.getLogger("infrastructure.config.validator")

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate a configuration against a JSON schema.

        Args:
            config: The configuration dictionary to validate
            schema: The JSON schema to validate against

        Returns:
            Tuple of (is_valid, error_messages)
        """
        try:
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
        except jsonschema.exceptions.SchemaError as e:
            self.logger.error(f"Invalid schema: {e.message}")
            return False, [f"Schema error: {e.message}"]

        errors = []
        for error in sorted(validator_cls(schema).iter_errors(config), key=lambda e: list(e.path)):
            error_path = '.'.join(str(p) for p in error.path) if error.path else 'root'
            errors.append(f"At {error_path}: {error.message}")

        for message in errors:
            self.logger.error(f"Schema validation error: {message}")
        return not errors, errors

    def validate_with_defaults(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str], Dict[str, Any]]:
        """
        Validate a configuration and fill in default values from the schema.

        Args:
            config: The configuration dictionary to validate
            schema: The JSON schema to validate against

        Returns:
            Tuple of (is_valid, error_messages, updated_config)
        """
        updated_config = copy.deepcopy(config)
        self._apply_defaults(updated_config, schema)

        is_valid, errors = self.validate(updated_config, schema)
        return is_valid, errors, updated_config

    def _apply_defaults(self, config: Dict[str, Any], schema: Dict[str, Any], path: str = ""):
        """
        Recursively apply default values from schema to config.

        Nested objects that declare properties are created when missing so
        their own defaults can be filled in.

        Args:
            config: Configuration (sub)dictionary to update in place
            schema: Schema for that (sub)dictionary
            path: Dotted path of ``config`` (for logging)
        """
        if not isinstance(schema, dict) or not isinstance(config, dict):
            return

        for prop_name, prop_schema in schema.get('properties', {}).items():
            if not isinstance(prop_schema, dict):
                continue
            prop_path = f"{path}.{prop_name}" if path else prop_name

            if prop_name not in config:
                if 'default' in prop_schema:
                    config[prop_name] = copy.deepcopy(prop_schema['default'])
                    self.logger.debug(f"Applied default value for {prop_path}: {prop_schema['default']}")
                elif prop_schema.get('type') == 'object' and 'properties' in prop_schema:
                    config[prop_name] = {}

            if prop_schema.get('type') == 'object':
                self._apply_defaults(config.get(prop_name), prop_schema, prop_path)
