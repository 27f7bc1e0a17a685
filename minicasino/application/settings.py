# minicasino/application/settings.py
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

from minicasino.infrastructure.config.loaders.yaml_loader import YamlConfigLoader
from minicasino.infrastructure.config.validators.schema_validator import SchemaValidator

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PACKAGE_DIR / "application" / "config" / "default_client.yaml"
SCHEMA_PATH = PACKAGE_DIR / "infrastructure" / "config" / "schemas" / "client_config.schema.json"
API_URL_ENV = "MINICASINO_API_URL"

logger = logging.getLogger("application.settings")


def load_client_config(config_path: Optional[str] = None,
                       environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load, validate and complete the client configuration.

    Args:
        config_path: YAML file to load; the packaged default when None
        environ: Environment mapping (``os.environ`` when None)

    Returns:
        Configuration with every schema default filled in

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    environ = os.environ if environ is None else environ
    loader = YamlConfigLoader(SchemaValidator())
    path = str(config_path or DEFAULT_CONFIG_PATH)
    config = loader.load_file(path, schema_path=str(SCHEMA_PATH))

    api_url = environ.get(API_URL_ENV)
    if api_url:
        logger.debug(f"{API_URL_ENV} overrides api.base_url")
        config["api"]["base_url"] = api_url
    return config
