# minicasino/infrastructure/logging/log_manager.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional, Union


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogManager:
    """
    Centralized logging configuration manager.
    """
    def __init__(self):
        """Initialize the log manager."""
        self.root_logger = logging.getLogger()
        self.loggers = {}  # name -> logger
        self.handlers = {}  # name -> handler
        self.initialized = False

    def initialize(self, config: Dict[str, Any], force: bool = False):
        """
        Initialize logging system based on configuration.

        Args:
            config: Logging configuration dictionary
            force: Re-apply configuration even if already initialized
        """
        if self.initialized and not force:
            return

        log_level = self._get_log_level(config.get('level', 'INFO'))
        log_format = config.get('format', DEFAULT_FORMAT)
        log_date_format = config.get('date_format', '%Y-%m-%d %H:%M:%S')
        console_enabled = config.get('console', True)
        file_enabled = config.get('file', {}).get('enabled', False)

        self.root_logger.setLevel(log_level)

        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
        self.handlers = {}

        formatter = logging.Formatter(log_format, log_date_format)

        if console_enabled:
            console_level = self._get_log_level(config.get('console_level', log_level))
            # stderr keeps log lines out of the CLI's own output
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(console_level)
            console_handler.setFormatter(formatter)
            self.root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if file_enabled:
            file_config = config.get('file', {})
            file_path = os.path.expanduser(file_config.get('path', 'logs/minicasino.log'))
            file_level = self._get_log_level(file_config.get('level', log_level))
            max_bytes = file_config.get('max_bytes', 5 * 1024 * 1024)  # 5 MB
            backup_count = file_config.get('backup_count', 3)

            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=max_bytes,
                backupCount=backup_count
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            self.root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

        # Parents first so a child's level is applied after its parent's
        logger_names = sorted(config.get('loggers', {}).keys(), key=lambda x: len(x.split('.')))
        for logger_name in logger_names:
            logger_config = config['loggers'][logger_name] or {}
            logger_level = self._get_log_level(logger_config.get('level', log_level))

            logger = logging.getLogger(logger_name)
            logger.setLevel(logger_level)
            logger.propagate = logger_config.get('propagate', True)
            self.loggers[logger_name] = logger

            self.root_logger.debug(
                f"Configured logger '{logger_name}' with level={logging.getLevelName(logger_level)}, "
                f"propagate={logger.propagate}"
            )

        self.root_logger.debug("Logging system initialized")
        self.initialized = True

    def shutdown(self):
        """Detach and close every handler this manager installed."""
        for handler in self.handlers.values():
            self.root_logger.removeHandler(handler)
            handler.close()
        self.handlers = {}
        self.initialized = False

    def _get_log_level(self, level_name: Union[str, int]) -> int:
        """
        Convert a log level name to its numeric value.

        Args:
            level_name: Level name (DEBUG, INFO, etc.) or numeric value

        Returns:
            Numeric log level
        """
        if isinstance(level_name, int):
            return level_name

        level_map = {
            'CRITICAL': logging.CRITICAL,
            'FATAL': logging.FATAL,
            'ERROR': logging.ERROR,
            'WARNING': logging.WARNING,
            'WARN': logging.WARN,
            'INFO': logging.INFO,
            'DEBUG': logging.DEBUG,
            'NOTSET': logging.NOTSET
        }

        return level_map.get(str(level_name).upper(), logging.INFO)


# Singleton instance
log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None) -> LogManager:
    """
    Initialize the logging system from the client configuration.

    Args:
        config: The ``logging`` section of the client configuration

    Returns:
        The shared LogManager
    """
    default_config = {
        'level': 'WARNING',
        'console': True,
        'file': {'enabled': False},
        'loggers': {
            'domain': {'level': 'INFO'},
            'infrastructure.http': {'level': 'WARNING'},
        }
    }

    if config is None:
        config = default_config

    log_manager.initialize(config, force=True)
    return log_manager
