"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = 'config.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'tumblr': {
        'consumer_key': None,
        'consumer_secret': None,
        'oauth_token': None,
        'oauth_token_secret': None
    },
    'export': {
        'strict_markdown': False,
        'reblog_attribution': 'first',
        'progress_bars': True,
        'max_workers': 4
    },
    'advanced': {
        'request_timeout': 30,
        'max_retries': 3,
        'retry_backoff_factor': 2.0,
        'rate_limit': 0.0,
        'page_size': 20
    },
    'logging': {
        'level': None,
        'file': None
    }
}

# Fallbacks consulted when a credential is left unset in the file.
CREDENTIAL_ENV_VARS = {
    'consumer_key': 'TUMBLR_CONSUMER_KEY',
    'consumer_secret': 'TUMBLR_CONSUMER_SECRET',
    'oauth_token': 'TUMBLR_OAUTH_TOKEN',
    'oauth_token_secret': 'TUMBLR_OAUTH_TOKEN_SECRET'
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH, required: bool = True) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values from the file are layered over the defaults. Credentials that
        are still unset afterwards are read from the TUMBLR_* environment
        variables.

        Args:
            config_path: Path to YAML configuration file
            required: Whether a missing file is an error; when False the
                defaults are used

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If a required config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            ValueError: If the file does not hold a mapping
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if os.path.exists(config_path):
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)

            if config_data is None:
                config_data = {}
            if not isinstance(config_data, dict):
                raise ValueError("Configuration file must contain a dictionary")

            config = cls._deep_merge(config, cls._substitute_env_vars_recursive(config_data))
        elif required:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        tumblr_config = config.setdefault('tumblr', {})
        for key, env_var in CREDENTIAL_ENV_VARS.items():
            value = tumblr_config.get(key)
            if not value or (isinstance(value, str) and '${' in value):
                tumblr_config[key] = os.getenv(env_var) or None

        return config

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        attribution = get_nested(config, 'export.reblog_attribution', 'first')
        if attribution not in ('first', 'entry'):
            raise ValueError("export.reblog_attribution must be 'first' or 'entry'")

        for field in ('export.strict_markdown', 'export.progress_bars'):
            if not isinstance(get_nested(config, field, False), bool):
                raise ValueError(f"{field} must be a boolean")

        max_workers = get_nested(config, 'export.max_workers', 4)
        if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
            raise ValueError("export.max_workers must be a positive integer")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

        rate_limit = get_nested(config, 'advanced.rate_limit', 0.0)
        if not isinstance(rate_limit, (int, float)) or rate_limit < 0:
            raise ValueError("advanced.rate_limit must be a non-negative number")

        page_size = get_nested(config, 'advanced.page_size', 20)
        if not isinstance(page_size, int) or not 1 <= page_size <= 20:
            raise ValueError("advanced.page_size must be an integer between 1 and 20")

    @classmethod
    def validate_credentials(cls, config: Dict[str, Any], needs_user_auth: bool = False) -> None:
        """
        Check that API credentials are present.

        Args:
            config: Configuration dictionary
            needs_user_auth: Whether OAuth user credentials are required too

        Raises:
            ValueError: If a required credential is missing
        """
        cls._validate_required_field(config, 'tumblr.consumer_key')
        if needs_user_auth:
            cls._validate_required_field(config, 'tumblr.consumer_secret')
            cls._validate_required_field(config, 'tumblr.oauth_token')
            cls._validate_required_field(config, 'tumblr.oauth_token_secret')

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)
        merged.setdefault('export', {})
        merged.setdefault('logging', {})

        if getattr(args, 'strict', None) is not None:
            merged['export']['strict_markdown'] = args.strict

        if getattr(args, 'reblog_attribution', None):
            merged['export']['reblog_attribution'] = args.reblog_attribution

        if getattr(args, 'progress', None) is not None:
            merged['export']['progress_bars'] = args.progress

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = cls._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "tumblr.consumer_key")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config
    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


__all__ = ['ConfigLoader', 'get_nested']
