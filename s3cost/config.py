"""
S3 Cost Collector - Configuration Management

Supports loading configuration from:
1. YAML config file (--config)
2. Environment variables (S3COST_*)
3. Command-line arguments (highest priority)

The merged result is frozen into a RunConfig that is built once at startup
and passed to the collectors; nothing reads configuration from globals.

Config file example:
```yaml
profile: billing-readonly
verbose: true
default_region: ap-northeast-1
max_workers: 20
log_level: WARNING
output: ./reports
buckets:
  - logs-bucket
  - ${ARCHIVE_BUCKET:-archive}
```
"""
import logging
import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PROFILE,
    DEFAULT_REGION,
)

logger = logging.getLogger(__name__)


# Default config file locations (checked in order)
DEFAULT_CONFIG_PATHS = [
    './s3cost-config.yaml',
    './s3cost-config.yml',
    '~/.s3cost/config.yaml',
    '~/.s3cost/config.yml',
]

# Mapping from config keys to env vars
ENV_VAR_MAPPING = {
    'profile': 'S3COST_PROFILE',
    'verbose': 'S3COST_VERBOSE',
    'default_region': 'S3COST_DEFAULT_REGION',
    'max_workers': 'S3COST_MAX_WORKERS',
    'log_level': 'S3COST_LOG_LEVEL',
    'output': 'S3COST_OUTPUT',
    'buckets': 'S3COST_BUCKETS',
}

LIST_KEYS = ('buckets',)
BOOL_KEYS = ('verbose',)
INT_KEYS = ('max_workers',)


class ConfigError(ValueError):
    """Raised when a configuration value is unusable."""


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings for one collection run."""
    profile: str = DEFAULT_PROFILE
    verbose: bool = False
    default_region: str = DEFAULT_REGION
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL
    output: Optional[str] = None
    buckets: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if not self.default_region:
            raise ConfigError("default_region must not be empty")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'RunConfig':
        """Build a RunConfig from a merged config dict, ignoring unknown keys."""
        values: Dict[str, Any] = {}
        for key in cls.__dataclass_fields__:
            if config.get(key) is not None:
                values[key] = config[key]

        for key in LIST_KEYS:
            if key in values:
                values[key] = tuple(_split_list(values[key]))
        for key in BOOL_KEYS:
            if key in values:
                values[key] = _to_bool(values[key])
        for key in INT_KEYS:
            if key in values:
                try:
                    values[key] = int(values[key])
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be an integer: {values[key]!r}") from e

        return cls(**values)


def _split_list(value: Any) -> list:
    """Accept a list or a comma-separated string."""
    if isinstance(value, str):
        return [v.strip() for v in value.split(',') if v.strip()]
    return [str(v) for v in value]


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes')
    return bool(value)


def _substitute_env_vars(value: Any) -> Any:
    """Substitute ${ENV_VAR} patterns in string values."""
    if isinstance(value, str):
        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default}
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replace(match):
            var_name = match.group(1)
            default = match.group(2) or ''
            return os.environ.get(var_name, default)

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    path = Path(config_path).expanduser()

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    file_mode = path.stat().st_mode
    if file_mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(f"Config file {config_path} has loose permissions. "
                       f"Consider: chmod 600 {config_path}")

    logger.info(f"Loading config from {path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    return _substitute_env_vars(config)


def find_default_config() -> Optional[str]:
    """Find a config file in default locations."""
    for path in DEFAULT_CONFIG_PATHS:
        expanded = Path(path).expanduser()
        if expanded.exists():
            return str(expanded)
    return None


def load_env_config() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    config: Dict[str, Any] = {}

    for config_key, env_var in ENV_VAR_MAPPING.items():
        value = os.environ.get(env_var)
        if value is not None:
            config[config_key] = value

    return config


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple config dicts. Later configs override earlier ones."""
    result: Dict[str, Any] = {}

    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value

    return result


def args_to_config(args) -> Dict[str, Any]:
    """Convert argparse args to config dict format. Unset flags are skipped."""
    arg_mapping = {
        'profile': 'profile',
        'verbose': 'verbose',
        'default_region': 'default_region',
        'workers': 'max_workers',
        'log_level': 'log_level',
        'output': 'output',
        'buckets': 'buckets',
    }

    config: Dict[str, Any] = {}
    for arg_name, config_key in arg_mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            config[config_key] = value
    return config


def load_config(args) -> RunConfig:
    """
    Load configuration from all sources and merge them.

    Priority (highest to lowest):
    1. CLI arguments
    2. Config file (--config or default location)
    3. Environment variables

    Returns a frozen RunConfig.
    """
    configs = []

    env_config = load_env_config()
    if env_config:
        logger.debug("Loaded config from environment variables")
        configs.append(env_config)

    config_path = getattr(args, 'config', None)
    if config_path:
        configs.append(load_config_file(config_path))
    else:
        default_config = find_default_config()
        if default_config:
            logger.info(f"Found default config file: {default_config}")
            configs.append(load_config_file(default_config))

    configs.append(args_to_config(args))

    return RunConfig.from_dict(merge_configs(*configs))


def generate_sample_config() -> str:
    """Generate a sample config file content."""
    return '''# S3 Cost Collector Configuration
#
# Environment variable substitution supported:
#   ${VAR_NAME}           - required env var
#   ${VAR_NAME:-default}  - env var with default value

# AWS shared credential profile
profile: default

# Print per-storage-class detail lines
verbose: false

# Region used for ListBuckets and for metric queries when a bucket's
# region cannot be resolved
default_region: ap-northeast-1

# Maximum number of buckets collected concurrently
max_workers: 20

# Logging level: DEBUG, INFO, WARNING, ERROR (logs go to stderr)
log_level: WARNING

# Directory for JSON/CSV export (omit to print only)
# output: ./reports

# Collect only these buckets instead of listing all of them
# buckets:
#   - my-logs-bucket
#   - my-archive-bucket
'''
