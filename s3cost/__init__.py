"""
S3 cost collector shared library.
"""
from . import constants
from .aggregator import Aggregator, ResultSink
from .collector import UsageCollector
from .config import ConfigError, RunConfig, load_config
from .constants import (
    BYTES_PER_GB,
    DEFAULT_MAX_WORKERS,
    DEFAULT_REGION,
    UNKNOWN_REGION,
)
from .models import BucketUsage, Report
from .output import ConsoleSink, format_bucket_lines, print_run_summary, write_report
from .pricing import TOKYO_STORAGE_PRICES, PriceTable
from .sources import (
    BucketLocator,
    CloudWatchMetricSource,
    MetricSource,
    S3BucketLocator,
    get_session,
)
from .utils import bytes_to_gb, generate_run_id, get_timestamp, setup_logging

__all__ = [
    # Constants
    'constants',
    'BYTES_PER_GB',
    'DEFAULT_MAX_WORKERS',
    'DEFAULT_REGION',
    'UNKNOWN_REGION',
    # Pricing and models
    'PriceTable',
    'TOKYO_STORAGE_PRICES',
    'BucketUsage',
    'Report',
    # Collaborators
    'BucketLocator',
    'MetricSource',
    'S3BucketLocator',
    'CloudWatchMetricSource',
    'get_session',
    # Collection
    'UsageCollector',
    'Aggregator',
    'ResultSink',
    # Config
    'RunConfig',
    'ConfigError',
    'load_config',
    # Output
    'ConsoleSink',
    'format_bucket_lines',
    'print_run_summary',
    'write_report',
    # Utils
    'bytes_to_gb',
    'generate_run_id',
    'get_timestamp',
    'setup_logging',
]
