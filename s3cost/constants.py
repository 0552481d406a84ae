"""
Constants for the S3 cost collector.

This module defines all magic strings and numbers used across the codebase
to prevent typos, ensure consistency, and make maintenance easier.
"""

# =============================================================================
# Byte/Size Conversion Constants
# =============================================================================

BYTES_PER_GB = 1024 ** 3

# Sizes below this are treated as zero in the per-class detail view
SIZE_DISPLAY_EPSILON_GB = 1e-9

# =============================================================================
# Time Constants
# =============================================================================

SECONDS_PER_DAY = 86400

# =============================================================================
# Default Configuration Values
# =============================================================================

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "ap-northeast-1"  # Tokyo: query fallback and ListBuckets entry point
DEFAULT_MAX_WORKERS = 20
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_LOG_LEVEL = "WARNING"

# Empty string marks a bucket whose region could not be resolved
UNKNOWN_REGION = ""

# =============================================================================
# CloudWatch S3 Metrics
# =============================================================================

S3_METRIC_NAMESPACE = "AWS/S3"
METRIC_NUMBER_OF_OBJECTS = "NumberOfObjects"
METRIC_BUCKET_SIZE_BYTES = "BucketSizeBytes"
STORAGE_TYPE_ALL = "AllStorageTypes"
METRIC_STATISTIC = "Average"
METRIC_PERIOD_SECONDS = SECONDS_PER_DAY  # S3 storage metrics are published daily

# Trailing windows; S3 publishes storage metrics once a day, sometimes late
OBJECT_COUNT_WINDOW_DAYS = 2
BUCKET_SIZE_WINDOW_DAYS = 3

# =============================================================================
# S3 Region Lookup
# =============================================================================

# GetBucketLocation returns None for us-east-1 and the legacy "EU" alias
LOCATION_CONSTRAINT_ALIASES = {
    None: "us-east-1",
    "": "us-east-1",
    "EU": "eu-west-1",
}

BUCKET_NOT_FOUND_CODES = {"NoSuchBucket", "NotFound", "404"}

# =============================================================================
# Output
# =============================================================================

REPORT_HEADER = " ObjectCount      GigaBytes    Charges-USD  BucketName (Region)"
CURRENCY = "USD"
