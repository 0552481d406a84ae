"""
Bucket enumeration, region lookup and CloudWatch metric retrieval.

The collector and aggregator only depend on the BucketLocator and
MetricSource protocols; the boto3-backed implementations below are what the
CLI wires in.
"""
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol

import boto3
from botocore.exceptions import ClientError

from .constants import (
    BUCKET_NOT_FOUND_CODES,
    BUCKET_SIZE_WINDOW_DAYS,
    DEFAULT_PROFILE,
    DEFAULT_REGION,
    DEFAULT_RETRY_ATTEMPTS,
    LOCATION_CONSTRAINT_ALIASES,
    METRIC_BUCKET_SIZE_BYTES,
    METRIC_NUMBER_OF_OBJECTS,
    METRIC_PERIOD_SECONDS,
    METRIC_STATISTIC,
    OBJECT_COUNT_WINDOW_DAYS,
    S3_METRIC_NAMESPACE,
    STORAGE_TYPE_ALL,
    UNKNOWN_REGION,
)
from .utils import retry_with_backoff

logger = logging.getLogger(__name__)


class BucketLocator(Protocol):
    def list_bucket_names(self) -> List[str]:
        ...

    def resolve_region(self, bucket_name: str) -> str:
        ...


class MetricSource(Protocol):
    def latest_object_count(self, bucket_name: str, region: str) -> float:
        ...

    def latest_size_bytes(self, bucket_name: str, region: str, storage_class: str) -> float:
        ...


# =============================================================================
# Session Management
# =============================================================================

def get_session(profile: Optional[str] = None, region: Optional[str] = None) -> boto3.Session:
    """
    Create boto3 session for a shared-credentials profile.

    The "default" profile uses boto3's default credential chain, which also
    covers environment variables and instance roles.
    """
    if profile == DEFAULT_PROFILE:
        profile = None
    return boto3.Session(profile_name=profile, region_name=region)


def get_cloudwatch_client(session: boto3.Session, region: str):
    """Get CloudWatch client for a region."""
    return session.client('cloudwatch', region_name=region)


def _error_code(exc: ClientError) -> str:
    return exc.response.get('Error', {}).get('Code', '')


# =============================================================================
# S3 Bucket Locator
# =============================================================================

class S3BucketLocator:
    """
    Lists buckets and resolves their regions through the S3 API.

    Neither operation raises: a failed listing yields no buckets and a
    failed lookup yields UNKNOWN_REGION.
    """

    def __init__(self, session: boto3.Session, default_region: str = DEFAULT_REGION):
        self.default_region = default_region
        self._s3 = session.client('s3', region_name=default_region)

    @retry_with_backoff(max_attempts=DEFAULT_RETRY_ATTEMPTS, exceptions=(ClientError,))
    def _list_buckets(self) -> List[str]:
        response = self._s3.list_buckets()
        return [b['Name'] for b in response.get('Buckets', []) if b.get('Name')]

    def list_bucket_names(self) -> List[str]:
        try:
            names = self._list_buckets()
        except Exception as e:
            logger.error(f"Failed to list S3 buckets: {e}")
            return []

        logger.info(f"Found {len(names)} S3 buckets")
        return names

    def resolve_region(self, bucket_name: str) -> str:
        try:
            location = self._s3.get_bucket_location(Bucket=bucket_name)
        except ClientError as e:
            if _error_code(e) in BUCKET_NOT_FOUND_CODES:
                logger.warning(f"Unable to find bucket {bucket_name}'s region: bucket not found")
            else:
                logger.debug(f"Could not get location for bucket {bucket_name}: {e}")
            return UNKNOWN_REGION
        except Exception as e:
            logger.debug(f"Could not get location for bucket {bucket_name}: {e}")
            return UNKNOWN_REGION

        constraint = location.get('LocationConstraint')
        return LOCATION_CONSTRAINT_ALIASES.get(constraint, constraint)


# =============================================================================
# CloudWatch Metric Source
# =============================================================================

class CloudWatchMetricSource:
    """
    Reads the daily S3 storage metrics from CloudWatch.

    S3 metrics live in the bucket's own region, so one client is kept per
    region. Query errors propagate; callers decide what a failure is worth.
    """

    def __init__(self, session: boto3.Session):
        self._session = session
        self._clients: Dict[str, object] = {}
        # boto3 sessions are not thread-safe; clients are
        self._clients_lock = threading.Lock()

    def _client(self, region: str):
        with self._clients_lock:
            client = self._clients.get(region)
            if client is None:
                client = get_cloudwatch_client(self._session, region)
                self._clients[region] = client
            return client

    def _latest_average(
        self,
        region: str,
        metric_name: str,
        dimensions: List[Dict[str, str]],
        window_days: int,
        unit: str
    ) -> float:
        end_time = datetime.now(timezone.utc)
        start_time = end_time - timedelta(days=window_days)

        response = self._client(region).get_metric_statistics(
            Namespace=S3_METRIC_NAMESPACE,
            MetricName=metric_name,
            Dimensions=dimensions,
            StartTime=start_time,
            EndTime=end_time,
            Period=METRIC_PERIOD_SECONDS,
            Statistics=[METRIC_STATISTIC],
            Unit=unit
        )

        datapoints = response.get('Datapoints', [])
        if not datapoints:
            return 0.0

        latest = max(datapoints, key=lambda x: x['Timestamp'])
        return float(latest.get(METRIC_STATISTIC, 0.0))

    def latest_object_count(self, bucket_name: str, region: str) -> float:
        return self._latest_average(
            region,
            METRIC_NUMBER_OF_OBJECTS,
            [
                {'Name': 'BucketName', 'Value': bucket_name},
                {'Name': 'StorageType', 'Value': STORAGE_TYPE_ALL},
            ],
            OBJECT_COUNT_WINDOW_DAYS,
            'Count'
        )

    def latest_size_bytes(self, bucket_name: str, region: str, storage_class: str) -> float:
        return self._latest_average(
            region,
            METRIC_BUCKET_SIZE_BYTES,
            [
                {'Name': 'BucketName', 'Value': bucket_name},
                {'Name': 'StorageType', 'Value': storage_class},
            ],
            BUCKET_SIZE_WINDOW_DAYS,
            'Bytes'
        )
