"""
Per-bucket usage collection.

A UsageCollector turns one bucket name into a complete BucketUsage: region,
object count, and size and cost for every storage class in the price table.
Every metric call is best effort; a failure counts as "no data" (zero) for
that value only and is never retried here.
"""
import logging
from typing import Callable

from .constants import DEFAULT_REGION, UNKNOWN_REGION
from .models import BucketUsage
from .pricing import PriceTable
from .sources import BucketLocator, MetricSource
from .utils import bytes_to_gb

logger = logging.getLogger(__name__)


def _safe_metric(description: str, query: Callable[[], float]) -> float:
    """Run a metric query, collapsing any failure into 0.0."""
    try:
        value = query()
    except Exception as e:
        logger.debug(f"Could not get {description}: {e}")
        return 0.0
    return float(value or 0.0)


class UsageCollector:
    """Collects storage usage for single buckets. Safe to share across threads."""

    def __init__(
        self,
        locator: BucketLocator,
        metrics: MetricSource,
        prices: PriceTable,
        default_region: str = DEFAULT_REGION
    ):
        self.locator = locator
        self.metrics = metrics
        self.prices = prices
        self.default_region = default_region

    def _resolve_region(self, bucket_name: str) -> str:
        try:
            return self.locator.resolve_region(bucket_name) or UNKNOWN_REGION
        except Exception as e:
            logger.warning(f"Could not resolve region for bucket {bucket_name}: {e}")
            return UNKNOWN_REGION

    def collect(self, bucket_name: str) -> BucketUsage:
        usage = BucketUsage(name=bucket_name, region=self._resolve_region(bucket_name))

        # Metrics must target some region even when the bucket's is unknown
        query_region = usage.region or self.default_region

        usage.object_count = _safe_metric(
            f"NumberOfObjects for {bucket_name}",
            lambda: self.metrics.latest_object_count(bucket_name, query_region)
        )

        for storage_class in self.prices.storage_classes():
            size_bytes = _safe_metric(
                f"BucketSizeBytes/{storage_class} for {bucket_name}",
                lambda: self.metrics.latest_size_bytes(bucket_name, query_region, storage_class)
            )
            usage.record(storage_class, bytes_to_gb(size_bytes), self.prices.price_of(storage_class))

        logger.debug(
            f"Collected {bucket_name} ({usage.region or 'unknown'}): "
            f"{usage.total_size:.2f} GB, ${usage.total_cost:.2f}"
        )
        return usage
