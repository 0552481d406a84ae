"""
Bounded fan-out of bucket collection.

The Aggregator runs one UsageCollector task per bucket on a fixed-size
thread pool, so at most ``max_workers`` buckets are collected at once.
Each finished bucket is handed to the result sink inside a single lock,
which keeps one bucket's output block from interleaving with another's.
Emission follows completion order; the returned Report follows input order.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Protocol

from .collector import UsageCollector
from .constants import DEFAULT_MAX_WORKERS
from .models import BucketUsage, Report

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    """Receives each finished BucketUsage. Calls never overlap."""

    def emit(self, usage: BucketUsage) -> None:
        ...


class Aggregator:
    """
    Collects usage for many buckets concurrently.

    Usage:
        aggregator = Aggregator(collector, max_workers=20, sink=ConsoleSink())
        report = aggregator.run(locator.list_bucket_names())
    """

    def __init__(
        self,
        collector: UsageCollector,
        max_workers: int = DEFAULT_MAX_WORKERS,
        sink: Optional[ResultSink] = None
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.collector = collector
        self.max_workers = max_workers
        self.sink = sink
        # The only lock held across buckets; never nested
        self._emit_lock = threading.Lock()

    def _collect_one(self, bucket_name: str) -> BucketUsage:
        try:
            usage = self.collector.collect(bucket_name)
        except Exception as e:
            logger.warning(f"Collection failed for bucket {bucket_name}: {e}")
            usage = BucketUsage(name=bucket_name)

        self._emit(usage)
        return usage

    def _emit(self, usage: BucketUsage) -> None:
        if self.sink is None:
            return
        with self._emit_lock:
            try:
                self.sink.emit(usage)
            except Exception as e:
                logger.warning(f"Failed to emit result for bucket {usage.name}: {e}")

    def run(self, bucket_names: Iterable[str]) -> Report:
        """
        Collect every bucket and return once all of them have finished.

        Args:
            bucket_names: Buckets in discovery order

        Returns:
            Report with exactly one BucketUsage per input name, in input order
        """
        names = list(bucket_names)
        if not names:
            logger.info("No buckets to collect")
            return Report()

        workers = min(self.max_workers, len(names))
        logger.info(f"Collecting {len(names)} buckets with {workers} workers")

        results: List[Optional[BucketUsage]] = [None] * len(names)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='s3cost') as executor:
            futures: Dict = {
                executor.submit(self._collect_one, name): index
                for index, name in enumerate(names)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return Report(buckets=[usage for usage in results if usage is not None])
