"""
Data models for the S3 cost collector.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List

from .constants import UNKNOWN_REGION


@dataclass
class BucketUsage:
    """
    Storage usage and estimated monthly cost of one bucket.

    Owned by the worker collecting it until handed to the result sink.
    Per-class entries go through record() so totals always equal the sums
    of the per-class maps.
    """
    name: str
    region: str = UNKNOWN_REGION
    object_count: float = 0.0

    size_by_class: Dict[str, float] = field(default_factory=dict)  # GB
    cost_by_class: Dict[str, float] = field(default_factory=dict)  # USD
    total_size: float = 0.0
    total_cost: float = 0.0

    def record(self, storage_class: str, size_gb: float, unit_price: float) -> None:
        """Record the size of one storage class and its cost at unit_price."""
        cost = size_gb * unit_price
        self.size_by_class[storage_class] = size_gb
        self.cost_by_class[storage_class] = cost
        self.total_size += size_gb
        self.total_cost += cost

    def nonzero_classes(self, epsilon: float = 0.0) -> List[str]:
        """Storage classes whose size is above epsilon, in recording order."""
        return [c for c, gb in self.size_by_class.items() if abs(gb) > epsilon]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'region': self.region,
            'object_count': int(self.object_count),
            'total_size_gb': round(self.total_size, 2),
            'total_cost_usd': round(self.total_cost, 2),
            'storage_classes': {
                c: {
                    'size_gb': round(self.size_by_class[c], 2),
                    'cost_usd': round(self.cost_by_class[c], 2),
                }
                for c in self.nonzero_classes()
            },
        }


@dataclass
class Report:
    """Per-bucket usage in bucket discovery order."""
    buckets: List[BucketUsage] = field(default_factory=list)

    @property
    def total_size(self) -> float:
        return sum(b.total_size for b in self.buckets)

    @property
    def total_cost(self) -> float:
        return sum(b.total_cost for b in self.buckets)

    @property
    def total_objects(self) -> float:
        return sum(b.object_count for b in self.buckets)

    def names(self) -> List[str]:
        return [b.name for b in self.buckets]

    def __iter__(self) -> Iterator[BucketUsage]:
        return iter(self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bucket_count': len(self.buckets),
            'total_objects': int(self.total_objects),
            'total_size_gb': round(self.total_size, 2),
            'total_cost_usd': round(self.total_cost, 2),
            'buckets': [b.to_dict() for b in self.buckets],
        }
