"""
Static S3 storage price table.

Prices are USD per GB-month for the Tokyo region (ap-northeast-1). Keys are
the ``StorageType`` dimension values that S3 publishes ``BucketSizeBytes``
under in CloudWatch, so they double as the set of storage classes to query.
"""
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple

# Tokyo region, storage only (no request or transfer charges)
TOKYO_STORAGE_PRICES: Dict[str, float] = {
    'StandardStorage': 0.025,
    'IntelligentTieringStorage': 0.025,
    'StandardIAStorage': 0.019,
    'StandardIASizeOverhead': 0.019,
    'StandardIAObjectOverhead': 0.019,
    'OneZoneIAStorage': 0.0152,
    'OneZoneIASizeOverhead': 0.0152,
    'ReducedRedundancyStorage': 0.0259,
    'GlacierStorage': 0.005,
    'GlacierStagingStorage': 0.005,
    'GlacierObjectOverhead': 0.005,
    'GlacierS3ObjectOverhead': 0.025,
    'DeepArchiveStorage': 0.002,
    'DeepArchiveObjectOverhead': 0.002,
    'DeepArchiveS3ObjectOverhead': 0.025,
    'DeepArchiveStagingStorage': 0.002,
}


class PriceTable:
    """
    Read-only mapping of storage class to unit price.

    Unknown storage classes are priced at zero rather than rejected, so an
    unexpected class name reported by CloudWatch degrades to a free entry
    instead of aborting the run.
    """

    def __init__(self, prices: Mapping[str, float]):
        self._prices = MappingProxyType(dict(prices))

    @classmethod
    def from_mapping(cls, prices: Mapping[str, float]) -> 'PriceTable':
        return cls(prices)

    @classmethod
    def tokyo(cls) -> 'PriceTable':
        """Default table used by the CLI."""
        return cls(TOKYO_STORAGE_PRICES)

    def price_of(self, storage_class: str) -> float:
        return self._prices.get(storage_class, 0.0)

    def storage_classes(self) -> List[str]:
        """Storage classes in declaration order."""
        return list(self._prices)

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(self._prices.items())

    def __contains__(self, storage_class: object) -> bool:
        return storage_class in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        return f"PriceTable({dict(self._prices)!r})"
